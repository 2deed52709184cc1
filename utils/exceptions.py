# utils/exceptions.py
# Central place for small custom exceptions used across the codebase.

class ConfigurationError(ValueError):
    """
    Raised by the configuration loader when a sector record is unusable:
    mis-sized elasticity arrays, an unknown strategy kind, years outside
    the model calendar, or missing base-period service for a segmented
    sector.  The engine itself assumes validated inputs.
    """
    pass

class CalibrationError(RuntimeError):
    """
    Raised when a fitted scaler would be written outside a calibration
    event, or when a calibration period has no observed service to fit on.
    """
    pass

class ServiceNotComputedError(LookupError):
    """Raised when service demand for a period is read before it is written."""
    pass

class NonFiniteDriverError(RuntimeError):
    """
    Raised when a driver, price or computed demand is zero, negative or
    non-finite where the power-law formulas need a positive finite value.
    Fatal for the region: the runner aborts and re-raises it with the
    region and sector attached.
    """
    pass
