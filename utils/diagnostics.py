# utils/diagnostics.py
# Structured diagnostic events for the demand engine.
#
# The engine never writes to a logger directly: it hands DiagnosticEvent
# records to whatever sink the caller injected through SimContext.  The
# default DiagnosticLog keeps every event (for the run report) and mirrors
# it to the standard logging module at the matching level.
# ─────────────────────────────────────────────────────────────────────────────
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List, Protocol

import pandas as pd

__all__ = [
    "DiagnosticEvent",
    "DiagnosticSink",
    "DiagnosticLog",
    "UNCALIBRATED_SCALER",
    "CALIBRATION_RESCALE",
]

_LOG = logging.getLogger("diagnostics")

UNCALIBRATED_SCALER = "uncalibrated_scaler"
CALIBRATION_RESCALE = "calibration_rescale"

_COLUMNS = ["level", "kind", "region", "sector", "period", "message", "value"]


@dataclass(slots=True, frozen=True)
class DiagnosticEvent:
    level:   int              # logging.WARNING, logging.DEBUG, …
    kind:    str
    region:  str
    sector:  str
    period:  int
    message: str
    value:   float | None = None


class DiagnosticSink(Protocol):
    def emit(self, event: DiagnosticEvent) -> None: ...


class DiagnosticLog:
    """Collecting sink; one instance per region so parallel runs never share it."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._events: List[DiagnosticEvent] = []
        self._logger = logger or _LOG

    def emit(self, event: DiagnosticEvent) -> None:
        self._events.append(event)
        self._logger.log(
            event.level, "%s [region=%s sector=%s period=%d] %s",
            event.kind, event.region, event.sector, event.period, event.message,
        )

    def events(self, kind: str | None = None) -> List[DiagnosticEvent]:
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.kind == kind]

    def __len__(self) -> int:
        return len(self._events)

    def to_frame(self) -> pd.DataFrame:
        if not self._events:
            return pd.DataFrame(columns=_COLUMNS)
        df = pd.DataFrame([asdict(e) for e in self._events], columns=_COLUMNS)
        df["level"] = df["level"].map(logging.getLevelName)
        return df
