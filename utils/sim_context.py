# utils/sim_context.py
# Explicit simulation context handed to every demand strategy, replacing
# process-wide scenario / model-time lookups.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from utils.diagnostics import DiagnosticEvent, DiagnosticLog, DiagnosticSink
from utils.model_time import ModelTime

__all__ = ["SimContext"]


@dataclass(slots=True, frozen=True)
class SimContext:
    model_time:  ModelTime
    region:      str
    sector:      str
    diagnostics: DiagnosticSink = field(default_factory=DiagnosticLog)

    def timestep(self, period: int) -> int:
        return self.model_time.timestep(period)

    def year(self, period: int) -> int:
        return self.model_time.period_to_year(period)

    def _emit(self, level: int, kind: str, period: int, message: str,
              value: float | None) -> None:
        self.diagnostics.emit(DiagnosticEvent(
            level=level, kind=kind, region=self.region, sector=self.sector,
            period=period, message=message, value=value,
        ))

    def warn(self, kind: str, period: int, message: str, value: float | None = None) -> None:
        self._emit(logging.WARNING, kind, period, message, value)

    def debug(self, kind: str, period: int, message: str, value: float | None = None) -> None:
        self._emit(logging.DEBUG, kind, period, message, value)
