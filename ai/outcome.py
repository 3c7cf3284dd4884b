"""Result type shared by all analyzers."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from darpan.models import AnalysisStatus


@dataclass
class AnalysisOutcome:
    """A shape-conforming analysis plus accounting.

    ``status`` is ``completed`` when the model produced usable JSON,
    ``degraded`` when its answer was unusable and a fallback was built from
    context, and ``failed`` when the call itself failed.
    """
    analysis: dict[str, Any]
    tokens_used: int = 0
    processing_time_ms: int = 0
    status: str = AnalysisStatus.COMPLETED
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.status == AnalysisStatus.COMPLETED


def elapsed_ms(started: float) -> int:
    """Milliseconds since ``started`` (a ``time.perf_counter()`` reading)."""
    return int((time.perf_counter() - started) * 1000)
