# timer/solver.py
"""
Timer calculator for CTC (clear timer on compare match) mode.

For every supported prescaler the solver works out how many timer ticks the
requested interval takes, whether it fits in a single counter cycle, and the
compare value / real interval / error you would get after rounding.
"""

from __future__ import annotations
import math
from dataclasses import asdict, dataclass
from typing import List, Optional, Sequence

from ..errors import InvalidRequest
from .codegen import INFEASIBLE_CODE, generate_code

PRESCALERS = (1, 8, 64, 256, 1024)
COUNTER_WIDTHS = (8, 16)


def _round(x: float) -> int:
    # half-up, not banker's rounding: 2.5 -> 3
    return math.floor(x + 0.5)


@dataclass(frozen=True)
class TimerRequest:
    cpu_frequency_hz: float
    target_seconds: float
    counter_width_bits: int = 16

    def __post_init__(self):
        if not math.isfinite(self.cpu_frequency_hz) or self.cpu_frequency_hz <= 0:
            raise InvalidRequest(f"CPU frequency must be positive, got {self.cpu_frequency_hz}")
        if not math.isfinite(self.target_seconds) or self.target_seconds < 0:
            raise InvalidRequest(f"target time must be >= 0, got {self.target_seconds}")
        if self.counter_width_bits not in COUNTER_WIDTHS:
            raise InvalidRequest(f"counter width must be 8 or 16 bits, got {self.counter_width_bits}")

    @property
    def counter_range(self) -> int:
        return 2 ** self.counter_width_bits


@dataclass(frozen=True)
class PrescalerResult:
    prescaler: int
    raw_ticks: float
    total_ticks: int
    overflow_count: int
    remainder_ticks: int
    feasible: bool
    compare_value: Optional[int]
    achieved_seconds: float
    error_percent: float
    code: str

    def as_dict(self) -> dict:
        return asdict(self)


def evaluate(request: TimerRequest, prescaler: int) -> PrescalerResult:
    f_cpu = request.cpu_frequency_hz
    target = request.target_seconds

    raw = target * (f_cpu / prescaler)
    overflows = math.floor(raw / request.counter_range)
    remainder = _round(raw % request.counter_range)

    feasible = overflows == 0 and raw >= 1
    if feasible:
        compare: Optional[int] = max(0, _round(raw) - 1)
        # report what the integer compare value really gives, not the ideal
        achieved = (compare + 1) * prescaler / f_cpu
        code = generate_code(request.counter_width_bits, prescaler, compare)
    else:
        compare = None
        achieved = _round(raw) * prescaler / f_cpu
        code = INFEASIBLE_CODE

    error = 0.0 if target == 0 else (achieved - target) / target * 100

    return PrescalerResult(
        prescaler=prescaler,
        raw_ticks=raw,
        total_ticks=_round(raw),
        overflow_count=overflows,
        remainder_ticks=remainder,
        feasible=feasible,
        compare_value=compare,
        achieved_seconds=achieved,
        error_percent=error,
        code=code,
    )


def solve(request: TimerRequest) -> List[PrescalerResult]:
    return [evaluate(request, p) for p in PRESCALERS]


def best_result(results: Sequence[PrescalerResult]) -> Optional[PrescalerResult]:
    """Feasible result with the smallest |error|; the smaller prescaler wins a tie."""
    feasible = [r for r in results if r.feasible]
    if not feasible:
        return None
    return min(feasible, key=lambda r: (abs(r.error_percent), r.prescaler))
