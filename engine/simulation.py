# engine/simulation.py
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .aggregation import SubjectStats, attendance_stats, percentage
from .calendar import future_range, walk_dates
from .errors import InvalidInput, TermNotConfigured
from .filters import occurrences_for_date
from .slots import weekly_pattern
from .snapshot import Snapshot

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class SimulationResult:
    target_percentage: Number
    future_lectures: int
    lectures_to_attend: int
    lectures_to_skip: int
    is_achievable: bool
    max_possible_pct: int
    min_possible_pct: int
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetPercentage": float(self.target_percentage),
            "futureLectures": self.future_lectures,
            "lecturesToAttend": self.lectures_to_attend,
            "lecturesToSkip": self.lectures_to_skip,
            "isAchievable": self.is_achievable,
            "maxPossiblePct": self.max_possible_pct,
            "minPossiblePct": self.min_possible_pct,
            "message": self.message,
        }


def bounds(current: SubjectStats, future: int) -> tuple[int, int]:
    """(max, min) percentage at term end if every / no remaining lecture is attended."""
    total_at_end = current.total + future
    return (
        percentage(current.attended + future, total_at_end),
        percentage(current.attended, total_at_end),
    )


def simulate(current: SubjectStats, future: int, target: Number) -> SimulationResult:
    """
    How many of the remaining `future` lectures must be attended to finish at
    `target` percent, given the counters accumulated so far.
    """
    if future < 0:
        raise InvalidInput("future lecture count must be non-negative", details={"future": future})
    target_dec = Decimal(str(target))
    if target_dec < 0 or target_dec > 100:
        raise InvalidInput("target percentage must be between 0 and 100",
                           code="BAD_TARGET", details={"target": str(target)})

    max_pct, min_pct = bounds(current, future)
    result = dict(target_percentage=target, future_lectures=future,
                  max_possible_pct=max_pct, min_possible_pct=min_pct)

    if future == 0:
        if current.percentage >= target_dec:
            return SimulationResult(lectures_to_attend=0, lectures_to_skip=0, is_achievable=True, **result)
        return SimulationResult(lectures_to_attend=0, lectures_to_skip=0, is_achievable=False,
                                message="No future lectures available to achieve target", **result)

    total_at_end = current.total + future
    # Decimal keeps 80% of 15 at exactly 12
    required = math.ceil(target_dec * total_at_end / 100)
    additional = required - current.attended

    if additional <= 0:
        return SimulationResult(lectures_to_attend=0, lectures_to_skip=future, is_achievable=True, **result)
    if additional > future:
        return SimulationResult(
            lectures_to_attend=future, lectures_to_skip=0, is_achievable=False,
            message=f"Target of {target}% is not achievable. Maximum possible is {max_pct}%.",
            **result,
        )
    return SimulationResult(lectures_to_attend=additional, lectures_to_skip=future - additional,
                            is_achievable=True, **result)


def count_future_occurrences(snapshot: Snapshot, subject_id: str, today: date) -> int:
    """Lectures (template and extra) still due for the subject in [max(today, termStart), termEnd]."""
    if snapshot.term is None:
        raise TermNotConfigured()
    rng = future_range(snapshot.term, today)
    if rng is None:
        return 0
    pattern = weekly_pattern(snapshot)
    count = 0
    for day in walk_dates(*rng):
        for occ in occurrences_for_date(day, snapshot, pattern=pattern):
            if occ.subject_id == subject_id:
                count += 1
    return count


def simulate_subject(
    snapshot: Snapshot, subject_id: str, target: Number, today: date,
) -> tuple[SubjectStats, SimulationResult]:
    """Current standing of the subject and the plan to reach `target` by term end."""
    current = attendance_stats(snapshot, today, subject_id=subject_id, include_empty=True)[subject_id]
    future = count_future_occurrences(snapshot, subject_id, today)
    return current, simulate(current, future, target)
