# engine/aggregation.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from .attendance import Verdict, resolve
from .calendar import current_range, walk_dates
from .errors import InvalidInput, TermNotConfigured
from .filters import is_date_locked_for_subject, occurrences_for_date
from .slots import weekly_pattern
from .snapshot import Snapshot
from .types import AttendanceStatus, TermData

log = logging.getLogger(__name__)


def percentage(attended: int, total: int) -> int:
    """round(attended / total * 100), half-up; 0 when total is 0."""
    if total <= 0:
        return 0
    pct = Decimal(attended) * 100 / Decimal(total)
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass
class SubjectStats:
    subject_id: str
    total: int = 0
    attended: int = 0
    missed: int = 0
    cancelled: int = 0

    @property
    def percentage(self) -> int:
        return percentage(self.attended, self.total)

    def apply(self, status: Optional[AttendanceStatus]) -> None:
        # cancelled lectures never reach the denominator
        if status is AttendanceStatus.CANCELLED:
            self.cancelled += 1
            return
        self.total += 1
        if status is AttendanceStatus.ATTENDED:
            self.attended += 1
        elif status is AttendanceStatus.MISSED:
            self.missed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subjectId": self.subject_id,
            "totalLectures": self.total,
            "attendedLectures": self.attended,
            "missedLectures": self.missed,
            "cancelledLectures": self.cancelled,
            "percentage": self.percentage,
        }


def seed_stats(snapshot: Snapshot) -> Dict[str, SubjectStats]:
    stats: Dict[str, SubjectStats] = {s.id: SubjectStats(s.id) for s in snapshot.subjects}
    for b in snapshot.baselines:
        stats[b.subject_id] = SubjectStats(
            b.subject_id,
            total=b.total_lectures,
            attended=b.attended_lectures,
            missed=b.missed_lectures,
            cancelled=b.cancelled_lectures,
        )
    return stats


def _bucket(stats: Dict[str, SubjectStats], verdict: Verdict, snapshot: Snapshot) -> SubjectStats:
    bucket = stats.get(verdict.subject_id)
    if bucket is None:
        # lecture recorded against a subject that no longer exists: keep the history
        if verdict.subject_id not in snapshot.subjects_by_id:
            log.warning("attendance counted for unknown subject",
                        extra={"event": "orphaned_subject", "subject_id": verdict.subject_id})
        bucket = stats[verdict.subject_id] = SubjectStats(verdict.subject_id)
    return bucket


def aggregate(
    snapshot: Snapshot,
    start: date,
    end: date,
    *,
    subject_id: Optional[str] = None,
    include_empty: bool = True,
) -> Dict[str, SubjectStats]:
    """Per-subject counters for [start, end], seeded with imported baselines."""
    stats = seed_stats(snapshot)
    pattern = weekly_pattern(snapshot)
    for day in walk_dates(start, end):
        for occ in occurrences_for_date(day, snapshot, pattern=pattern):
            verdict = resolve(occ, snapshot)
            # a substitution never adds to a subject whose history up to this date was imported
            if is_date_locked_for_subject(day.date, verdict.subject_id, snapshot):
                continue
            _bucket(stats, verdict, snapshot).apply(verdict.status)

    if subject_id is not None:
        stats = {subject_id: stats.get(subject_id) or SubjectStats(subject_id)}
    if not include_empty:
        stats = {sid: st for sid, st in stats.items() if st.total > 0}
    return stats


def attendance_stats(
    snapshot: Snapshot,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
    *,
    subject_id: Optional[str] = None,
    include_empty: bool = False,
) -> Dict[str, SubjectStats]:
    """Stats for an explicit range or, by default, for the term up to today."""
    start, end = stats_range(snapshot.term, today, start, end)
    return aggregate(snapshot, start, end, subject_id=subject_id, include_empty=include_empty)


def stats_range(
    term: Optional[TermData],
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Explicit bounds fall back to the term start and to min(today, term end).
    Before the term starts the range is empty (end < start).
    """
    if term is None:
        raise TermNotConfigured()
    if start is None and end is None:
        rng = current_range(term, today)
        if rng is None:
            # term has not started: only imported baselines so far
            return term.start_date, term.start_date - timedelta(days=1)
        return rng
    start = start or term.start_date
    end = end or min(today, term.end_date)
    if end < start:
        raise InvalidInput("date range end is before its start", code="BAD_RANGE",
                           details={"from": start.isoformat(), "to": end.isoformat()})
    return start, end


def overall(stats: Iterable[SubjectStats]) -> SubjectStats:
    total = SubjectStats("overall")
    for st in stats:
        total.total += st.total
        total.attended += st.attended
        total.missed += st.missed
        total.cancelled += st.cancelled
    return total
