"""
Aggregation engine: pure computations over entity snapshots.

Every function takes its collections and its reference moment as arguments,
never mutates them and returns freshly built values. Missing or malformed
optional data degrades to zeros, sentinels or empty results; a collection
argument that is not a list/tuple, or a reference moment that is not a
date/datetime, raises ``SnapshotTypeError``.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config import ALL, UNASSIGNED_DEPARTMENT, UNKNOWN_PATIENT, DashboardConfig
from .models import (
    Appointment,
    AppointmentRates,
    Bed,
    BedStatistics,
    DashboardMetrics,
    DepartmentStatistics,
    DepartmentTrend,
    Patient,
    ReportMetrics,
    Staff,
)

logger = logging.getLogger(__name__)

DEFAULTS = DashboardConfig()

_ISO_DATE = re.compile(r"\s*\d{4}-\d{2}-\d{2}")


class SnapshotTypeError(TypeError):
    """Raised when a caller passes a structurally wrong argument."""


# ---------------- Argument and field helpers ----------------


def require_collection(value: Any, name: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)):
        raise SnapshotTypeError(
            f"{name} must be a list or tuple of records, got {type(value).__name__}"
        )
    return value


def require_moment(value: Any, name: str) -> datetime:
    if isinstance(value, (datetime, date)) and value is not pd.NaT:
        moment = to_moment(value)
        if moment is not None:
            return moment
    raise SnapshotTypeError(f"{name} must be a date or datetime, got {value!r}")


def to_moment(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp into a naive local datetime, or None if unknown."""
    if isinstance(value, str):
        # pandas fills missing date parts ("10:30", "now") from the clock
        if not _ISO_DATE.match(value):
            return None
        parsed = pd.to_datetime(value.strip(), errors="coerce")
        if pd.isna(parsed):
            return None
        moment = parsed.to_pydatetime()
    elif value is pd.NaT:
        return None
    elif isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        return None
    if moment.tzinfo is not None:
        # judge calendar days in local wall-clock time
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return _round_half_up(part / whole * 100)


def _is_active(criterion: Optional[str]) -> bool:
    return criterion not in (None, "", ALL)


# ---------------- Patients ----------------


def _matches_search(patient: Patient, needle: str) -> bool:
    full_name = f"{_text(getattr(patient, 'first_name', None))} {_text(getattr(patient, 'last_name', None))}"
    fields = (
        full_name,
        _text(getattr(patient, "name", None)),
        _text(getattr(patient, "phone", None)),
        _text(getattr(patient, "department", None)),
    )
    return any(needle in f.lower() for f in fields)


def filter_patients(
    patients: Sequence[Patient],
    search_term: str = "",
    status_filter: str = ALL,
    department_filter: str = ALL,
) -> List[Patient]:
    """Stable filter by free-text search, status and department.

    The search term is matched case-insensitively as a substring of the full
    name, the backend display name, the phone number and the department.
    ``"all"`` (or an empty value) disables the status/department predicates,
    which otherwise require an exact match.
    """
    require_collection(patients, "patients")
    needle = _text(search_term).lower()
    result = []
    for patient in patients:
        if needle and not _matches_search(patient, needle):
            continue
        if _is_active(status_filter) and getattr(patient, "current_status", None) != status_filter:
            continue
        if _is_active(department_filter) and getattr(patient, "department", None) != department_filter:
            continue
        result.append(patient)
    return result


def filter_by_department(patients: Sequence[Patient], department: str) -> List[Patient]:
    require_collection(patients, "patients")
    if not _is_active(department):
        return list(patients)
    return [p for p in patients if getattr(p, "department", None) == department]


def resolve_patient_name(patients: Sequence[Patient], patient_id: Any) -> str:
    """Display name for ``patient_id``, or ``"Unknown Patient"`` when it dangles."""
    require_collection(patients, "patients")
    if patient_id is None:
        return UNKNOWN_PATIENT
    for patient in patients:
        if getattr(patient, "patient_id", None) == patient_id:
            name = patient.display_name if isinstance(patient, Patient) else ""
            return name or UNKNOWN_PATIENT
    return UNKNOWN_PATIENT


def recent_admissions(
    patients: Sequence[Patient],
    as_of: Optional[datetime] = None,
    limit: int = DEFAULTS.recent_limit,
) -> List[Patient]:
    """Newest admissions first; patients with unknown admission dates go last.

    ``as_of`` is accepted so callers can pass the same reference moment they
    use everywhere else; it does not filter the result.
    """
    require_collection(patients, "patients")
    if as_of is not None:
        require_moment(as_of, "as_of")
    dated = []
    undated = []
    for patient in patients:
        moment = to_moment(getattr(patient, "admission_date", None))
        if moment is None:
            undated.append(patient)
        else:
            dated.append((moment, patient))
    # reverse=True keeps ties in input order
    dated.sort(key=lambda pair: pair[0], reverse=True)
    ordered = [p for _, p in dated] + undated
    return ordered[: max(0, limit)]


# ---------------- Dashboard ----------------


def _same_day(value: Any, reference: datetime) -> bool:
    moment = to_moment(value)
    return moment is not None and moment.date() == reference.date()


def compute_dashboard_metrics(
    patients: Sequence[Patient],
    appointments: Sequence[Appointment],
    beds: Sequence[Bed],
    as_of: datetime,
) -> DashboardMetrics:
    require_collection(patients, "patients")
    require_collection(appointments, "appointments")
    require_collection(beds, "beds")
    reference = require_moment(as_of, "as_of")
    return DashboardMetrics(
        total_patients=len(patients),
        today_admissions=sum(
            1 for p in patients if _same_day(getattr(p, "admission_date", None), reference)
        ),
        available_beds=sum(1 for b in beds if getattr(b, "status", None) == "available"),
        pending_appointments=sum(
            1 for a in appointments if getattr(a, "status", None) == "pending"
        ),
    )


# ---------------- Beds ----------------


def compute_bed_statistics(beds: Sequence[Bed]) -> BedStatistics:
    require_collection(beds, "beds")
    counts = {"available": 0, "occupied": 0, "cleaning": 0, "maintenance": 0}
    for bed in beds:
        status = getattr(bed, "status", None)
        if status in counts:
            counts[status] += 1
    total = len(beds)
    return BedStatistics(
        total=total,
        available=counts["available"],
        occupied=counts["occupied"],
        cleaning=counts["cleaning"],
        maintenance=counts["maintenance"],
        occupancy_rate=_percent(counts["occupied"], total),
    )


def filter_beds_by_ward(beds: Sequence[Bed], ward: str) -> List[Bed]:
    require_collection(beds, "beds")
    if not _is_active(ward):
        return list(beds)
    return [b for b in beds if getattr(b, "ward", None) == ward]


# ---------------- Departments ----------------


def compute_department_statistics(
    patients: Sequence[Patient],
    staff: Sequence[Staff],
    department: str,
    bed_capacity: int = DEFAULTS.bed_capacity_per_department,
) -> DepartmentStatistics:
    """Headcounts for one department.

    ``occupancy`` is patient count over a nominal ``bed_capacity``; use
    ``compute_bed_statistics`` on ward-filtered beds for real bed occupancy.
    """
    require_collection(patients, "patients")
    require_collection(staff, "staff")
    dept_patients = [p for p in patients if getattr(p, "department", None) == department]
    dept_staff = [s for s in staff if getattr(s, "department", None) == department]
    return DepartmentStatistics(
        department=department,
        patients=len(dept_patients),
        staff=len(dept_staff),
        critical=sum(1 for p in dept_patients if getattr(p, "current_status", None) == "critical"),
        occupancy=_percent(len(dept_patients), bed_capacity),
    )


def compute_department_trend(
    patients: Sequence[Patient],
    department: str,
    reference_date: datetime,
    window_days: int = DEFAULTS.trend_window_days,
) -> DepartmentTrend:
    """Admissions in ``[ref - w, ref)`` against ``[ref - 2w, ref - w)``."""
    require_collection(patients, "patients")
    reference = require_moment(reference_date, "reference_date")
    window = timedelta(days=window_days)
    week_start = reference - window
    prev_start = reference - 2 * window
    last_week = 0
    prev_week = 0
    unknown = 0
    for patient in patients:
        if getattr(patient, "department", None) != department:
            continue
        moment = to_moment(getattr(patient, "admission_date", None))
        if moment is None:
            unknown += 1
        elif week_start <= moment < reference:
            last_week += 1
        elif prev_start <= moment < week_start:
            prev_week += 1
    if unknown:
        logger.debug("%s: %d patients without a usable admission date", department, unknown)
    delta = last_week - prev_week
    percentage = _round_half_up(delta / prev_week * 100) if prev_week > 0 else 0
    return DepartmentTrend(delta=delta, percentage=percentage)


def department_counts(patients: Sequence[Patient]) -> Dict[str, int]:
    require_collection(patients, "patients")
    counts: Dict[str, int] = {}
    for patient in patients:
        dept = _text(getattr(patient, "department", None)) or UNASSIGNED_DEPARTMENT
        counts[dept] = counts.get(dept, 0) + 1
    return counts


def department_share(count: int, total: int) -> int:
    return _percent(count, total)


# ---------------- Appointments ----------------


def todays_appointments(
    appointments: Sequence[Appointment], reference_date: datetime
) -> List[Appointment]:
    require_collection(appointments, "appointments")
    reference = require_moment(reference_date, "reference_date")
    return [a for a in appointments if _same_day(getattr(a, "date_time", None), reference)]


def upcoming_appointments(
    appointments: Sequence[Appointment], reference_date: datetime
) -> List[Appointment]:
    require_collection(appointments, "appointments")
    reference = require_moment(reference_date, "reference_date")
    ahead = []
    for appt in appointments:
        moment = to_moment(getattr(appt, "date_time", None))
        if moment is not None and moment > reference:
            ahead.append((moment, appt))
    ahead.sort(key=lambda pair: pair[0])
    return [a for _, a in ahead]


def compute_appointment_rates(
    appointments: Sequence[Appointment], reference_date: datetime
) -> AppointmentRates:
    require_collection(appointments, "appointments")
    reference = require_moment(reference_date, "reference_date")
    today = 0
    upcoming = 0
    completed = 0
    cancelled = 0
    for appt in appointments:
        moment = to_moment(getattr(appt, "date_time", None))
        if moment is not None:
            if moment.date() == reference.date():
                today += 1
            if moment > reference:
                upcoming += 1
        status = getattr(appt, "status", None)
        if status == "completed":
            completed += 1
        elif status == "cancelled":
            cancelled += 1
    total = len(appointments)
    return AppointmentRates(
        total=total,
        today=today,
        upcoming=upcoming,
        completed=completed,
        cancelled=cancelled,
        completion_rate=_percent(completed, total),
    )


# ---------------- Reports ----------------


def compute_report_metrics(
    patients: Sequence[Patient],
    appointments: Sequence[Appointment],
    beds: Sequence[Bed],
    reference_date: datetime,
    date_range: str = "week",
    ranges: Optional[Dict[str, int]] = None,
) -> ReportMetrics:
    """Period totals for the reports view; ``date_range`` picks the look-back."""
    require_collection(patients, "patients")
    reference = require_moment(reference_date, "reference_date")
    ranges = ranges or DEFAULTS.report_ranges
    if date_range not in ranges:
        raise ValueError(f"Unknown date range {date_range!r}; expected one of {sorted(ranges)}")
    cutoff = reference - timedelta(days=ranges[date_range])

    new_patients = 0
    for patient in patients:
        moment = to_moment(getattr(patient, "admission_date", None))
        if moment is not None and moment >= cutoff:
            new_patients += 1

    bed_stats = compute_bed_statistics(beds)
    appt_rates = compute_appointment_rates(appointments, reference)
    return ReportMetrics(
        date_range=date_range,
        total_patients=len(patients),
        new_patients=new_patients,
        critical_patients=sum(
            1 for p in patients if getattr(p, "current_status", None) == "critical"
        ),
        department_counts=department_counts(patients),
        occupancy_rate=bed_stats.occupancy_rate,
        completion_rate=appt_rates.completion_rate,
        total_beds=bed_stats.total,
        occupied_beds=bed_stats.occupied,
    )
