"""
Centralized dashboard defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


PATIENT_STATUSES: List[str] = ["admitted", "critical", "stable", "discharge-pending"]
APPOINTMENT_STATUSES: List[str] = ["pending", "confirmed", "completed", "cancelled"]
BED_STATUSES: List[str] = ["available", "occupied", "cleaning", "maintenance"]
DEPARTMENTS: List[str] = ["Emergency", "Cardiology", "Neurology", "Pediatrics", "Orthopedics", "ICU"]
WARDS: List[str] = ["General", "ICU", "Emergency", "Pediatrics", "Maternity", "Surgery"]
APPOINTMENT_TYPES: List[str] = ["consultation", "follow-up", "procedure", "check-up"]
STAFF_ROLES: List[str] = ["doctor", "nurse", "technician"]
GENDERS: List[str] = ["male", "female", "other"]

ALL = "all"
UNKNOWN_PATIENT = "Unknown Patient"
UNASSIGNED_DEPARTMENT = "Unassigned"


@dataclass
class DashboardConfig:
    bed_capacity_per_department: int = 50  # nominal beds per department, not real bed data
    recent_limit: int = 5
    upcoming_limit: int = 10
    trend_window_days: int = 7
    report_ranges: Dict[str, int] = field(
        default_factory=lambda: {"week": 7, "month": 30, "year": 365}
    )
    seed: int = 42
    patients: int = 120
    appointments: int = 200
    beds_per_ward: int = 20
    staff: int = 36
    history_days: int = 30  # admissions are spread over this many days before as_of
