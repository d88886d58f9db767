"""
Typed containers for entity snapshots and computed dashboard values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Union

# Raw timestamp as received from storage; parsed lazily by the engine.
Moment = Union[datetime, date, str, None]


@dataclass
class EmergencyContact:
    name: str = ""
    phone: str = ""
    relationship: str = ""


@dataclass
class Patient:
    patient_id: int
    first_name: str = ""
    last_name: str = ""
    name: str = ""  # backend display name, used when first/last are blank
    date_of_birth: Moment = None
    gender: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    department: Optional[str] = None
    assigned_doctor: Optional[str] = None
    bed_number: Optional[str] = None
    current_status: str = "admitted"  # admitted / critical / stable / discharge-pending
    admission_date: Moment = None
    emergency_contact: EmergencyContact = field(default_factory=EmergencyContact)

    @property
    def display_name(self) -> str:
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or (self.name or "").strip()


@dataclass
class Appointment:
    appointment_id: int
    patient_id: Optional[int] = None
    doctor_id: Optional[str] = None
    date_time: Moment = None
    duration: int = 30  # minutes
    appointment_type: str = "consultation"
    status: str = "pending"  # pending / confirmed / completed / cancelled
    department: Optional[str] = None
    room: Optional[str] = None
    notes: str = ""


@dataclass
class Bed:
    bed_id: int
    ward: str = ""
    number: str = ""
    status: str = "available"  # available / occupied / cleaning / maintenance
    patient_id: Optional[int] = None
    last_cleaned: Moment = None


@dataclass
class Staff:
    staff_id: int
    name: str = ""
    role: str = ""
    department: Optional[str] = None
    specialization: str = ""
    availability: str = "available"
    current_patients: List[int] = field(default_factory=list)


@dataclass
class Snapshot:
    patients: List[Patient] = field(default_factory=list)
    appointments: List[Appointment] = field(default_factory=list)
    beds: List[Bed] = field(default_factory=list)
    staff: List[Staff] = field(default_factory=list)


@dataclass
class DashboardMetrics:
    total_patients: int
    today_admissions: int
    available_beds: int
    pending_appointments: int


@dataclass
class BedStatistics:
    total: int
    available: int
    occupied: int
    cleaning: int
    maintenance: int
    occupancy_rate: int


@dataclass
class DepartmentStatistics:
    department: str
    patients: int
    staff: int
    critical: int
    occupancy: int


@dataclass
class DepartmentTrend:
    delta: int
    percentage: int


@dataclass
class AppointmentRates:
    total: int
    today: int
    upcoming: int
    completed: int
    cancelled: int
    completion_rate: int


@dataclass
class ReportMetrics:
    date_range: str
    total_patients: int
    new_patients: int
    critical_patients: int
    department_counts: Dict[str, int]
    occupancy_rate: int
    completion_rate: int
    total_beds: int
    occupied_beds: int
