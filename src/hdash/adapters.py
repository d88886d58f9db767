"""
Persistence boundary: backend records <-> canonical models, and CSV snapshots.

The hosted tables use snake_case columns, an ``Id`` key and a ``Name`` display
column, with the emergency contact flattened into three columns. These
functions are the only place that naming appears; everything past them works
on the dataclasses in ``models``.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .models import Appointment, Bed, EmergencyContact, Moment, Patient, Snapshot, Staff

logger = logging.getLogger(__name__)

PATIENTS_CSV = "patients.csv"
APPOINTMENTS_CSV = "appointments.csv"
BEDS_CSV = "beds.csv"
STAFF_CSV = "staff.csv"

PATIENT_COLUMNS = [
    "Id",
    "Name",
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "phone",
    "email",
    "address",
    "department",
    "assigned_doctor",
    "bed_number",
    "current_status",
    "admission_date",
    "emergency_contact_name",
    "emergency_contact_phone",
    "emergency_contact_relationship",
]
APPOINTMENT_COLUMNS = [
    "Id",
    "patient_id",
    "doctor_id",
    "date_time",
    "duration",
    "type",
    "status",
    "department",
    "room",
    "notes",
]
BED_COLUMNS = ["Id", "ward", "number", "status", "patient_id", "last_cleaned"]
STAFF_COLUMNS = [
    "Id",
    "Name",
    "role",
    "department",
    "specialization",
    "availability",
    "current_patients",
]


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _opt_str(value: Any) -> Optional[str]:
    if _missing(value):
        return None
    text = str(value).strip()
    return text or None


def _str(value: Any, default: str = "") -> str:
    text = _opt_str(value)
    return default if text is None else text


def _opt_int(value: Any) -> Optional[int]:
    if _missing(value):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _moment_in(value: Any) -> Moment:
    # kept raw; the aggregation engine decides what is parsable
    if _missing(value):
        return None
    if isinstance(value, (datetime, date)):
        return value
    return _opt_str(value)


def _moment_out(value: Moment) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _id_list_in(value: Any) -> List[int]:
    text = _opt_str(value)
    if text is None:
        return []
    ids = [_opt_int(part) for part in text.split(",")]
    return [i for i in ids if i is not None]


# ---------------- Per-entity adapters ----------------


def patient_from_record(record: Dict[str, Any]) -> Patient:
    return Patient(
        patient_id=_opt_int(record.get("Id")),
        first_name=_str(record.get("first_name")),
        last_name=_str(record.get("last_name")),
        name=_str(record.get("Name")),
        date_of_birth=_moment_in(record.get("date_of_birth")),
        gender=_str(record.get("gender")),
        phone=_opt_str(record.get("phone")),
        email=_opt_str(record.get("email")),
        address=_opt_str(record.get("address")),
        department=_opt_str(record.get("department")),
        assigned_doctor=_opt_str(record.get("assigned_doctor")),
        bed_number=_opt_str(record.get("bed_number")),
        current_status=_str(record.get("current_status"), "admitted"),
        admission_date=_moment_in(record.get("admission_date")),
        emergency_contact=EmergencyContact(
            name=_str(record.get("emergency_contact_name")),
            phone=_str(record.get("emergency_contact_phone")),
            relationship=_str(record.get("emergency_contact_relationship")),
        ),
    )


def patient_to_record(patient: Patient) -> Dict[str, Any]:
    contact = patient.emergency_contact or EmergencyContact()
    return {
        "Id": patient.patient_id,
        "Name": patient.name or patient.display_name,
        "first_name": patient.first_name,
        "last_name": patient.last_name,
        "date_of_birth": _moment_out(patient.date_of_birth),
        "gender": patient.gender,
        "phone": patient.phone,
        "email": patient.email,
        "address": patient.address,
        "department": patient.department,
        "assigned_doctor": patient.assigned_doctor,
        "bed_number": patient.bed_number,
        "current_status": patient.current_status,
        "admission_date": _moment_out(patient.admission_date),
        "emergency_contact_name": contact.name,
        "emergency_contact_phone": contact.phone,
        "emergency_contact_relationship": contact.relationship,
    }


def appointment_from_record(record: Dict[str, Any]) -> Appointment:
    duration = _opt_int(record.get("duration"))
    return Appointment(
        appointment_id=_opt_int(record.get("Id")),
        patient_id=_opt_int(record.get("patient_id")),
        doctor_id=_opt_str(record.get("doctor_id")),
        date_time=_moment_in(record.get("date_time")),
        duration=30 if duration is None else duration,
        appointment_type=_str(record.get("type"), "consultation"),
        status=_str(record.get("status"), "pending"),
        department=_opt_str(record.get("department")),
        room=_opt_str(record.get("room")),
        notes=_str(record.get("notes")),
    )


def appointment_to_record(appointment: Appointment) -> Dict[str, Any]:
    return {
        "Id": appointment.appointment_id,
        "patient_id": appointment.patient_id,
        "doctor_id": appointment.doctor_id,
        "date_time": _moment_out(appointment.date_time),
        "duration": appointment.duration,
        "type": appointment.appointment_type,
        "status": appointment.status,
        "department": appointment.department,
        "room": appointment.room,
        "notes": appointment.notes,
    }


def bed_from_record(record: Dict[str, Any]) -> Bed:
    return Bed(
        bed_id=_opt_int(record.get("Id")),
        ward=_str(record.get("ward")),
        number=_str(record.get("number")),
        status=_str(record.get("status"), "available"),
        patient_id=_opt_int(record.get("patient_id")),
        last_cleaned=_moment_in(record.get("last_cleaned")),
    )


def bed_to_record(bed: Bed) -> Dict[str, Any]:
    return {
        "Id": bed.bed_id,
        "ward": bed.ward,
        "number": bed.number,
        "status": bed.status,
        "patient_id": bed.patient_id,
        "last_cleaned": _moment_out(bed.last_cleaned),
    }


def staff_from_record(record: Dict[str, Any]) -> Staff:
    return Staff(
        staff_id=_opt_int(record.get("Id")),
        name=_str(record.get("Name")),
        role=_str(record.get("role")),
        department=_opt_str(record.get("department")),
        specialization=_str(record.get("specialization")),
        availability=_str(record.get("availability"), "available"),
        current_patients=_id_list_in(record.get("current_patients")),
    )


def staff_to_record(member: Staff) -> Dict[str, Any]:
    return {
        "Id": member.staff_id,
        "Name": member.name,
        "role": member.role,
        "department": member.department,
        "specialization": member.specialization,
        "availability": member.availability,
        "current_patients": ",".join(str(i) for i in member.current_patients),
    }


# ---------------- Snapshot persistence ----------------


def patients_to_df(patients: List[Patient]) -> pd.DataFrame:
    return pd.DataFrame.from_records([patient_to_record(p) for p in patients], columns=PATIENT_COLUMNS)


def appointments_to_df(appointments: List[Appointment]) -> pd.DataFrame:
    return pd.DataFrame.from_records(
        [appointment_to_record(a) for a in appointments], columns=APPOINTMENT_COLUMNS
    )


def beds_to_df(beds: List[Bed]) -> pd.DataFrame:
    return pd.DataFrame.from_records([bed_to_record(b) for b in beds], columns=BED_COLUMNS)


def staff_to_df(staff: List[Staff]) -> pd.DataFrame:
    return pd.DataFrame.from_records([staff_to_record(s) for s in staff], columns=STAFF_COLUMNS)


def save_snapshot(snapshot: Snapshot, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    patients_to_df(snapshot.patients).to_csv(out_dir / PATIENTS_CSV, index=False)
    appointments_to_df(snapshot.appointments).to_csv(out_dir / APPOINTMENTS_CSV, index=False)
    beds_to_df(snapshot.beds).to_csv(out_dir / BEDS_CSV, index=False)
    staff_to_df(snapshot.staff).to_csv(out_dir / STAFF_CSV, index=False)
    logger.info(
        "Wrote snapshot to %s (%d patients, %d appointments, %d beds, %d staff)",
        out_dir,
        len(snapshot.patients),
        len(snapshot.appointments),
        len(snapshot.beds),
        len(snapshot.staff),
    )


def snapshot_exists(data_dir: Path) -> bool:
    return all((data_dir / f).exists() for f in [PATIENTS_CSV, APPOINTMENTS_CSV, BEDS_CSV, STAFF_CSV])


def _records(path: Path) -> List[Dict[str, Any]]:
    # strings throughout so phone numbers and bed numbers keep their form
    return pd.read_csv(path, dtype=str).to_dict(orient="records")


def load_snapshot(data_dir: Path) -> Snapshot:
    if not snapshot_exists(data_dir):
        raise FileNotFoundError(f"Missing patients/appointments/beds/staff CSV under {data_dir}")

    snapshot = Snapshot(
        patients=[patient_from_record(r) for r in _records(data_dir / PATIENTS_CSV)],
        appointments=[appointment_from_record(r) for r in _records(data_dir / APPOINTMENTS_CSV)],
        beds=[bed_from_record(r) for r in _records(data_dir / BEDS_CSV)],
        staff=[staff_from_record(r) for r in _records(data_dir / STAFF_CSV)],
    )
    logger.info("Loaded snapshot from %s (%d patients)", data_dir, len(snapshot.patients))
    return snapshot
