"""
Synthetic snapshot generation for demos and local runs.

All draws come from generators seeded off ``DashboardConfig.seed`` and every
timestamp is placed relative to the caller's ``as_of``, so the same
inputs always yield the same snapshot.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from random import Random
from typing import List

import numpy as np

from .config import (
    APPOINTMENT_STATUSES,
    APPOINTMENT_TYPES,
    BED_STATUSES,
    DEPARTMENTS,
    GENDERS,
    PATIENT_STATUSES,
    STAFF_ROLES,
    WARDS,
    DashboardConfig,
)
from .models import Appointment, Bed, EmergencyContact, Patient, Snapshot, Staff

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"

FIRST_NAMES = ["Ava", "Noah", "Mia", "Liam", "Zoe", "Ethan", "Leah", "Omar", "Priya", "Mateo", "Hana", "Jonas"]
LAST_NAMES = ["Smith", "Garcia", "Chen", "Okafor", "Novak", "Patel", "Kim", "Silva", "Larsen", "Haddad"]
RELATIONSHIPS = ["spouse", "parent", "sibling", "child", "friend"]
SPECIALIZATIONS = {
    "Emergency": "Emergency Medicine",
    "Cardiology": "Interventional Cardiology",
    "Neurology": "Clinical Neurophysiology",
    "Pediatrics": "General Pediatrics",
    "Orthopedics": "Sports Medicine",
    "ICU": "Critical Care",
}


def _phone(rng: Random) -> str:
    return f"555-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}"


def _draw_patient(patient_id: int, rng: Random, admitted: datetime, as_of: datetime) -> Patient:
    first = rng.choice(FIRST_NAMES)
    last = rng.choice(LAST_NAMES)
    born = as_of - timedelta(days=rng.randint(1, 90) * 365 + rng.randint(0, 364))
    status = rng.choices(PATIENT_STATUSES, weights=[0.45, 0.12, 0.33, 0.10])[0]
    return Patient(
        patient_id=patient_id,
        first_name=first,
        last_name=last,
        name=f"{first} {last}",
        date_of_birth=born.date(),
        gender=rng.choice(GENDERS),
        phone=_phone(rng),
        email=f"{first.lower()}.{last.lower()}{patient_id}@example.org",
        department=rng.choice(DEPARTMENTS),
        assigned_doctor=f"Dr. {rng.choice(LAST_NAMES)}",
        current_status=status,
        admission_date=admitted,
        emergency_contact=EmergencyContact(
            name=f"{rng.choice(FIRST_NAMES)} {last}",
            phone=_phone(rng),
            relationship=rng.choice(RELATIONSHIPS),
        ),
    )


def generate_patients(cfg: DashboardConfig, as_of: datetime) -> List[Patient]:
    rng = Random(cfg.seed)
    # admissions skew recent: exponential age in minutes, clipped to the history window
    history = cfg.history_days * 24 * 60
    ages = np.clip(np.random.default_rng(cfg.seed).exponential(history / 3, cfg.patients), 0, history)
    return [
        _draw_patient(i + 1, rng, as_of - timedelta(minutes=int(age)), as_of) for i, age in enumerate(ages)
    ]


def generate_beds(cfg: DashboardConfig, patients: List[Patient], as_of: datetime) -> List[Bed]:
    rng = Random(cfg.seed + 7)
    beds: List[Bed] = []
    waiting = list(patients)
    rng.shuffle(waiting)
    for ward in WARDS:
        for n in range(cfg.beds_per_ward):
            status = rng.choices(BED_STATUSES, weights=[0.35, 0.5, 0.1, 0.05])[0]
            patient_id = None
            if status == "occupied" and waiting:
                patient = waiting.pop()
                patient_id = patient.patient_id
                patient.bed_number = f"{ward[:3].upper()}-{n + 1:02d}"
            elif status == "occupied":
                status = "available"
            cleaned = as_of - timedelta(hours=rng.randint(1, 72)) if rng.random() < 0.8 else None
            beds.append(
                Bed(
                    bed_id=len(beds) + 1,
                    ward=ward,
                    number=f"{ward[:3].upper()}-{n + 1:02d}",
                    status=status,
                    patient_id=patient_id,
                    last_cleaned=cleaned,
                )
            )
    return beds


def generate_staff(cfg: DashboardConfig, patients: List[Patient]) -> List[Staff]:
    rng = Random(cfg.seed + 13)
    staff: List[Staff] = []
    for i in range(cfg.staff):
        department = DEPARTMENTS[i % len(DEPARTMENTS)]
        role = rng.choices(STAFF_ROLES, weights=[0.4, 0.45, 0.15])[0]
        in_dept = [p.patient_id for p in patients if p.department == department]
        caseload = rng.sample(in_dept, k=min(len(in_dept), rng.randint(0, 6))) if role != "technician" else []
        staff.append(
            Staff(
                staff_id=i + 1,
                name=f"{'Dr. ' if role == 'doctor' else ''}{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                role=role,
                department=department,
                specialization=SPECIALIZATIONS[department] if role == "doctor" else "",
                availability=rng.choice(["available", "on-call", "off-duty"]),
                current_patients=caseload,
            )
        )
    return staff


def generate_appointments(
    cfg: DashboardConfig, patients: List[Patient], staff: List[Staff], as_of: datetime
) -> List[Appointment]:
    rng = Random(cfg.seed + 21)
    doctors = [s for s in staff if s.role == "doctor"]
    appointments: List[Appointment] = []
    day_start = as_of.replace(hour=8, minute=0, second=0, microsecond=0)
    for i in range(cfg.appointments):
        patient = rng.choice(patients) if patients else None
        doctor = rng.choice(doctors) if doctors else None
        # slots on half-hour boundaries across two weeks either side of as_of
        when = day_start + timedelta(days=rng.randint(-14, 14), minutes=30 * rng.randint(0, 18))
        if when < as_of:
            status = rng.choices(APPOINTMENT_STATUSES, weights=[0.05, 0.05, 0.75, 0.15])[0]
        else:
            status = rng.choices(APPOINTMENT_STATUSES, weights=[0.5, 0.45, 0.0, 0.05])[0]
        appointments.append(
            Appointment(
                appointment_id=i + 1,
                patient_id=patient.patient_id if patient else None,
                doctor_id=str(doctor.staff_id) if doctor else None,
                date_time=when,
                duration=rng.choice([15, 30, 45, 60]),
                appointment_type=rng.choice(APPOINTMENT_TYPES),
                status=status,
                department=doctor.department if doctor else None,
                room=f"R{rng.randint(100, 450)}",
            )
        )
    return appointments


def generate_snapshot(cfg: DashboardConfig, as_of: datetime) -> Snapshot:
    patients = generate_patients(cfg, as_of)
    beds = generate_beds(cfg, patients, as_of)
    staff = generate_staff(cfg, patients)
    appointments = generate_appointments(cfg, patients, staff, as_of)
    return Snapshot(patients=patients, appointments=appointments, beds=beds, staff=staff)
