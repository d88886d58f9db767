"""Tests for report assembly."""

from datetime import datetime

from hdash.models import Appointment, Bed, Patient, Snapshot, Staff
from hdash.reporting import (
    admissions_by_day,
    appointments_frame,
    department_frame,
    report_summary,
    ward_frame,
)

REF = datetime(2024, 1, 17)


def _snapshot() -> Snapshot:
    patients = [
        Patient(patient_id=1, first_name="Ava", last_name="Smith", department="ICU", current_status="critical",
                admission_date="2024-01-15"),
        Patient(patient_id=2, first_name="Noah", last_name="Chen", department="ICU", admission_date="2024-01-05"),
        Patient(patient_id=3, first_name="Mia", last_name="Kim", department="ICU", admission_date="2024-01-06"),
        Patient(patient_id=4, first_name="Liam", last_name="Novak", department="Cardiology",
                admission_date="2024-01-15T10:00:00"),
        Patient(patient_id=5, name="Zoe Patel", department=None, admission_date=None),
    ]
    beds = [
        Bed(bed_id=1, ward="ICU", status="occupied", patient_id=1),
        Bed(bed_id=2, ward="ICU", status="available"),
        Bed(bed_id=3, ward="General", status="cleaning"),
    ]
    staff = [Staff(staff_id=1, department="ICU"), Staff(staff_id=2, department="Cardiology")]
    appointments = [
        Appointment(appointment_id=1, patient_id=4, status="completed", date_time="2024-01-16T09:00:00"),
        Appointment(appointment_id=2, patient_id=404, status="cancelled", date_time="2024-01-18T09:00:00"),
    ]
    return Snapshot(patients=patients, appointments=appointments, beds=beds, staff=staff)


def test_department_frame_rows() -> None:
    snap = _snapshot()

    df = department_frame(snap.patients, snap.staff, REF, departments=["ICU", "Cardiology", "Unassigned"])

    assert list(df["department"]) == ["ICU", "Cardiology", "Unassigned"]
    icu = df.set_index("department").loc["ICU"]
    assert icu["patients"] == 3
    assert icu["share"] == 60
    assert icu["staff"] == 1
    assert icu["critical"] == 1
    assert icu["occupancy"] == 6
    assert icu["trend_delta"] == -1
    assert icu["trend_percentage"] == -50
    assert df.set_index("department").loc["Unassigned", "patients"] == 1


def test_department_frame_default_order_includes_known_departments() -> None:
    snap = _snapshot()

    df = department_frame(snap.patients, snap.staff, REF)

    assert list(df["department"][:6]) == ["Emergency", "Cardiology", "Neurology", "Pediatrics", "Orthopedics", "ICU"]
    assert "Unassigned" in set(df["department"])
    assert df["patients"].sum() == 5


def test_ward_frame_groups_beds() -> None:
    df = ward_frame(_snapshot().beds)

    assert list(df["ward"]) == ["ICU", "General"]
    assert list(df["occupancy_rate"]) == [50, 0]
    assert list(df["cleaning"]) == [0, 1]


def test_appointments_frame_resolves_names() -> None:
    snap = _snapshot()

    df = appointments_frame(snap.appointments, snap.patients)

    assert list(df["patient"]) == ["Liam Novak", "Unknown Patient"]
    assert list(df["status"]) == ["completed", "cancelled"]


def test_admissions_by_day_skips_unknown_dates() -> None:
    daily = admissions_by_day(_snapshot().patients)

    assert daily.sum() == 4
    assert daily.max() == 2
    assert admissions_by_day([]).empty


def test_report_summary() -> None:
    summary = report_summary(_snapshot(), REF, date_range="month")

    assert summary["total_patients"] == 5
    assert summary["new_patients"] == 4
    assert summary["critical_patients"] == 1
    assert summary["occupancy_rate"] == 33
    assert summary["completion_rate"] == 50
    assert summary["cancelled_appointments"] == 1
