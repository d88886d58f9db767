"""
Report assembly: engine results flattened into DataFrames and KPI dicts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .aggregation import (
    DEFAULTS,
    compute_appointment_rates,
    compute_bed_statistics,
    compute_department_statistics,
    compute_department_trend,
    compute_report_metrics,
    department_counts,
    department_share,
    resolve_patient_name,
    to_moment,
)
from .config import DEPARTMENTS
from .models import Appointment, Bed, Patient, Snapshot, Staff


def _department_order(patients: Sequence[Patient], departments: Optional[Sequence[str]]) -> List[str]:
    if departments is not None:
        return list(departments)
    seen = list(DEPARTMENTS)
    for dept in department_counts(patients):
        if dept not in seen:
            seen.append(dept)
    return seen


def department_frame(
    patients: Sequence[Patient],
    staff: Sequence[Staff],
    reference_date: datetime,
    departments: Optional[Sequence[str]] = None,
    bed_capacity: int = DEFAULTS.bed_capacity_per_department,
) -> pd.DataFrame:
    """One row per department: headcounts, share of all patients and weekly trend."""
    # counts carry the "Unassigned" bucket that per-department matching cannot see
    counts = department_counts(patients)
    total = len(patients)
    records = []
    for dept in _department_order(patients, departments):
        stats = compute_department_statistics(patients, staff, dept, bed_capacity=bed_capacity)
        trend = compute_department_trend(patients, dept, reference_date)
        records.append(
            {
                "department": dept,
                "patients": counts.get(dept, 0),
                "share": department_share(counts.get(dept, 0), total),
                "staff": stats.staff,
                "critical": stats.critical,
                "occupancy": stats.occupancy,
                "trend_delta": trend.delta,
                "trend_percentage": trend.percentage,
            }
        )
    return pd.DataFrame.from_records(
        records,
        columns=[
            "department",
            "patients",
            "share",
            "staff",
            "critical",
            "occupancy",
            "trend_delta",
            "trend_percentage",
        ],
    )


def ward_frame(beds: Sequence[Bed]) -> pd.DataFrame:
    """Bed statistics per ward, in order of first appearance."""
    wards: List[str] = []
    for bed in beds:
        if bed.ward not in wards:
            wards.append(bed.ward)
    records = []
    for ward in wards:
        stats = compute_bed_statistics([b for b in beds if b.ward == ward])
        records.append({"ward": ward, **vars(stats)})
    return pd.DataFrame.from_records(
        records,
        columns=["ward", "total", "available", "occupied", "cleaning", "maintenance", "occupancy_rate"],
    )


def appointments_frame(appointments: Sequence[Appointment], patients: Sequence[Patient]) -> pd.DataFrame:
    records = []
    for appt in appointments:
        moment = to_moment(appt.date_time)
        records.append(
            {
                "appointment_id": appt.appointment_id,
                "patient": resolve_patient_name(patients, appt.patient_id),
                "date_time": moment,
                "type": appt.appointment_type,
                "status": appt.status,
                "department": appt.department,
                "room": appt.room,
            }
        )
    return pd.DataFrame.from_records(
        records,
        columns=["appointment_id", "patient", "date_time", "type", "status", "department", "room"],
    )


def admissions_by_day(patients: Sequence[Patient]) -> pd.Series:
    """Daily admission counts; patients without a usable date are left out."""
    days = [m.date() for m in (to_moment(p.admission_date) for p in patients) if m is not None]
    if not days:
        return pd.Series(dtype="int64", name="admissions")
    return pd.Series(days, name="admissions").value_counts().sort_index()


def report_summary(snapshot: Snapshot, reference_date: datetime, date_range: str = "week") -> Dict[str, float]:
    metrics = compute_report_metrics(
        snapshot.patients, snapshot.appointments, snapshot.beds, reference_date, date_range=date_range
    )
    rates = compute_appointment_rates(snapshot.appointments, reference_date)
    summary: Dict[str, float] = {}
    summary["total_patients"] = metrics.total_patients
    summary["new_patients"] = metrics.new_patients
    summary["critical_patients"] = metrics.critical_patients
    summary["total_beds"] = metrics.total_beds
    summary["occupied_beds"] = metrics.occupied_beds
    summary["occupancy_rate"] = metrics.occupancy_rate
    summary["appointments"] = rates.total
    summary["completion_rate"] = metrics.completion_rate
    summary["cancelled_appointments"] = rates.cancelled
    return summary
