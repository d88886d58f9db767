from __future__ import annotations

import dataclasses
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from . import aggregation as agg
from .adapters import load_snapshot, save_snapshot, snapshot_exists
from .config import ALL, UNASSIGNED_DEPARTMENT, UNKNOWN_PATIENT, DashboardConfig
from .data_generation import DEFAULT_DATA_DIR, generate_snapshot
from .logging_setup import configure_logging
from .models import EmergencyContact, Moment, Patient, Snapshot
from .reporting import appointments_frame, department_frame, report_summary, ward_frame
from .updates import (
    RecordNotFoundError,
    add_patient,
    edit_patient,
    find_patient,
    patient_timeline,
    set_bed_status,
    set_patient_status,
)
from .visualize import plot_overview

console = Console()
app = typer.Typer(add_completion=False, no_args_is_help=True)
DEFAULTS = DashboardConfig()

DataDirOption = typer.Option(None, help="Snapshot directory; defaults to package data/.")
AsOfOption = typer.Option(None, help="Reference moment (ISO date or datetime); defaults to now.")
CapacityOption = typer.Option(
    DEFAULTS.bed_capacity_per_department, help="Nominal bed capacity per department."
)


@app.callback()
def main(log_level: str = typer.Option("WARNING", help="Log level for the hdash logger.")) -> None:
    try:
        configure_logging(log_level, console=console)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _as_of(text: Optional[str]) -> datetime:
    if text is None:
        return datetime.now()
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise typer.BadParameter(f"not an ISO date/datetime: {text}", param_hint="--as-of") from exc


def _snapshot(data_dir: Optional[Path], as_of: datetime) -> Snapshot:
    data_dir = data_dir or DEFAULT_DATA_DIR
    if snapshot_exists(data_dir):
        return load_snapshot(data_dir)
    console.log(f"No snapshot under {data_dir}; generating one", style="bold")
    snapshot = generate_snapshot(DEFAULTS, as_of)
    save_snapshot(snapshot, data_dir)
    return snapshot


@app.command("generate")
def generate(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    seed: int = typer.Option(DEFAULTS.seed, help="Random seed."),
    patients: int = typer.Option(DEFAULTS.patients, help="Number of patients."),
    appointments: int = typer.Option(DEFAULTS.appointments, help="Number of appointments."),
) -> None:
    cfg = dataclasses.replace(DEFAULTS, seed=seed, patients=patients, appointments=appointments)
    out_dir = data_dir or DEFAULT_DATA_DIR
    snapshot = generate_snapshot(cfg, _as_of(as_of))
    save_snapshot(snapshot, out_dir)
    console.log(
        f"Saved {len(snapshot.patients)} patients, {len(snapshot.appointments)} appointments, "
        f"{len(snapshot.beds)} beds and {len(snapshot.staff)} staff to {out_dir}"
    )


@app.command("dashboard")
def dashboard(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    limit: int = typer.Option(DEFAULTS.recent_limit, help="Recent admissions to list."),
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    metrics = agg.compute_dashboard_metrics(snap.patients, snap.appointments, snap.beds, now)
    _print_metrics("Dashboard", vars(metrics))

    table = Table(title="Recent admissions", show_header=True, header_style="bold magenta")
    for col in ["Patient", "Department", "Status", "Admitted"]:
        table.add_column(col)
    for p in agg.recent_admissions(snap.patients, now, limit=limit):
        table.add_row(
            agg.resolve_patient_name(snap.patients, p.patient_id),
            p.department or "-",
            p.current_status,
            _when(p.admission_date),
        )
    console.print(table)


@app.command("patients")
def patients(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    search: str = typer.Option("", help="Match name, phone or department."),
    status: str = typer.Option(ALL, help="Patient status or 'all'."),
    department: str = typer.Option(ALL, help="Department or 'all'."),
) -> None:
    snap = _snapshot(data_dir, _as_of(as_of))
    found = agg.filter_patients(snap.patients, search, status, department)
    table = Table(
        title=f"Patients ({len(found)} of {len(snap.patients)})", show_header=True, header_style="bold magenta"
    )
    for col in ["Id", "Name", "Department", "Status", "Phone", "Bed", "Admitted"]:
        table.add_column(col)
    for p in found:
        table.add_row(
            str(p.patient_id),
            p.display_name or UNKNOWN_PATIENT,
            p.department or "-",
            p.current_status,
            p.phone or "-",
            p.bed_number or "-",
            _when(p.admission_date),
        )
    console.print(table)


@app.command("beds")
def beds(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    ward: str = typer.Option(ALL, help="Ward or 'all'."),
) -> None:
    snap = _snapshot(data_dir, _as_of(as_of))
    selected = agg.filter_beds_by_ward(snap.beds, ward)
    _print_metrics("Beds" if ward == ALL else f"{ward} ward", vars(agg.compute_bed_statistics(selected)))
    _print_frame("Wards", ward_frame(selected))

    table = Table(title="Occupied beds", show_header=True, header_style="bold magenta")
    for col in ["Bed", "Ward", "Patient"]:
        table.add_column(col)
    for bed in selected:
        if bed.status == "occupied":
            table.add_row(bed.number, bed.ward, agg.resolve_patient_name(snap.patients, bed.patient_id))
    console.print(table)


@app.command("departments")
def departments(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    department: str = typer.Option(ALL, help="List patients of one department."),
    capacity: int = CapacityOption,
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    _print_frame("Departments", department_frame(snap.patients, snap.staff, now, bed_capacity=capacity))
    if department != ALL:
        members = agg.filter_by_department(snap.patients, department)
        table = Table(title=f"{department} patients", show_header=True, header_style="bold magenta")
        for col in ["Name", "Status", "Doctor"]:
            table.add_column(col)
        for p in members:
            table.add_row(p.display_name or UNKNOWN_PATIENT, p.current_status, p.assigned_doctor or "-")
        console.print(table)


@app.command("appointments")
def appointments(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    limit: int = typer.Option(DEFAULTS.upcoming_limit, help="Upcoming appointments to list."),
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    _print_metrics("Appointments", vars(agg.compute_appointment_rates(snap.appointments, now)))
    _print_frame("Today", appointments_frame(agg.todays_appointments(snap.appointments, now), snap.patients))
    upcoming = agg.upcoming_appointments(snap.appointments, now)[: max(0, limit)]
    _print_frame("Upcoming", appointments_frame(upcoming, snap.patients))


@app.command("report")
def report(
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
    date_range: str = typer.Option("week", "--range", help="week, month or year."),
    plot: bool = typer.Option(False, help="Show matplotlib overview."),
    csv_out: Optional[Path] = typer.Option(None, help="Path to save the department table."),
    png_out: Optional[Path] = typer.Option(None, help="Path to save plot instead of showing."),
    capacity: int = CapacityOption,
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    try:
        summary = report_summary(snap, now, date_range=date_range)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--range") from exc
    _print_metrics(f"Report ({date_range})", summary)

    depts = department_frame(snap.patients, snap.staff, now, bed_capacity=capacity)
    _print_frame("Department analytics", depts)
    if csv_out:
        depts.to_csv(csv_out, index=False)
        console.log(f"Saved department table to {csv_out}")

    if plot or png_out:
        plot_overview(snap, now, outfile=png_out)


@app.command("patient")
def patient(
    patient_id: int = typer.Argument(..., help="Patient id."),
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
) -> None:
    snap = _snapshot(data_dir, _as_of(as_of))
    found = _find_or_exit(snap, patient_id)
    _print_metrics(
        f"Patient {found.patient_id}",
        {
            "name": found.display_name or UNKNOWN_PATIENT,
            "status": found.current_status,
            "department": found.department or UNASSIGNED_DEPARTMENT,
            "doctor": found.assigned_doctor or "-",
            "bed": found.bed_number or "-",
            "date_of_birth": _when(found.date_of_birth),
            "gender": found.gender or "-",
            "phone": found.phone or "-",
            "email": found.email or "-",
            "address": found.address or "-",
            "admitted": _when(found.admission_date),
        },
    )
    contact = found.emergency_contact
    _print_metrics(
        "Emergency contact",
        {
            "name": contact.name or "-",
            "phone": contact.phone or "-",
            "relationship": contact.relationship or "-",
        },
    )
    table = Table(title="Timeline", show_header=True, header_style="bold magenta")
    for col in ["When", "Event", "Details"]:
        table.add_column(col)
    for event in patient_timeline(found):
        table.add_row(_when(event["when"]) if event["when"] else "-", event["title"], event["description"])
    console.print(table)


@app.command("set-status")
def set_status(
    patient_id: int = typer.Argument(..., help="Patient id."),
    status: str = typer.Argument(..., help="admitted, critical, stable or discharge-pending."),
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
) -> None:
    snap = _snapshot(data_dir, _as_of(as_of))
    _find_or_exit(snap, patient_id)
    try:
        updated = set_patient_status(snap.patients, patient_id, status)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="status") from exc
    _save(dataclasses.replace(snap, patients=updated), data_dir)
    console.log(f"Patient {patient_id} status set to {status}")


@app.command("bed-status")
def bed_status(
    bed_id: int = typer.Argument(..., help="Bed id."),
    status: str = typer.Argument(..., help="available, occupied, cleaning or maintenance."),
    patient_id: Optional[int] = typer.Option(None, help="Occupant; omit to clear the bed."),
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    try:
        updated = set_bed_status(snap.beds, bed_id, status, now, patient_id=patient_id)
    except RecordNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="status") from exc
    _save(dataclasses.replace(snap, beds=updated), data_dir)
    console.log(f"Bed {bed_id} set to {status}")


@app.command("add-patient")
def add_patient_command(
    first_name: str = typer.Option(..., help="First name."),
    last_name: str = typer.Option(..., help="Last name."),
    department: Optional[str] = typer.Option(None, help="Department."),
    doctor: Optional[str] = typer.Option(None, help="Assigned doctor."),
    date_of_birth: Optional[str] = typer.Option(None, help="ISO date of birth."),
    gender: str = typer.Option("", help="Gender."),
    phone: Optional[str] = typer.Option(None, help="Phone number."),
    email: Optional[str] = typer.Option(None, help="Email address."),
    address: Optional[str] = typer.Option(None, help="Postal address."),
    contact_name: str = typer.Option("", help="Emergency contact name."),
    contact_phone: str = typer.Option("", help="Emergency contact phone."),
    contact_relationship: str = typer.Option("", help="Emergency contact relationship."),
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
) -> None:
    now = _as_of(as_of)
    snap = _snapshot(data_dir, now)
    draft = Patient(
        patient_id=0,
        first_name=first_name,
        last_name=last_name,
        department=department,
        assigned_doctor=doctor,
        date_of_birth=date_of_birth,
        gender=gender,
        phone=phone,
        email=email,
        address=address,
        emergency_contact=EmergencyContact(contact_name, contact_phone, contact_relationship),
    )
    updated = add_patient(snap.patients, draft, now)
    _save(dataclasses.replace(snap, patients=updated), data_dir)
    console.log(f"Registered patient {updated[0].patient_id}: {updated[0].display_name}")


@app.command("edit-patient")
def edit_patient_command(
    patient_id: int = typer.Argument(..., help="Patient id."),
    first_name: Optional[str] = typer.Option(None, help="First name."),
    last_name: Optional[str] = typer.Option(None, help="Last name."),
    department: Optional[str] = typer.Option(None, help="Department."),
    doctor: Optional[str] = typer.Option(None, help="Assigned doctor."),
    bed_number: Optional[str] = typer.Option(None, help="Bed number."),
    status: Optional[str] = typer.Option(None, help="Patient status."),
    phone: Optional[str] = typer.Option(None, help="Phone number."),
    email: Optional[str] = typer.Option(None, help="Email address."),
    address: Optional[str] = typer.Option(None, help="Postal address."),
    data_dir: Optional[Path] = DataDirOption,
    as_of: Optional[str] = AsOfOption,
) -> None:
    snap = _snapshot(data_dir, _as_of(as_of))
    _find_or_exit(snap, patient_id)
    given: Dict[str, Any] = {
        "first_name": first_name,
        "last_name": last_name,
        "department": department,
        "assigned_doctor": doctor,
        "bed_number": bed_number,
        "current_status": status,
        "phone": phone,
        "email": email,
        "address": address,
    }
    changes = {key: val for key, val in given.items() if val is not None}
    if not changes:
        raise typer.BadParameter("nothing to change; pass at least one field option")
    try:
        updated = edit_patient(snap.patients, patient_id, **changes)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--status") from exc
    _save(dataclasses.replace(snap, patients=updated), data_dir)
    console.log(f"Patient {patient_id} updated: {', '.join(sorted(changes))}")


def _find_or_exit(snap: Snapshot, patient_id: int) -> Patient:
    try:
        return find_patient(snap.patients, patient_id)
    except RecordNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


def _save(snap: Snapshot, data_dir: Optional[Path]) -> None:
    save_snapshot(snap, data_dir or DEFAULT_DATA_DIR)


def _when(value: Moment) -> str:
    moment = agg.to_moment(value)
    return moment.strftime("%Y-%m-%d %H:%M") if moment else "unknown"


def _print_metrics(title: str, metrics: Dict[str, Any]) -> None:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Metric")
    table.add_column("Value")
    for key, val in metrics.items():
        table.add_row(key, f"{val:0.3f}" if isinstance(val, float) else str(val))
    console.print(table)


def _print_frame(title: str, df: pd.DataFrame) -> None:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for col in df.columns:
        table.add_column(str(col))
    for row in df.itertuples(index=False):
        table.add_row(*["-" if pd.isna(v) else str(v) for v in row])
    console.print(table)
