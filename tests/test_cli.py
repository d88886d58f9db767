"""Smoke tests for the command-line interface."""

from pathlib import Path

import pandas as pd
import pytest
import typer
from typer.testing import CliRunner

from hdash.adapters import load_snapshot, snapshot_exists
from hdash.cli import app
from hdash.config import DashboardConfig

runner = CliRunner()
AS_OF = "2024-01-17T12:00:00"


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    out = tmp_path / "data"
    result = runner.invoke(
        app, ["generate", "--data-dir", str(out), "--as-of", AS_OF, "--patients", "40", "--appointments", "30"]
    )
    assert result.exit_code == 0, result.output
    return out


def test_generate_writes_snapshot(data_dir: Path) -> None:
    assert snapshot_exists(data_dir)


@pytest.mark.parametrize(
    "args, title",
    [
        (["dashboard"], "Dashboard"),
        (["patients", "--status", "critical"], "Patients"),
        (["beds", "--ward", "ICU"], "ICU ward"),
        (["departments", "--department", "ICU"], "Departments"),
        (["appointments"], "Appointments"),
        (["report", "--range", "month"], "Report (month)"),
    ],
)
def test_views_render(data_dir: Path, args, title) -> None:
    result = runner.invoke(app, [*args, "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code == 0, result.output
    assert title in result.output


def test_missing_snapshot_is_generated(tmp_path: Path) -> None:
    result = runner.invoke(app, ["dashboard", "--data-dir", str(tmp_path / "fresh"), "--as-of", AS_OF])

    assert result.exit_code == 0, result.output
    assert snapshot_exists(tmp_path / "fresh")


def test_report_writes_outputs(data_dir: Path, tmp_path: Path) -> None:
    csv_out = tmp_path / "departments.csv"
    png_out = tmp_path / "overview.png"

    result = runner.invoke(
        app,
        ["report", "--data-dir", str(data_dir), "--as-of", AS_OF, "--csv-out", str(csv_out), "--png-out", str(png_out)],
    )

    assert result.exit_code == 0, result.output
    assert csv_out.read_text().startswith("department,patients,share")
    assert png_out.exists()


def test_bad_arguments_exit_nonzero(data_dir: Path) -> None:
    bad_range = runner.invoke(app, ["report", "--data-dir", str(data_dir), "--as-of", AS_OF, "--range", "decade"])
    bad_as_of = runner.invoke(app, ["dashboard", "--data-dir", str(data_dir), "--as-of", "yesterday"])

    assert bad_range.exit_code != 0
    assert bad_as_of.exit_code != 0


def test_set_status_round_trip(data_dir: Path) -> None:
    result = runner.invoke(app, ["set-status", "3", "discharge-pending", "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code == 0, result.output
    reloaded = load_snapshot(data_dir)
    assert next(p for p in reloaded.patients if p.patient_id == 3).current_status == "discharge-pending"
    assert len(reloaded.patients) == 40


def test_set_status_rejects_unknown_status(data_dir: Path) -> None:
    result = runner.invoke(app, ["set-status", "3", "recovering", "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code != 0


def test_bed_status_cleaning_stamps_as_of(data_dir: Path) -> None:
    result = runner.invoke(app, ["bed-status", "1", "cleaning", "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code == 0, result.output
    bed = next(b for b in load_snapshot(data_dir).beds if b.bed_id == 1)
    assert bed.status == "cleaning"
    assert bed.patient_id is None
    assert bed.last_cleaned == AS_OF


def test_bed_status_assigns_patient(data_dir: Path) -> None:
    result = runner.invoke(
        app, ["bed-status", "2", "occupied", "--patient-id", "7", "--data-dir", str(data_dir), "--as-of", AS_OF]
    )

    assert result.exit_code == 0, result.output
    bed = next(b for b in load_snapshot(data_dir).beds if b.bed_id == 2)
    assert (bed.status, bed.patient_id) == ("occupied", 7)


def test_patient_detail_shows_overview_contact_and_timeline(data_dir: Path) -> None:
    result = runner.invoke(app, ["patient", "1", "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code == 0, result.output
    assert "Patient 1" in result.output
    assert "Emergency contact" in result.output
    assert "Patient Admitted" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["patient", "9999"],
        ["set-status", "9999", "stable"],
        ["edit-patient", "9999", "--phone", "555-0000"],
        ["bed-status", "9999", "available"],
    ],
)
def test_unknown_id_exits_nonzero(data_dir: Path, args) -> None:
    result = runner.invoke(app, [*args, "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_then_edit_patient(data_dir: Path) -> None:
    added = runner.invoke(
        app,
        [
            "add-patient", "--first-name", "Nora", "--last-name", "Quinn", "--department", "ICU",
            "--contact-name", "Sam Quinn", "--data-dir", str(data_dir), "--as-of", AS_OF,
        ],
    )
    assert added.exit_code == 0, added.output

    edited = runner.invoke(
        app, ["edit-patient", "41", "--status", "critical", "--phone", "555-0199", "--data-dir", str(data_dir)]
    )
    assert edited.exit_code == 0, edited.output

    newest = load_snapshot(data_dir).patients[0]
    assert newest.patient_id == 41
    assert newest.display_name == "Nora Quinn"
    assert newest.current_status == "critical"
    assert newest.phone == "555-0199"
    assert newest.emergency_contact.name == "Sam Quinn"
    assert newest.admission_date == AS_OF


def test_edit_patient_needs_a_change(data_dir: Path) -> None:
    result = runner.invoke(app, ["edit-patient", "1", "--data-dir", str(data_dir), "--as-of", AS_OF])

    assert result.exit_code != 0


def test_report_capacity_changes_occupancy(data_dir: Path, tmp_path: Path) -> None:
    default_csv = tmp_path / "default.csv"
    small_csv = tmp_path / "small.csv"
    base = ["report", "--data-dir", str(data_dir), "--as-of", AS_OF]

    assert runner.invoke(app, [*base, "--csv-out", str(default_csv)]).exit_code == 0
    assert runner.invoke(app, [*base, "--capacity", "1", "--csv-out", str(small_csv)]).exit_code == 0

    default = pd.read_csv(default_csv)
    small = pd.read_csv(small_csv)
    assert (small["occupancy"] >= default["occupancy"]).all()
    assert small["occupancy"].sum() > default["occupancy"].sum()


def test_option_defaults_come_from_config() -> None:
    defaults = DashboardConfig()
    commands = typer.main.get_command(app).commands

    def default(command: str, option: str):
        return next(p.default for p in commands[command].params if p.name == option)

    assert default("generate", "seed") == defaults.seed
    assert default("generate", "patients") == defaults.patients
    assert default("generate", "appointments") == defaults.appointments
    assert default("dashboard", "limit") == defaults.recent_limit
    assert default("appointments", "limit") == defaults.upcoming_limit
    assert default("departments", "capacity") == defaults.bed_capacity_per_department
    assert default("report", "capacity") == defaults.bed_capacity_per_department
