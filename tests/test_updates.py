"""Tests for patient and bed record updates."""

from datetime import datetime

import pytest

from hdash.aggregation import SnapshotTypeError
from hdash.models import Bed, Patient
from hdash.updates import (
    RecordNotFoundError,
    add_patient,
    edit_patient,
    find_patient,
    patient_timeline,
    set_bed_status,
    set_patient_status,
)

AS_OF = datetime(2024, 1, 17, 12, 0)


@pytest.fixture()
def patients():
    return [
        Patient(patient_id=1, first_name="Ava", last_name="Smith", department="ICU", current_status="critical",
                admission_date="2024-01-15T09:00:00"),
        Patient(patient_id=4, first_name="Ben", last_name="Okafor", department="Cardiology", current_status="stable"),
    ]


@pytest.fixture()
def beds():
    return [
        Bed(bed_id=1, ward="ICU", number="ICU-01", status="occupied", patient_id=1),
        Bed(bed_id=2, ward="ICU", number="ICU-02", status="available"),
    ]


def test_set_patient_status_returns_new_list(patients) -> None:
    updated = set_patient_status(patients, 1, "stable")

    assert updated[0].current_status == "stable"
    assert updated[1] is patients[1]
    assert patients[0].current_status == "critical"


def test_unknown_patient_or_status_is_rejected(patients) -> None:
    with pytest.raises(RecordNotFoundError):
        set_patient_status(patients, 99, "stable")
    with pytest.raises(ValueError):
        set_patient_status(patients, 1, "recovering")
    with pytest.raises(ValueError):
        edit_patient(patients, 1, patient_id=7)


def test_edit_patient_changes_only_given_fields(patients) -> None:
    updated = edit_patient(patients, 4, phone="555-0101", bed_number="CAR-03")

    assert updated[1].phone == "555-0101"
    assert updated[1].bed_number == "CAR-03"
    assert updated[1].first_name == "Ben"
    assert patients[1].phone is None


def test_find_patient_and_timeline(patients) -> None:
    found = find_patient(patients, 1)
    events = patient_timeline(found)

    assert found.display_name == "Ava Smith"
    assert [e["title"] for e in events] == ["Patient Admitted", "Status Updated"]
    assert events[0]["when"] == datetime(2024, 1, 15, 9, 0)
    assert events[0]["description"] == "Admitted to ICU department"
    assert events[1]["description"] == "Current status: critical"


def test_add_patient_takes_next_id_and_goes_first(patients) -> None:
    draft = Patient(patient_id=0, first_name="Chen", last_name="Li", current_status="critical")

    updated = add_patient(patients, draft, AS_OF)

    assert [p.patient_id for p in updated] == [5, 1, 4]
    assert updated[0].current_status == "admitted"
    assert updated[0].admission_date == AS_OF
    assert len(patients) == 2
    assert add_patient([], draft, AS_OF)[0].patient_id == 1


def test_add_patient_requires_reference_moment(patients) -> None:
    with pytest.raises(SnapshotTypeError):
        add_patient(patients, Patient(patient_id=0), "2024-01-17")


def test_bed_to_cleaning_stamps_last_cleaned_and_clears_occupant(beds) -> None:
    updated = set_bed_status(beds, 1, "cleaning", AS_OF)

    assert updated[0].status == "cleaning"
    assert updated[0].patient_id is None
    assert updated[0].last_cleaned == AS_OF
    assert beds[0].status == "occupied"


def test_bed_occupancy_keeps_previous_cleaning_stamp(beds) -> None:
    cleaned = set_bed_status(beds, 2, "cleaning", AS_OF)
    occupied = set_bed_status(cleaned, 2, "occupied", datetime(2024, 1, 18), patient_id=4)

    assert occupied[1].patient_id == 4
    assert occupied[1].last_cleaned == AS_OF


def test_bed_update_rejects_unknown_bed_or_status(beds) -> None:
    with pytest.raises(RecordNotFoundError):
        set_bed_status(beds, 42, "available", AS_OF)
    with pytest.raises(ValueError):
        set_bed_status(beds, 1, "broken", AS_OF)
