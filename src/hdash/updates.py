"""
Record updates: patient lookup and timeline, status changes, registration and edits.

Like the aggregation engine these take a snapshot list and return a new one;
the caller persists the result through ``adapters.save_snapshot``.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .aggregation import require_collection, require_moment, to_moment
from .config import BED_STATUSES, PATIENT_STATUSES
from .models import Bed, Patient

logger = logging.getLogger(__name__)

EDITABLE_PATIENT_FIELDS = {
    "first_name",
    "last_name",
    "name",
    "date_of_birth",
    "gender",
    "phone",
    "email",
    "address",
    "department",
    "assigned_doctor",
    "bed_number",
    "current_status",
    "emergency_contact",
}


class RecordNotFoundError(LookupError):
    """Raised when an id does not match any record in the snapshot."""


def _check_status(status: str, allowed: Sequence[str], kind: str) -> None:
    if status not in allowed:
        raise ValueError(f"Unknown {kind} status {status!r}; expected one of {list(allowed)}")


def find_patient(patients: Sequence[Patient], patient_id: Any) -> Patient:
    require_collection(patients, "patients")
    for patient in patients:
        if patient.patient_id == patient_id:
            return patient
    raise RecordNotFoundError(f"Patient {patient_id} not found")


def patient_timeline(patient: Patient) -> List[Dict[str, Any]]:
    """Admission and current-status events for the patient detail view."""
    return [
        {
            "when": to_moment(patient.admission_date),
            "title": "Patient Admitted",
            "description": f"Admitted to {patient.department or 'Unassigned'} department",
        },
        {
            "when": None,
            "title": "Status Updated",
            "description": f"Current status: {patient.current_status}",
        },
    ]


def edit_patient(patients: Sequence[Patient], patient_id: Any, **changes: Any) -> List[Patient]:
    require_collection(patients, "patients")
    unknown = set(changes) - EDITABLE_PATIENT_FIELDS
    if unknown:
        raise ValueError(f"Cannot edit patient fields {sorted(unknown)}")
    if "current_status" in changes:
        _check_status(changes["current_status"], PATIENT_STATUSES, "patient")
    target = find_patient(patients, patient_id)
    updated = dataclasses.replace(target, **changes)
    logger.info("Patient %s updated: %s", patient_id, sorted(changes))
    return [updated if p is target else p for p in patients]


def set_patient_status(patients: Sequence[Patient], patient_id: Any, status: str) -> List[Patient]:
    return edit_patient(patients, patient_id, current_status=status)


def add_patient(patients: Sequence[Patient], patient: Patient, as_of: datetime) -> List[Patient]:
    """Register ``patient`` with the next free id, admitted at ``as_of``; newest first."""
    require_collection(patients, "patients")
    admitted = require_moment(as_of, "as_of")
    next_id = max((p.patient_id for p in patients if p.patient_id is not None), default=0) + 1
    created = dataclasses.replace(
        patient, patient_id=next_id, current_status="admitted", admission_date=admitted
    )
    logger.info("Registered patient %s", next_id)
    return [created, *patients]


def set_bed_status(
    beds: Sequence[Bed],
    bed_id: Any,
    status: str,
    as_of: datetime,
    patient_id: Optional[int] = None,
) -> List[Bed]:
    """Change a bed's status and occupant; moving to cleaning stamps ``last_cleaned``."""
    require_collection(beds, "beds")
    _check_status(status, BED_STATUSES, "bed")
    stamp = require_moment(as_of, "as_of")
    target = None
    for bed in beds:
        if bed.bed_id == bed_id:
            target = bed
            break
    if target is None:
        raise RecordNotFoundError(f"Bed {bed_id} not found")
    changes: Dict[str, Any] = {"status": status, "patient_id": patient_id}
    if status == "cleaning":
        changes["last_cleaned"] = stamp
    updated = dataclasses.replace(target, **changes)
    logger.info("Bed %s set to %s", bed_id, status)
    return [updated if b is target else b for b in beds]
