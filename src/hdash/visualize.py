"""
Lightweight visualizations for quick inspection.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import matplotlib

# Use a non-interactive backend to avoid display issues in headless environments.
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .models import Snapshot  # noqa: E402
from .reporting import admissions_by_day, department_frame, ward_frame  # noqa: E402


def plot_overview(snapshot: Snapshot, reference_date: datetime, outfile: Optional[Path] = None) -> None:
    fig, axes = plt.subplots(2, 2, figsize=(12, 8))

    # Admissions over time
    daily = admissions_by_day(snapshot.patients)
    if not daily.empty:
        daily.index = pd.to_datetime(daily.index)
        daily.rolling(7, min_periods=1).mean().plot(ax=axes[0, 0])
    axes[0, 0].set_title("7-day rolling admissions")
    axes[0, 0].set_ylabel("Patients")

    # Bed status per ward
    wards = ward_frame(snapshot.beds)
    if not wards.empty:
        wards.set_index("ward")[["available", "occupied", "cleaning", "maintenance"]].plot(
            kind="bar", stacked=True, ax=axes[0, 1]
        )
    axes[0, 1].set_title("Bed status by ward")

    # Department load
    depts = department_frame(snapshot.patients, snapshot.staff, reference_date)
    if not depts.empty:
        depts.set_index("department")["patients"].plot(kind="bar", ax=axes[1, 0], color="tab:purple")
    axes[1, 0].set_title("Patients by department")

    # Appointment status mix
    statuses = pd.Series([a.status for a in snapshot.appointments], dtype="object")
    if not statuses.empty:
        statuses.value_counts().plot(kind="bar", ax=axes[1, 1], color="tab:red")
    axes[1, 1].set_title("Appointment status")

    plt.tight_layout()
    if outfile:
        plt.savefig(outfile, dpi=150)
    else:
        plt.show()
    plt.close(fig)
