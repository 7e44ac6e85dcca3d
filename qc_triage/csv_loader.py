"""CSV data loading and parsing."""
from pathlib import Path

import pandas as pd

from .models import ExperienceMapping, Ticket


def _read_rows(csv_path: Path) -> list[dict]:
    """Read a CSV with every column as a string and blank cells as ""."""
    try:
        df = pd.read_csv(
            csv_path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        return []

    df.columns = [str(column).strip() for column in df.columns]
    rows = []
    for row in df.to_dict(orient="records"):
        # Skip rows where every cell is empty
        if not any(str(value).strip() for value in row.values()):
            continue
        rows.append({key: str(value) for key, value in row.items()})
    return rows


def load_tickets(csv_path: Path) -> list[Ticket]:
    """Load tickets from an HS export.

    Missing columns become empty strings. Raises ValueError when the file
    holds no ticket rows.
    """
    tickets = [Ticket.model_validate(row) for row in _read_rows(csv_path)]
    if not tickets:
        raise ValueError("No tickets found in the CSV file")
    return tickets


def load_mappings(csv_path: Path) -> list[ExperienceMapping]:
    """Load experience mappings from a QC App export."""
    return [ExperienceMapping.model_validate(row) for row in _read_rows(csv_path)]
