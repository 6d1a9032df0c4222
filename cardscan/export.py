"""
CSV export of stored contacts.
"""

import csv
import logging
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

from .exceptions import ExportEmptyError

logger = logging.getLogger(__name__)

CSV_HEADER = "Name,Company,Emails,Phones,Created At"
MULTI_VALUE_SEPARATOR = " | "
EXPORT_FILENAME = "my_contacts.csv"


def format_short_date(value: Optional[datetime]) -> str:
    """Render a date as M/D/YYYY without zero padding."""
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def contacts_to_csv(contacts: Iterable) -> str:
    """
    Render contacts as a CSV table.

    The header row is bare; every data field is double-quoted and the
    email and phone lists are joined with `` | ``.

    Args:
        contacts: Stored contacts, already in export order

    Returns:
        CSV text ending with a newline

    Raises:
        ExportEmptyError: No contacts were given
    """
    rows = [
        {
            "name": contact.name or "",
            "company": contact.company or "",
            "emails": MULTI_VALUE_SEPARATOR.join(contact.emails or []),
            "phones": MULTI_VALUE_SEPARATOR.join(contact.phones or []),
            "created_at": format_short_date(contact.created_at),
        }
        for contact in contacts
    ]

    if not rows:
        raise ExportEmptyError("No contacts found to export.")

    df = pd.DataFrame(rows, columns=["name", "company", "emails", "phones", "created_at"])
    body = df.to_csv(header=False, index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")

    logger.info(f"Exported {len(rows)} contacts")
    return f"{CSV_HEADER}\n{body}"
