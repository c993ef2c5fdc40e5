"""CSV export of leads in the canonical column order."""

import csv
import io
from typing import Iterable

from lead_signal_ai.schemas.lead import LEAD_CSV_FIELDS, Lead


def export_leads_csv(leads: Iterable[Lead]) -> str:
    """One row per lead; every field quoted with internal quotes doubled."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(LEAD_CSV_FIELDS)
    for lead in leads:
        data = lead.model_dump()
        writer.writerow([data[field] for field in LEAD_CSV_FIELDS])
    return out.getvalue()
