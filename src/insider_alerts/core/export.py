"""CSV/JSON export of stored or freshly synced alerts."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from insider_alerts.core.models import InsiderTransaction
from insider_alerts.utils.config import ALERT_OUTPUTS_DIR, ensure_dirs
from insider_alerts.utils.logging import get_logger

log = get_logger("export")

# Column order for exports; anything else on the row follows
COLUMNS = [
    "report_date", "filing_date", "ticker", "company_name", "transaction_type",
    "insider_name", "insider_title", "shares", "price_per_share", "total_value",
    "source", "verification_status", "filing_id", "cik", "source_url", "sec_filing_url",
]


def alerts_to_dataframe(alerts: list[InsiderTransaction]) -> pd.DataFrame:
    """Convert a list of InsiderTransaction to a pandas DataFrame."""
    if not alerts:
        return pd.DataFrame(columns=COLUMNS)
    df = pd.DataFrame([a.to_row() for a in alerts])
    rest = [c for c in df.columns if c not in COLUMNS]
    return df[COLUMNS + rest]


def save_alerts(
        alerts: list[InsiderTransaction],
        label: str = "alerts",
        output_dir: Path | None = None,
) -> Path:
    """Save alerts as ``<label>.csv`` and ``<label>.json``.

    Returns the output directory.
    """
    ensure_dirs()
    out = output_dir or ALERT_OUTPUTS_DIR
    out.mkdir(parents=True, exist_ok=True)

    alerts_to_dataframe(alerts).to_csv(out / f"{label}.csv", index=False)

    with open(out / f"{label}.json", "w") as f:
        json.dump([a.to_row() for a in alerts], f, indent=2)

    log.info("Saved %d alerts to %s", len(alerts), out)
    return out
