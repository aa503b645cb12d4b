"""Airbnb payout CSV import.

Reads an Airbnb CSV export, maps each reservation to an income transaction
and reconciles it with the transactions already recorded for the property.
"""

from __future__ import annotations

import csv
import datetime as dt
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any

import pandas as pd

from src.core.exceptions import ImportFormatError
from src.core.logging import get_logger
from src.domain.models.context import UserContext
from src.domain.models.property import Transaction

log = get_logger(__name__)

# Normalised header -> canonical column
COLUMN_ALIASES = {
    "date de début": "start",
    "date de fin": "end",
    "revenus": "amount",
    "revenu": "amount",
    "montant": "amount",
    "code de confirmation": "reservation_ref",
    "code de confirmation/réservation": "reservation_ref",
    "référence": "reservation_ref",
    "nom du voyageur": "guest_name",
    "type": "row_type",
}
REQUIRED_COLUMNS = ("start", "amount", "reservation_ref")
# Row types of the export that are not stays
NON_STAY_ROW_TYPES = frozenset({"versement", "payout"})

COMPARED_FIELDS = ("amount", "accounting_month", "guest_name")
AMOUNT_TOLERANCE = 0.005

_MONEY_NOISE = re.compile(r"[\s€]")


class ImportAction(str, Enum):
    AJOUT = "ajout"
    MODIFIE = "modifie"
    INCHANGE = "inchange"


@dataclass
class ImportPreviewRow:
    """One CSV reservation and what importing it would do."""

    transaction: Transaction
    action: ImportAction
    diff: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "reservation_ref": self.transaction.reservation_ref,
            "guest_name": self.transaction.guest_name,
            "accounting_month": self.transaction.accounting_month,
            "amount": self.transaction.amount,
            "action": self.action.value,
            "diff": self.diff,
        }


def parse_french_amount(raw: Any) -> float:
    """Parse "1 234,50 €" style amounts. Empty values are 0."""
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return 0.0
    if isinstance(raw, (int, float)):
        return float(raw)
    text = _MONEY_NOISE.sub("", str(raw)).replace(",", ".")
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError as e:
        raise ImportFormatError(f"Invalid amount {raw!r}") from e


def parse_french_date(raw: Any) -> dt.date | None:
    """Parse a DD/MM/YYYY date. Empty values give None."""
    text = str(raw).strip() if raw is not None else ""
    if not text or text.lower() == "nan":
        return None
    try:
        return dt.datetime.strptime(text, "%d/%m/%Y").date()
    except ValueError as e:
        raise ImportFormatError(f"Invalid date {raw!r}, expected DD/MM/YYYY") from e


def _normalize_header(name: str) -> str:
    key = " ".join(str(name).strip().lower().split())
    return COLUMN_ALIASES.get(key, key)


def read_airbnb_csv(source: str | IO[str] | IO[bytes]) -> pd.DataFrame:
    """Read an Airbnb CSV export into a DataFrame with canonical columns.

    Blank lines and payout lines (row type "Versement"/"Payout") are dropped.
    Stays without a reservation reference are kept.

    Raises:
        ImportFormatError: If the file cannot be parsed or lacks a required column.
    """
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, sep=None, engine="python")
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error) as e:
        raise ImportFormatError(f"Cannot read Airbnb CSV: {e}") from e

    df = df.rename(columns=_normalize_header)
    df = df.loc[:, ~df.columns.duplicated()]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ImportFormatError(f"Missing column(s) in Airbnb CSV: {', '.join(missing)}")

    for column in ("end", "guest_name"):
        if column not in df.columns:
            df[column] = ""

    blank = df.apply(lambda col: col.astype(str).str.strip() == "").all(axis=1)
    non_stay = pd.Series(False, index=df.index)
    if "row_type" in df.columns:
        non_stay = df["row_type"].str.strip().str.lower().isin(NON_STAY_ROW_TYPES)

    df = df[~blank & ~non_stay].reset_index(drop=True)
    log.info(
        "airbnb_csv_read",
        rows=len(df),
        skipped_non_stay=int(non_stay.sum()),
        without_reference=int((df["reservation_ref"].str.strip() == "").sum()),
    )
    return df


def map_csv_row_to_transaction(
    row: Mapping[str, Any],
    context: UserContext,
    property_id: str,
    type_id: str | None = None,
    category_id: str | None = None,
    today: dt.date | None = None,
) -> Transaction:
    """Map a canonical CSV row to an income transaction ready to insert."""
    start = parse_french_date(row.get("start"))
    end = parse_french_date(row.get("end"))

    return Transaction(
        property_id=property_id,
        amount=parse_french_amount(row.get("amount")),
        date=start or today or dt.date.today(),
        accounting_month=start.strftime("%Y-%m") if start else "",
        description="",
        type=type_id,
        category=category_id,
        transaction_type="income",
        platform="Airbnb",
        reservation_ref=str(row.get("reservation_ref", "")).strip(),
        guest_name=str(row.get("guest_name", "")).strip(),
        user_id=context.user_id,
        start_date=start.isoformat() if start else "",
        end_date=end.isoformat() if end else "",
    )


def _field_differs(name: str, new: Any, old: Any) -> bool:
    if name == "amount":
        return abs(float(new or 0) - float(old or 0)) > AMOUNT_TOLERANCE
    return (new or "") != (old or "")


def diff_against_existing(
    rows: Iterable[Transaction],
    existing: Iterable[Transaction],
) -> list[ImportPreviewRow]:
    """Reconcile imported rows with existing transactions on `reservation_ref`.

    Rows without a reference never match and are additions.
    """
    by_ref = {t.reservation_ref: t for t in existing if t.reservation_ref}

    preview = []
    for row in rows:
        current = by_ref.get(row.reservation_ref) if row.reservation_ref else None
        if current is None:
            preview.append(ImportPreviewRow(row, ImportAction.AJOUT))
            continue

        diff = {
            name: {"csv": getattr(row, name), "existant": getattr(current, name)}
            for name in COMPARED_FIELDS
            if _field_differs(name, getattr(row, name), getattr(current, name))
        }
        action = ImportAction.MODIFIE if diff else ImportAction.INCHANGE
        preview.append(ImportPreviewRow(row, action, diff))
    return preview


def rows_to_import(preview: Iterable[ImportPreviewRow]) -> list[Transaction]:
    """Additions and modifications only."""
    return [p.transaction for p in preview if p.action in (ImportAction.AJOUT, ImportAction.MODIFIE)]


def preview_airbnb_import(
    source: str | IO[str] | IO[bytes],
    context: UserContext,
    property_id: str,
    existing: Iterable[Transaction],
    type_id: str | None = None,
    category_id: str | None = None,
) -> list[ImportPreviewRow]:
    """Read, map and reconcile an Airbnb CSV in one call."""
    df = read_airbnb_csv(source)
    transactions = [
        map_csv_row_to_transaction(row, context, property_id, type_id, category_id)
        for row in df.to_dict(orient="records")
    ]
    preview = diff_against_existing(transactions, existing)

    counts = pd.Series([p.action.value for p in preview], dtype=object).value_counts().to_dict()
    log.info("airbnb_import_previewed", property_id=property_id, **counts)
    return preview
