"""
Import of financial statements exported as CSV.

Expected columns: category_code, description, amount, reference_month,
payment_date. The chart of accounts fixes the sign of each amount: codes
starting with 1 are income (positive), codes starting with 2 are expenses
(negative), whatever the sign in the file.
"""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator

from api.services.supabase import SupabaseService, error_message

logger = logging.getLogger(__name__)

TRANSACTION_BATCH_SIZE = 100
CATEGORY_BATCH_SIZE = 50

INCOME_PREFIX = "1"
EXPENSE_PREFIX = "2"

_BR_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d+)?$|^-?\d+,\d+$")


def parse_amount(raw: str | None) -> float | None:
    """
    Parse an amount written as ``1234.56``, ``1.234,56`` or ``R$ 1.234,56``.

    Returns None when the value is empty or not a number.
    """
    if raw is None:
        return None
    value = raw.replace("R$", "").replace(" ", "").strip()
    if not value:
        return None
    if "," in value and _BR_NUMBER.match(value):
        value = value.replace(".", "").replace(",", ".")
    try:
        return float(value)
    except ValueError:
        return None


def signed_amount(category_code: str, amount: float) -> float:
    if category_code.startswith(EXPENSE_PREFIX):
        return -abs(amount)
    if category_code.startswith(INCOME_PREFIX):
        return abs(amount)
    return amount


def detect_delimiter(header_line: str) -> str:
    return ";" if ";" in header_line else ","


def _clean(value: str | None) -> str:
    return (value or "").strip().strip('"').strip()


def parse_transactions_csv(
    text: str,
    condominio_id: str,
    today: date | None = None,
) -> list[dict]:
    """
    Turn CSV text into `financial_transactions` rows.

    Rows without a category code or a parseable amount are skipped.
    Missing dates default to ``today``.
    """
    today_iso = (today or date.today()).isoformat()

    lines = text.lstrip("\ufeff").splitlines()
    if not lines:
        return []

    reader = csv.DictReader(io.StringIO("\n".join(lines)), delimiter=detect_delimiter(lines[0]))
    if reader.fieldnames:
        reader.fieldnames = [_clean(h) for h in reader.fieldnames]

    transactions = []
    for line_number, row in enumerate(reader, start=2):
        code = _clean(row.get("category_code"))
        amount = parse_amount(_clean(row.get("amount")))
        if not code or amount is None:
            if any(_clean(v) for v in row.values() if isinstance(v, str)):
                logger.warning(f"Skipping line {line_number}: missing category_code or amount")
            continue

        transactions.append(
            {
                "condominio_id": condominio_id,
                "category_code": code,
                "description": _clean(row.get("description")) or f"Transação {code}",
                "amount": signed_amount(code, amount),
                "reference_month": _clean(row.get("reference_month")) or today_iso,
                "payment_date": _clean(row.get("payment_date")) or today_iso,
                "status": "approved",
                "created_by": None,
            }
        )

    return transactions


def parent_code(code: str) -> str | None:
    """``1.1.01`` -> ``1.1``; top-level codes have no parent."""
    parts = code.split(".")
    return ".".join(parts[:-1]) if len(parts) > 1 else None


def derive_categories(transactions: list[dict]) -> list[dict]:
    """One `financial_categories` row per distinct code, in first-seen order."""
    categories: dict[str, dict] = {}
    for t in transactions:
        code = t["category_code"]
        if code in categories:
            continue
        categories[code] = {
            "code": code,
            "name": t["description"].split(" - ")[0],
            "type": "RECEITA" if code.startswith(INCOME_PREFIX) else "DESPESA",
            "parent_code": parent_code(code),
        }
    return list(categories.values())


def batched(rows: list[dict], size: int) -> Iterator[list[dict]]:
    for i in range(0, len(rows), size):
        yield rows[i : i + size]


@dataclass
class ImportResult:
    """Summary of a CSV import."""

    transactions_read: int = 0
    transactions_imported: int = 0
    categories_synced: int = 0
    failed_batches: list[int] = field(default_factory=list)

    def summary(self) -> str:
        lines = [
            f"Transactions read: {self.transactions_read}",
            f"Transactions imported: {self.transactions_imported}",
            f"Categories synced: {self.categories_synced}",
            f"Failed batches: {len(self.failed_batches)}",
        ]
        return "\n".join(lines)


def import_transactions(service: SupabaseService, transactions: list[dict]) -> ImportResult:
    """
    Sync categories, then insert transactions in batches.

    A failing batch is logged and the import continues.
    """
    result = ImportResult(transactions_read=len(transactions))

    categories = derive_categories(transactions)
    for batch in batched(categories, CATEGORY_BATCH_SIZE):
        try:
            service.upsert_categories(batch)
            result.categories_synced += len(batch)
        except Exception as e:
            logger.error(f"Category upsert failed: {error_message(e)}")

    for number, batch in enumerate(batched(transactions, TRANSACTION_BATCH_SIZE), start=1):
        try:
            result.transactions_imported += service.insert_transactions(batch)
            logger.info(f"Imported batch {number} ({len(batch)} transactions)")
        except Exception as e:
            result.failed_batches.append(number)
            logger.error(f"Batch {number} failed: {error_message(e)}")

    return result
