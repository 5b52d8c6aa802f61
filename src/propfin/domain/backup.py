"""Backup/restore engine.

A backup is one JSON object with an array per table::

    {
        "accounts": [...], "categories": [...], "buildings": [...],
        "shops": [...], "tenants": [...], "transactions": [...],
        "transfers": [...], "rentPayments": [...], "tenantShops": [...]
    }

Records use camelCase keys and keep their original ids, so references inside
the document stay valid. ``tenantShops`` is optional. Money is written as a
decimal string and dates as ISO 8601 strings.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable

from propfin.database.base import Database
from propfin.domain.entities import (
    ACCOUNT_TYPES,
    CONTEXTS,
    PAYMENT_KINDS,
    PERSONAL,
    STATUS_PAID,
    STATUS_PENDING,
    TRANSACTION_TYPES,
)
from propfin.domain.errors import (
    InvalidBackupError,
    InvalidDateError,
    MissingFieldError,
    RestoreError,
)
from propfin.domain.ledger import quantize
from propfin.domain.rent import RentPaymentService
from propfin.utils.date_parser import parse_datetime, to_calendar_date, utc_now

logger = logging.getLogger(__name__)

BACKUP_VERSION = 1

INT, STR, BOOL, MONEY, DATE, DATETIME = "int", "str", "bool", "money", "date", "datetime"
DATE_KINDS = (DATE, DATETIME)

# Keys that don't follow the camelCase rule.
_KEY_OVERRIDES = {"allocated_at": "allocated_at"}


def _camel(column: str) -> str:
    if column in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[column]
    head, *rest = column.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class BackupTable:
    """How one table maps onto its array in the backup document."""

    key: str
    table: str
    columns: tuple[tuple[str, str], ...]
    required: tuple[str, ...] = ()
    optional: bool = False
    owned: bool = True
    defaults: dict[str, Any] = field(default_factory=dict)
    aliases: dict[str, tuple[str, ...]] = field(default_factory=dict)
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)
    non_negative: tuple[str, ...] = ()

    def doc_key(self, column: str) -> str:
        return _camel(column)

    def lookup(self, record: dict, column: str) -> Any:
        value = record.get(self.doc_key(column))
        for alias in self.aliases.get(column, ()):
            if value is not None:
                break
            value = record.get(alias)
        return value


ACCOUNTS = BackupTable(
    "accounts",
    "bank_accounts",
    (
        ("id", INT),
        ("name", STR),
        ("account_number", STR),
        ("account_type", STR),
        ("initial_balance", MONEY),
        ("current_balance", MONEY),
        ("is_active", BOOL),
        ("created_at", DATETIME),
    ),
    required=("name", "accountType"),
    choices={"account_type": ACCOUNT_TYPES},
)
CATEGORIES = BackupTable(
    "categories",
    "categories",
    (
        ("id", INT),
        ("name", STR),
        ("type", STR),
        ("context", STR),
        ("color", STR),
        ("is_active", BOOL),
        ("created_at", DATETIME),
    ),
    required=("name", "type"),
    defaults={"context": PERSONAL},
    choices={"type": TRANSACTION_TYPES, "context": CONTEXTS},
)
BUILDINGS = BackupTable(
    "buildings",
    "buildings",
    (
        ("id", INT),
        ("name", STR),
        ("address", STR),
        ("total_shops", INT),
        ("is_active", BOOL),
        ("created_at", DATETIME),
    ),
    required=("name",),
)
TENANTS = BackupTable(
    "tenants",
    "tenants",
    (
        ("id", INT),
        ("name", STR),
        ("phone", STR),
        ("email", STR),
        ("address", STR),
        ("id_number", STR),
        ("is_active", BOOL),
        ("created_at", DATETIME),
    ),
    required=("name",),
    aliases={"id_number": ("aadhaarNumber",)},
)
SHOPS = BackupTable(
    "shops",
    "shops",
    (
        ("id", INT),
        ("building_id", INT),
        ("shop_number", STR),
        ("name", STR),
        ("monthly_rent", MONEY),
        ("advance", MONEY),
        ("is_occupied", BOOL),
        ("is_advance_paid", BOOL),
        ("is_active", BOOL),
        ("tenant_id", INT),
        ("allocated_at", DATE),
        ("created_at", DATETIME),
    ),
    required=("shopNumber", "buildingId", "monthlyRent"),
    non_negative=("monthly_rent", "advance"),
)
TENANT_SHOPS = BackupTable(
    "tenantShops",
    "tenant_shops",
    (
        ("id", INT),
        ("tenant_id", INT),
        ("shop_id", INT),
        ("start_date", DATE),
        ("end_date", DATE),
        ("is_active", BOOL),
    ),
    required=("tenantId", "shopId"),
    optional=True,
    owned=False,
)
TRANSACTIONS = BackupTable(
    "transactions",
    "transactions",
    (
        ("id", INT),
        ("account_id", INT),
        ("category_id", INT),
        ("tenant_id", INT),
        ("shop_id", INT),
        ("building_id", INT),
        ("description", STR),
        ("amount", MONEY),
        ("type", STR),
        ("context", STR),
        ("transaction_date", DATETIME),
        ("notes", STR),
        ("payment_kind", STR),
        ("rent_month", INT),
        ("rent_year", INT),
        ("created_at", DATETIME),
    ),
    required=("type", "amount"),
    defaults={"description": "", "context": PERSONAL},
    choices={"type": TRANSACTION_TYPES, "context": CONTEXTS, "payment_kind": PAYMENT_KINDS},
    non_negative=("amount",),
)
TRANSFERS = BackupTable(
    "transfers",
    "transfers",
    (
        ("id", INT),
        ("from_account_id", INT),
        ("to_account_id", INT),
        ("amount", MONEY),
        ("description", STR),
        ("transfer_date", DATETIME),
        ("created_at", DATETIME),
    ),
    required=("amount", "fromAccountId", "toAccountId"),
    non_negative=("amount",),
)
RENT_PAYMENTS = BackupTable(
    "rentPayments",
    "rent_payments",
    (
        ("id", INT),
        ("tenant_id", INT),
        ("shop_id", INT),
        ("month", INT),
        ("year", INT),
        ("amount", MONEY),
        ("paid_amount", MONEY),
        ("pending_amount", MONEY),
        ("status", STR),
        ("payment_date", DATETIME),
        ("notes", STR),
        ("created_at", DATETIME),
    ),
    required=("amount", "shopId", "tenantId", "month", "year"),
    choices={"status": (STATUS_PENDING, STATUS_PAID)},
    non_negative=("amount", "paid_amount", "pending_amount"),
)

# Document key order on export.
EXPORT_ORDER = (
    ACCOUNTS,
    CATEGORIES,
    BUILDINGS,
    SHOPS,
    TENANTS,
    TRANSACTIONS,
    TRANSFERS,
    RENT_PAYMENTS,
    TENANT_SHOPS,
)
# Parents before children: shops reference tenants.
INSERT_ORDER = (
    ACCOUNTS,
    CATEGORIES,
    BUILDINGS,
    TENANTS,
    SHOPS,
    TENANT_SHOPS,
    TRANSACTIONS,
    TRANSFERS,
    RENT_PAYMENTS,
)
# Children before parents.
WIPE_ORDER = (
    RENT_PAYMENTS,
    TRANSFERS,
    TRANSACTIONS,
    TENANT_SHOPS,
    SHOPS,
    BUILDINGS,
    TENANTS,
    CATEGORIES,
    ACCOUNTS,
)


def _to_python(kind: str, value: Any) -> Any:
    """Convert a document value to its column type.

    Raises:
        ValueError, TypeError or ArithmeticError when the value doesn't fit
    """
    if kind == INT:
        if isinstance(value, bool):
            raise TypeError(f"expected an integer, got {value!r}")
        return int(value)
    if kind == MONEY:
        return quantize(value)
    if kind == BOOL:
        if not isinstance(value, bool):
            raise TypeError(f"expected true or false, got {value!r}")
        return value
    if kind == DATE:
        return to_calendar_date(value)
    if kind == DATETIME:
        return parse_datetime(value)
    return str(value)


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(quantize(value))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def dumps(document: dict) -> str:
    """Serialize a backup document to JSON text."""
    return json.dumps(document, indent=2, ensure_ascii=False)


def loads(text: str) -> dict:
    """Parse backup JSON text.

    Raises:
        InvalidBackupError: If the text is not valid JSON
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidBackupError(f"Invalid backup: not valid JSON ({e})")


class BackupService:
    """Export and all-or-nothing restore of one user's data."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        """Initialize backup service.

        Args:
            db: Database instance
            clock: Source of the current time (aware UTC)
        """
        self.db = db
        self.clock = clock
        self.rents = RentPaymentService(db, clock)

    def export(self, user_id: int) -> dict:
        """Build the backup document for everything the user owns.

        Returns:
            JSON-serializable dict
        """
        document: dict[str, Any] = {}
        for layout in EXPORT_ORDER:
            records = []
            for row in self.db.dump_user_rows(layout.table, user_id):
                record = {}
                if layout.owned:
                    record["userId"] = user_id
                for column, _ in layout.columns:
                    record[layout.doc_key(column)] = _to_json(row[column])
                records.append(record)
            document[layout.key] = records
        document["version"] = BACKUP_VERSION
        document["exportedAt"] = _to_json(self.clock())
        logger.info(
            "Exported user %s: %s",
            user_id,
            ", ".join(f"{layout.key}={len(document[layout.key])}" for layout in EXPORT_ORDER),
        )
        return document

    def validate(self, document: Any) -> None:
        """Check a document's structure before anything is written.

        Raises:
            InvalidBackupError: If the document or one of its arrays is malformed
            MissingFieldError: If a record lacks a required field
            InvalidDateError: If a date field doesn't parse
        """
        if not isinstance(document, dict):
            raise InvalidBackupError("Invalid backup: expected a JSON object")

        for layout in EXPORT_ORDER:
            if layout.key not in document and layout.optional:
                continue
            records = document.get(layout.key)
            if not isinstance(records, list):
                raise InvalidBackupError(f"Invalid backup: '{layout.key}' must be an array")

            for index, record in enumerate(records):
                label = f"{layout.key}[{index}]"
                if not isinstance(record, dict):
                    raise InvalidBackupError(f"Invalid backup: {label} must be an object")
                for key in layout.required:
                    if record.get(key) is None:
                        raise MissingFieldError(key, label)
                for column, kind in layout.columns:
                    value = layout.lookup(record, column)
                    if value is None:
                        continue
                    try:
                        converted = _to_python(kind, value)
                    except (ValueError, TypeError, ArithmeticError):
                        if kind in DATE_KINDS:
                            raise InvalidDateError(layout.key, layout.doc_key(column), value)
                        raise InvalidBackupError(
                            f"Invalid backup: bad value for {layout.doc_key(column)} in {label}: {value!r}"
                        )
                    allowed = layout.choices.get(column)
                    if allowed is not None and converted not in allowed:
                        raise InvalidBackupError(
                            f"Invalid backup: {layout.doc_key(column)} in {label} must be one of "
                            f"{', '.join(allowed)}, got {value!r}"
                        )
                    if column in layout.non_negative and converted < 0:
                        raise InvalidBackupError(
                            f"Invalid backup: {layout.doc_key(column)} in {label} must not be negative, "
                            f"got {value!r}"
                        )

    def _row(self, layout: BackupTable, record: dict, user_id: int) -> dict[str, Any]:
        row: dict[str, Any] = {}
        if layout.owned:
            row["user_id"] = user_id
        for column, kind in layout.columns:
            value = layout.lookup(record, column)
            if value is None:
                if column in layout.defaults:
                    row[column] = layout.defaults[column]
                continue
            row[column] = _to_python(kind, value)
        if layout is ACCOUNTS and "current_balance" not in row:
            row["current_balance"] = row.get("initial_balance", quantize(0))
        return row

    def wipe(self, user_id: int) -> dict[str, int]:
        """Delete every row the user owns, children first."""
        with self.db.atomic():
            removed = {
                layout.key: self.db.delete_user_rows(layout.table, user_id) for layout in WIPE_ORDER
            }
        logger.info("Wiped data of user %s", user_id)
        return removed

    def insert_all(self, user_id: int, document: dict) -> dict[str, int]:
        """Insert a validated document for the user, keeping its ids.

        Afterwards the id sequences are realigned and every rent period's
        pending amount and status is recomputed.

        Returns:
            Records inserted per document key
        """
        counts = {}
        with self.db.atomic():
            for layout in INSERT_ORDER:
                rows = [self._row(layout, record, user_id) for record in document.get(layout.key) or []]
                if rows:
                    self.db.insert_rows(layout.table, rows)
                counts[layout.key] = len(rows)
            next_ids = self.db.reset_sequences()
            logger.debug("Sequences realigned: %s", next_ids)
            self.rents.recalculate_all(user_id)
        return counts

    def restore(self, user_id: int, document: Any) -> dict[str, int]:
        """Replace the user's data with a backup, all or nothing.

        The document is validated first; an invalid document changes nothing.
        The current data is exported and kept aside. If the import fails, the
        user's data is wiped again and the kept export is re-imported.

        Returns:
            Records inserted per document key

        Raises:
            InvalidBackupError, MissingFieldError, InvalidDateError: Before any write
            RestoreError: If the import failed; ``rolled_back`` tells whether the
                previous data was re-imported successfully
        """
        self.validate(document)
        stash = self.export(user_id)

        try:
            with self.db.atomic():
                self.wipe(user_id)
                counts = self.insert_all(user_id, document)
        except Exception as import_error:
            logger.warning(
                "Restore for user %s failed, re-importing previous data: %s", user_id, import_error
            )
            try:
                with self.db.atomic():
                    self.wipe(user_id)
                    self.insert_all(user_id, stash)
            except Exception as rollback_error:
                logger.error(
                    "Re-import of previous data for user %s failed: %s", user_id, rollback_error
                )
                raise RestoreError(import_error, rollback_error) from rollback_error
            raise RestoreError(import_error) from import_error

        logger.info("Restored user %s: %s", user_id, counts)
        return counts

    def restore_text(self, user_id: int, text: str) -> dict[str, int]:
        """Restore from JSON text."""
        return self.restore(user_id, loads(text))

    def export_text(self, user_id: int) -> str:
        return dumps(self.export(user_id))
