"""
Status Board — SQLite storage.

Every table carries a tenant_id and every query filters on it; callers
always pass the tenant explicitly. These classes are synchronous — the
async adapter in statusboard.adapters.sqlite_store runs them off the loop.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Iterable

from statusboard.data.models import (
    DailyMessage,
    Employee,
    Member,
    PredefinedStatus,
    RecurringStatusRule,
    ScheduledStatusOverride,
    Tenant,
)

logger = logging.getLogger(__name__)

# Columns a manual edit may touch; idempotency markers are resolver-only.
EDITABLE_EMPLOYEE_FIELDS = frozenset(
    {"name", "phone", "email", "status", "image_url", "recurring_enabled"}
)


def _now() -> str:
    return datetime.now().isoformat()


def _in_clause(column: str, values: list[int]) -> tuple[str, list[int]]:
    placeholders = ", ".join("?" for _ in values)
    return f"{column} IN ({placeholders})", list(values)


class _SQLiteDB:
    """Shared connection handling for the table-specific classes below."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from statusboard.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError


class TenantDB(_SQLiteDB):
    """Tenants, their signed-in members, and the announcement banner."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tenants (
                    id           INTEGER PRIMARY KEY AUTOINCREMENT,
                    company_name TEXT    NOT NULL DEFAULT 'My Company',
                    created_at   TEXT    NOT NULL,
                    updated_at   TEXT    NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS members (
                    telegram_user_id INTEGER PRIMARY KEY,
                    tenant_id        INTEGER NOT NULL,
                    display_name     TEXT    NOT NULL,
                    is_admin         INTEGER NOT NULL DEFAULT 0,
                    created_at       TEXT    NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS daily_messages (
                    tenant_id    INTEGER PRIMARY KEY,
                    message_text TEXT,
                    updated_at   TEXT NOT NULL
                )
            """)
        logger.debug("Tenant tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_tenant(row: sqlite3.Row) -> Tenant:
        return Tenant(
            id=row["id"],
            company_name=row["company_name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_member(row: sqlite3.Row) -> Member:
        return Member(
            telegram_user_id=row["telegram_user_id"],
            tenant_id=row["tenant_id"],
            display_name=row["display_name"],
            is_admin=bool(row["is_admin"]),
            created_at=row["created_at"],
        )

    def create_tenant(self, company_name: str = "My Company") -> Tenant:
        """Insert a new tenant."""
        now = _now()
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO tenants (company_name, created_at, updated_at) VALUES (?, ?, ?)",
                (company_name, now, now),
            )
            tenant_id = cursor.lastrowid
        logger.info("Tenant created: #%d '%s'", tenant_id, company_name)
        return Tenant(id=tenant_id, company_name=company_name, created_at=now, updated_at=now)

    def get_tenant(self, tenant_id: int) -> Tenant | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tenants WHERE id = ?", (tenant_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_tenant(row)

    def rename_tenant(self, tenant_id: int, company_name: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE tenants SET company_name = ?, updated_at = ? WHERE id = ?",
                (company_name, _now(), tenant_id),
            )
        renamed = cursor.rowcount > 0
        if renamed:
            logger.info("Tenant #%d renamed to '%s'", tenant_id, company_name)
        return renamed

    def add_member(
        self,
        telegram_user_id: int,
        tenant_id: int,
        display_name: str,
        is_admin: bool = False,
    ) -> Member:
        """Bind a Telegram user to a tenant."""
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO members (telegram_user_id, tenant_id, display_name, is_admin, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (telegram_user_id, tenant_id, display_name, int(is_admin), now),
            )
        logger.info("Member %d joined tenant #%d", telegram_user_id, tenant_id)
        return Member(
            telegram_user_id=telegram_user_id,
            tenant_id=tenant_id,
            display_name=display_name,
            is_admin=is_admin,
            created_at=now,
        )

    def get_member(self, telegram_user_id: int) -> Member | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM members WHERE telegram_user_id = ?", (telegram_user_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_member(row)

    def get_daily_message(self, tenant_id: int) -> DailyMessage | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM daily_messages WHERE tenant_id = ?", (tenant_id,),
            ).fetchone()
        if row is None:
            return None
        return DailyMessage(
            tenant_id=row["tenant_id"],
            message_text=row["message_text"] or "",
            updated_at=row["updated_at"],
        )

    def set_daily_message(self, tenant_id: int, message_text: str) -> DailyMessage:
        """Upsert the tenant's single banner row."""
        now = _now()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO daily_messages (tenant_id, message_text, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(tenant_id) DO UPDATE SET
                    message_text = excluded.message_text,
                    updated_at   = excluded.updated_at
                """,
                (tenant_id, message_text, now),
            )
        logger.info("Banner updated for tenant #%d", tenant_id)
        return DailyMessage(tenant_id=tenant_id, message_text=message_text, updated_at=now)

    def delete_tenant(self, tenant_id: int) -> None:
        """Remove the tenant and every record it owns, in one transaction."""
        with self._connect() as conn:
            for table in (
                "scheduled_statuses",
                "recurring_statuses",
                "predefined_statuses",
                "employees",
                "daily_messages",
                "members",
            ):
                # Tables are created lazily by their own DB class.
                exists = conn.execute(
                    "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,),
                ).fetchone()
                if exists:
                    conn.execute(f"DELETE FROM {table} WHERE tenant_id = ?", (tenant_id,))
            conn.execute("DELETE FROM tenants WHERE id = ?", (tenant_id,))
        logger.info("Tenant #%d and all of its data deleted", tenant_id)


class EmployeeDB(_SQLiteDB):
    """The employees table, including the resolver's idempotency markers."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS employees (
                    id                INTEGER PRIMARY KEY AUTOINCREMENT,
                    tenant_id         INTEGER NOT NULL,
                    name              TEXT    NOT NULL,
                    phone             TEXT,
                    email             TEXT,
                    status            TEXT    NOT NULL DEFAULT 'Available',
                    image_url         TEXT,
                    created_at        TEXT    NOT NULL,
                    updated_at        TEXT    NOT NULL
                )
            """)
            # Migrate existing DBs: add new columns if missing
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(employees)").fetchall()
            }
            if "recurring_enabled" not in existing_cols:
                conn.execute(
                    "ALTER TABLE employees ADD COLUMN recurring_enabled INTEGER NOT NULL DEFAULT 0"
                )
            if "already_applied" not in existing_cols:
                conn.execute(
                    "ALTER TABLE employees ADD COLUMN already_applied INTEGER NOT NULL DEFAULT 0"
                )
            if "applied_date" not in existing_cols:
                conn.execute("ALTER TABLE employees ADD COLUMN applied_date TEXT")
            if "version" not in existing_cols:
                conn.execute(
                    "ALTER TABLE employees ADD COLUMN version INTEGER NOT NULL DEFAULT 0"
                )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_employees_tenant ON employees(tenant_id)"
            )
        logger.debug("Employees table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_employee(row: sqlite3.Row) -> Employee:
        return Employee(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            status=row["status"],
            phone=row["phone"],
            email=row["email"],
            image_url=row["image_url"],
            recurring_enabled=bool(row["recurring_enabled"]),
            already_applied=bool(row["already_applied"]),
            applied_date=row["applied_date"],
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def add_employee(self, tenant_id: int, name: str, status: str = "Available") -> Employee:
        """Insert a new employee with no idempotency markers set."""
        now = _now()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO employees (tenant_id, name, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (tenant_id, name, status, now, now),
            )
            employee_id = cursor.lastrowid
        logger.info("Employee added: #%d '%s' (tenant #%d)", employee_id, name, tenant_id)
        return Employee(
            id=employee_id,
            tenant_id=tenant_id,
            name=name,
            status=status,
            created_at=now,
            updated_at=now,
        )

    def get_employee(self, tenant_id: int, employee_id: int) -> Employee | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM employees WHERE id = ? AND tenant_id = ?",
                (employee_id, tenant_id),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_employee(row)

    def list_employees(self, tenant_id: int) -> list[Employee]:
        """Return every employee of the tenant, ordered by name."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM employees WHERE tenant_id = ? ORDER BY name COLLATE NOCASE, id",
                (tenant_id,),
            ).fetchall()
        return [self._row_to_employee(r) for r in rows]

    def list_pending(self, tenant_id: int, today: str) -> list[Employee]:
        """Employees not yet processed today, including never-processed ones."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM employees
                WHERE tenant_id = ? AND (applied_date IS NULL OR applied_date != ?)
                ORDER BY id
                """,
                (tenant_id, today),
            ).fetchall()
        return [self._row_to_employee(r) for r in rows]

    def update_fields(self, tenant_id: int, employee_id: int, **fields: object) -> Employee | None:
        """Apply a manual edit. Bumps version; never touches the markers."""
        unknown = set(fields) - EDITABLE_EMPLOYEE_FIELDS
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")
        if not fields:
            return self.get_employee(tenant_id, employee_id)

        assignments = ", ".join(f"{col} = ?" for col in fields)
        params: list = [int(v) if isinstance(v, bool) else v for v in fields.values()]
        params += [_now(), employee_id, tenant_id]

        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                UPDATE employees
                SET {assignments}, version = version + 1, updated_at = ?
                WHERE id = ? AND tenant_id = ?
                """,
                params,
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM employees WHERE id = ?", (employee_id,),
            ).fetchone()
        logger.info("Employee #%d updated: %s", employee_id, ", ".join(fields))
        return self._row_to_employee(row)

    def apply_status(
        self,
        tenant_id: int,
        employee_id: int,
        status: str,
        applied_date: str,
        expected_version: int,
    ) -> Employee | None:
        """Compare-and-swap status write used by the resolver.

        Returns the updated employee, or None when the row changed since
        `expected_version` was read (or no longer exists).
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE employees
                SET status = ?, already_applied = 1, applied_date = ?,
                    version = version + 1, updated_at = ?
                WHERE id = ? AND tenant_id = ? AND version = ?
                """,
                (status, applied_date, _now(), employee_id, tenant_id, expected_version),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM employees WHERE id = ?", (employee_id,),
            ).fetchone()
        return self._row_to_employee(row)

    def clear_applied(self, tenant_id: int, employee_id: int) -> Employee | None:
        """Drop the idempotency markers so the next resolution picks the employee up."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE employees
                SET already_applied = 0, applied_date = NULL,
                    version = version + 1, updated_at = ?
                WHERE id = ? AND tenant_id = ?
                """,
                (_now(), employee_id, tenant_id),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT * FROM employees WHERE id = ?", (employee_id,),
            ).fetchone()
        logger.info("Employee #%d marked for re-resolution", employee_id)
        return self._row_to_employee(row)

    def delete_employee(self, tenant_id: int, employee_id: int) -> bool:
        """Permanently delete an employee together with its rules and overrides."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM employees WHERE id = ? AND tenant_id = ?",
                (employee_id, tenant_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                for table in ("recurring_statuses", "scheduled_statuses"):
                    exists = conn.execute(
                        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                        (table,),
                    ).fetchone()
                    if exists:
                        conn.execute(
                            f"DELETE FROM {table} WHERE employee_id = ? AND tenant_id = ?",
                            (employee_id, tenant_id),
                        )
        if deleted:
            logger.info("Employee #%d deleted", employee_id)
        return deleted


class ScheduleDB(_SQLiteDB):
    """Recurring weekday rules and one-off scheduled overrides."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS recurring_statuses (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    employee_id INTEGER NOT NULL,
                    tenant_id   INTEGER NOT NULL,
                    day_of_week INTEGER NOT NULL CHECK (day_of_week >= 0 AND day_of_week <= 6),
                    status_text TEXT    NOT NULL,
                    created_at  TEXT    NOT NULL,
                    UNIQUE (employee_id, day_of_week)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS scheduled_statuses (
                    id             INTEGER PRIMARY KEY AUTOINCREMENT,
                    employee_id    INTEGER NOT NULL,
                    tenant_id      INTEGER NOT NULL,
                    scheduled_date TEXT    NOT NULL,
                    status_text    TEXT    NOT NULL,
                    created_at     TEXT    NOT NULL
                )
            """)
            existing_cols = {
                row[1]
                for row in conn.execute("PRAGMA table_info(scheduled_statuses)").fetchall()
            }
            if "last_applied_date" not in existing_cols:
                conn.execute("ALTER TABLE scheduled_statuses ADD COLUMN last_applied_date TEXT")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_scheduled_statuses_date "
                "ON scheduled_statuses(tenant_id, scheduled_date)"
            )
        logger.debug("Schedule tables initialized at %s", self._db_path)

    @staticmethod
    def _row_to_rule(row: sqlite3.Row) -> RecurringStatusRule:
        return RecurringStatusRule(
            id=row["id"],
            employee_id=row["employee_id"],
            tenant_id=row["tenant_id"],
            day_of_week=row["day_of_week"],
            status_text=row["status_text"],
        )

    @staticmethod
    def _row_to_override(row: sqlite3.Row) -> ScheduledStatusOverride:
        return ScheduledStatusOverride(
            id=row["id"],
            employee_id=row["employee_id"],
            tenant_id=row["tenant_id"],
            scheduled_date=row["scheduled_date"],
            status_text=row["status_text"],
            last_applied_date=row["last_applied_date"],
            created_at=row["created_at"],
        )

    # -- recurring rules ---------------------------------------------------

    def list_rules(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        day_of_week: int | None = None,
    ) -> list[RecurringStatusRule]:
        conditions = ["tenant_id = ?"]
        params: list = [tenant_id]
        if employee_ids is not None:
            ids = list(employee_ids)
            if not ids:
                return []
            clause, values = _in_clause("employee_id", ids)
            conditions.append(clause)
            params += values
        if day_of_week is not None:
            conditions.append("day_of_week = ?")
            params.append(day_of_week)

        query = (
            "SELECT * FROM recurring_statuses WHERE "
            + " AND ".join(conditions)
            + " ORDER BY employee_id, day_of_week"
        )
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_rule(r) for r in rows]

    def upsert_rule(
        self, tenant_id: int, employee_id: int, day_of_week: int, status_text: str,
    ) -> RecurringStatusRule:
        """Insert or replace the single rule for (employee, day_of_week)."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO recurring_statuses
                    (employee_id, tenant_id, day_of_week, status_text, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(employee_id, day_of_week) DO UPDATE SET
                    status_text = excluded.status_text
                """,
                (employee_id, tenant_id, day_of_week, status_text, _now()),
            )
            row = conn.execute(
                """
                SELECT * FROM recurring_statuses
                WHERE employee_id = ? AND day_of_week = ? AND tenant_id = ?
                """,
                (employee_id, day_of_week, tenant_id),
            ).fetchone()
        logger.info(
            "Recurring status for employee #%d on day %d: '%s'",
            employee_id, day_of_week, status_text,
        )
        return self._row_to_rule(row)

    def delete_rule(self, tenant_id: int, employee_id: int, day_of_week: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                DELETE FROM recurring_statuses
                WHERE employee_id = ? AND day_of_week = ? AND tenant_id = ?
                """,
                (employee_id, day_of_week, tenant_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Recurring status for employee #%d on day %d removed", employee_id, day_of_week)
        return deleted

    # -- scheduled overrides -----------------------------------------------

    def list_overrides(
        self,
        tenant_id: int,
        employee_ids: Iterable[int] | None = None,
        scheduled_date: str | None = None,
    ) -> list[ScheduledStatusOverride]:
        conditions = ["tenant_id = ?"]
        params: list = [tenant_id]
        if employee_ids is not None:
            ids = list(employee_ids)
            if not ids:
                return []
            clause, values = _in_clause("employee_id", ids)
            conditions.append(clause)
            params += values
        if scheduled_date is not None:
            conditions.append("scheduled_date = ?")
            params.append(scheduled_date)

        query = (
            "SELECT * FROM scheduled_statuses WHERE "
            + " AND ".join(conditions)
            + " ORDER BY scheduled_date, id"
        )
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_override(r) for r in rows]

    def add_override(
        self, tenant_id: int, employee_id: int, scheduled_date: str, status_text: str,
    ) -> ScheduledStatusOverride:
        now = _now()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO scheduled_statuses
                    (employee_id, tenant_id, scheduled_date, status_text, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (employee_id, tenant_id, scheduled_date, status_text, now),
            )
            override_id = cursor.lastrowid
        logger.info(
            "Scheduled status #%d added: employee #%d '%s' on %s",
            override_id, employee_id, status_text, scheduled_date,
        )
        return ScheduledStatusOverride(
            id=override_id,
            employee_id=employee_id,
            tenant_id=tenant_id,
            scheduled_date=scheduled_date,
            status_text=status_text,
            created_at=now,
        )

    def delete_override(self, tenant_id: int, override_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM scheduled_statuses WHERE id = ? AND tenant_id = ?",
                (override_id, tenant_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Scheduled status #%d removed", override_id)
        return deleted

    def mark_override_applied(self, tenant_id: int, override_id: int, applied_date: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE scheduled_statuses SET last_applied_date = ?
                WHERE id = ? AND tenant_id = ?
                """,
                (applied_date, override_id, tenant_id),
            )
        return cursor.rowcount > 0

    def delete_overrides_before(self, tenant_id: int, cutoff: str) -> int:
        """Delete every override dated strictly before `cutoff`."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM scheduled_statuses WHERE tenant_id = ? AND scheduled_date < ?",
                (tenant_id, cutoff),
            )
        purged = cursor.rowcount
        if purged:
            logger.info("Purged %d past scheduled status(es) for tenant #%d", purged, tenant_id)
        return purged


class StatusOptionDB(_SQLiteDB):
    """Tenant-scoped predefined status choices."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS predefined_statuses (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    tenant_id   INTEGER NOT NULL,
                    status_text TEXT    NOT NULL,
                    created_at  TEXT    NOT NULL
                )
            """)
        logger.debug("Predefined statuses table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_status(row: sqlite3.Row) -> PredefinedStatus:
        return PredefinedStatus(
            id=row["id"], tenant_id=row["tenant_id"], status_text=row["status_text"],
        )

    def list_statuses(self, tenant_id: int) -> list[PredefinedStatus]:
        """Return the tenant's choices in creation order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM predefined_statuses WHERE tenant_id = ? ORDER BY id",
                (tenant_id,),
            ).fetchall()
        return [self._row_to_status(r) for r in rows]

    def add_statuses(self, tenant_id: int, texts: list[str]) -> list[PredefinedStatus]:
        now = _now()
        added: list[PredefinedStatus] = []
        with self._connect() as conn:
            for text in texts:
                cursor = conn.execute(
                    "INSERT INTO predefined_statuses (tenant_id, status_text, created_at) VALUES (?, ?, ?)",
                    (tenant_id, text, now),
                )
                added.append(
                    PredefinedStatus(id=cursor.lastrowid, tenant_id=tenant_id, status_text=text)
                )
        logger.info("Added %d predefined status(es) for tenant #%d", len(added), tenant_id)
        return added

    def delete_status(self, tenant_id: int, status_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM predefined_statuses WHERE id = ? AND tenant_id = ?",
                (status_id, tenant_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Predefined status #%d removed", status_id)
        return deleted
