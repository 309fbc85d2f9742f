"""Tests for statusboard.data.db — synchronous SQLite storage."""

import sqlite3

import pytest

from statusboard.data.db import EmployeeDB, ScheduleDB, StatusOptionDB, TenantDB


@pytest.fixture
def tenants(tmp_db_path):
    return TenantDB(tmp_db_path)


@pytest.fixture
def employees(tmp_db_path):
    return EmployeeDB(tmp_db_path)


@pytest.fixture
def schedules(tmp_db_path):
    return ScheduleDB(tmp_db_path)


@pytest.fixture
def options(tmp_db_path):
    return StatusOptionDB(tmp_db_path)


class TestTenantDB:
    def test_create_and_get(self, tenants):
        t = tenants.create_tenant("Acme")
        fetched = tenants.get_tenant(t.id)
        assert fetched.company_name == "Acme"

    def test_default_company_name(self, tenants):
        assert tenants.create_tenant().company_name == "My Company"

    def test_rename(self, tenants):
        t = tenants.create_tenant("Acme")
        assert tenants.rename_tenant(t.id, "Globex") is True
        assert tenants.get_tenant(t.id).company_name == "Globex"
        assert tenants.rename_tenant(999, "Nope") is False

    def test_members(self, tenants):
        t = tenants.create_tenant("Acme")
        tenants.add_member(12345, t.id, "Amit", is_admin=True)
        member = tenants.get_member(12345)
        assert member.tenant_id == t.id
        assert member.is_admin is True
        assert tenants.get_member(1) is None

    def test_daily_message_upsert(self, tenants):
        t = tenants.create_tenant("Acme")
        assert tenants.get_daily_message(t.id) is None
        tenants.set_daily_message(t.id, "first")
        tenants.set_daily_message(t.id, "second")
        assert tenants.get_daily_message(t.id).message_text == "second"


class TestEmployeeDB:
    def test_add_defaults(self, employees):
        e = employees.add_employee(1, "Dana", "Available")
        fetched = employees.get_employee(1, e.id)
        assert fetched.status == "Available"
        assert fetched.recurring_enabled is False
        assert fetched.already_applied is False
        assert fetched.applied_date is None
        assert fetched.version == 0

    def test_list_is_sorted_by_name(self, employees):
        employees.add_employee(1, "bob")
        employees.add_employee(1, "Alice")
        employees.add_employee(1, "Carol")
        assert [e.name for e in employees.list_employees(1)] == ["Alice", "bob", "Carol"]

    def test_tenant_scoping(self, employees):
        e = employees.add_employee(1, "Dana")
        assert employees.get_employee(2, e.id) is None
        assert employees.list_employees(2) == []
        assert employees.update_fields(2, e.id, status="Out") is None
        assert employees.delete_employee(2, e.id) is False

    def test_update_fields_bumps_version(self, employees):
        e = employees.add_employee(1, "Dana")
        updated = employees.update_fields(1, e.id, status="Out", recurring_enabled=True)
        assert updated.status == "Out"
        assert updated.recurring_enabled is True
        assert updated.version == 1

    def test_update_fields_rejects_markers(self, employees):
        e = employees.add_employee(1, "Dana")
        with pytest.raises(ValueError):
            employees.update_fields(1, e.id, applied_date="2026-10-14")

    def test_apply_status_compare_and_swap(self, employees):
        e = employees.add_employee(1, "Dana")
        applied = employees.apply_status(1, e.id, "WFH", "2026-10-14", expected_version=0)
        assert applied.status == "WFH"
        assert applied.already_applied is True
        assert applied.applied_date == "2026-10-14"
        assert applied.version == 1

        # Stale version: nothing written
        assert employees.apply_status(1, e.id, "Office", "2026-10-14", expected_version=0) is None
        assert employees.get_employee(1, e.id).status == "WFH"

    def test_list_pending(self, employees):
        never = employees.add_employee(1, "Never")
        done = employees.add_employee(1, "Done")
        old = employees.add_employee(1, "Old")
        employees.apply_status(1, done.id, "In", "2026-10-14", 0)
        employees.apply_status(1, old.id, "In", "2026-10-13", 0)

        pending = {e.id for e in employees.list_pending(1, "2026-10-14")}
        assert pending == {never.id, old.id}

    def test_clear_applied_reopens_employee(self, employees):
        e = employees.add_employee(1, "Dana")
        employees.apply_status(1, e.id, "WFH", "2026-10-14", 0)

        cleared = employees.clear_applied(1, e.id)

        assert cleared.applied_date is None
        assert cleared.already_applied is False
        assert cleared.status == "WFH"
        assert cleared.version == 2
        assert [x.id for x in employees.list_pending(1, "2026-10-14")] == [e.id]
        assert employees.clear_applied(2, e.id) is None

    def test_delete_cascades_rules_and_overrides(self, tmp_db_path, employees, schedules):
        e = employees.add_employee(1, "Dana")
        schedules.upsert_rule(1, e.id, 2, "Office")
        schedules.add_override(1, e.id, "2026-10-20", "Leave")

        assert employees.delete_employee(1, e.id) is True

        assert schedules.list_rules(1) == []
        assert schedules.list_overrides(1) == []

    def test_migrates_old_schema(self, tmp_db_path):
        conn = sqlite3.connect(tmp_db_path)
        conn.execute("""
            CREATE TABLE employees (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                tenant_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                phone TEXT,
                email TEXT,
                status TEXT NOT NULL DEFAULT 'Available',
                image_url TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute(
            "INSERT INTO employees (tenant_id, name, created_at, updated_at) "
            "VALUES (1, 'Legacy', 'x', 'x')"
        )
        conn.commit()
        conn.close()

        db = EmployeeDB(tmp_db_path)
        legacy = db.list_employees(1)[0]
        assert legacy.name == "Legacy"
        assert legacy.version == 0
        assert legacy.applied_date is None
        assert legacy.recurring_enabled is False


class TestScheduleDB:
    def test_rule_is_unique_per_day(self, schedules):
        schedules.upsert_rule(1, 10, 3, "WFH")
        schedules.upsert_rule(1, 10, 3, "Office")
        rules = schedules.list_rules(1, employee_ids=[10])
        assert len(rules) == 1
        assert rules[0].status_text == "Office"

    def test_rule_day_range_enforced(self, schedules):
        with pytest.raises(sqlite3.IntegrityError):
            schedules.upsert_rule(1, 10, 7, "Nope")

    def test_list_rules_filters(self, schedules):
        schedules.upsert_rule(1, 10, 3, "A")
        schedules.upsert_rule(1, 11, 3, "B")
        schedules.upsert_rule(1, 11, 4, "C")
        schedules.upsert_rule(2, 12, 3, "Other tenant")

        assert [r.status_text for r in schedules.list_rules(1, day_of_week=3)] == ["A", "B"]
        assert [r.status_text for r in schedules.list_rules(1, employee_ids=[11])] == ["B", "C"]
        assert schedules.list_rules(1, employee_ids=[]) == []

    def test_delete_rule(self, schedules):
        schedules.upsert_rule(1, 10, 3, "A")
        assert schedules.delete_rule(1, 10, 3) is True
        assert schedules.delete_rule(1, 10, 3) is False

    def test_overrides_ordered_by_date(self, schedules):
        b = schedules.add_override(1, 10, "2026-10-22", "B")
        a = schedules.add_override(1, 10, "2026-10-20", "A")
        assert [o.id for o in schedules.list_overrides(1)] == [a.id, b.id]
        assert [o.id for o in schedules.list_overrides(1, scheduled_date="2026-10-22")] == [b.id]

    def test_mark_applied(self, schedules):
        o = schedules.add_override(1, 10, "2026-10-14", "Sick")
        assert schedules.mark_override_applied(1, o.id, "2026-10-14") is True
        assert schedules.list_overrides(1)[0].last_applied_date == "2026-10-14"
        assert schedules.mark_override_applied(2, o.id, "2026-10-14") is False

    def test_delete_overrides_before(self, schedules):
        schedules.add_override(1, 10, "2026-10-12", "old")
        schedules.add_override(1, 10, "2026-10-13", "old")
        schedules.add_override(1, 10, "2026-10-14", "today")
        schedules.add_override(2, 11, "2026-10-01", "other tenant")

        assert schedules.delete_overrides_before(1, "2026-10-14") == 2
        assert [o.status_text for o in schedules.list_overrides(1)] == ["today"]
        assert len(schedules.list_overrides(2)) == 1


class TestStatusOptionDB:
    def test_add_list_delete(self, options):
        added = options.add_statuses(1, ["In", "Out"])
        assert [s.status_text for s in options.list_statuses(1)] == ["In", "Out"]
        assert options.list_statuses(2) == []
        assert options.delete_status(1, added[0].id) is True
        assert options.delete_status(1, added[0].id) is False


class TestDeleteTenant:
    def test_removes_all_owned_rows(self, tmp_db_path, tenants, employees, schedules, options):
        keep = tenants.create_tenant("Keep")
        drop = tenants.create_tenant("Drop")
        for t in (keep, drop):
            e = employees.add_employee(t.id, "Dana")
            schedules.upsert_rule(t.id, e.id, 1, "Office")
            schedules.add_override(t.id, e.id, "2026-10-20", "Leave")
            options.add_statuses(t.id, ["In"])
            tenants.set_daily_message(t.id, "hello")
        tenants.add_member(1, drop.id, "Gone")

        tenants.delete_tenant(drop.id)

        assert tenants.get_tenant(drop.id) is None
        assert tenants.get_member(1) is None
        assert employees.list_employees(drop.id) == []
        assert schedules.list_rules(drop.id) == []
        assert schedules.list_overrides(drop.id) == []
        assert options.list_statuses(drop.id) == []
        assert tenants.get_daily_message(drop.id) is None

        assert len(employees.list_employees(keep.id)) == 1
        assert len(schedules.list_overrides(keep.id)) == 1
        assert tenants.get_daily_message(keep.id).message_text == "hello"
