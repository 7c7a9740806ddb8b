"""Test Alembic migrations: upgrade, downgrade, and structural checks.

Runs against a throwaway SQLite file so no database server is needed.
"""

import os

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from campusconnect.db.base import Base
import campusconnect.db.models  # noqa: F401


ALEMBIC_INI = os.path.join(os.path.dirname(__file__), "..", "..", "alembic.ini")

EXPECTED_TABLES = {
    "clearance_requests",
    "clearance_steps",
    "clearance_history",
    "notifications",
}


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def alembic_cfg(database_url):
    cfg = Config(ALEMBIC_INI)
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def _inspect(database_url):
    engine = create_engine(database_url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        indexes = {
            table: {ix["name"]: ix for ix in inspector.get_indexes(table)}
            for table in tables
        }
        columns = {
            table: {col["name"] for col in inspector.get_columns(table)}
            for table in tables
        }
    finally:
        engine.dispose()
    return tables, indexes, columns


@pytest.mark.integration
class TestMigrations:
    """Run upgrade, verify, downgrade, verify."""

    def test_upgrade_creates_all_tables(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        tables, _, _ = _inspect(database_url)
        assert EXPECTED_TABLES <= tables
        assert "alembic_version" in tables

    def test_upgrade_is_idempotent(self, alembic_cfg):
        command.upgrade(alembic_cfg, "head")
        command.upgrade(alembic_cfg, "head")

    def test_student_id_is_unique(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        _, indexes, _ = _inspect(database_url)
        assert indexes["clearance_requests"]["ix_clearance_requests_student_id"]["unique"]

    def test_columns_match_models(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")

        _, _, columns = _inspect(database_url)
        for table in EXPECTED_TABLES:
            model_columns = {c.name for c in Base.metadata.tables[table].columns}
            assert columns[table] == model_columns, table

    def test_downgrade_to_base(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")

        tables, _, _ = _inspect(database_url)
        assert not (EXPECTED_TABLES & tables)

    def test_downgrade_one_step_drops_notifications(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "0001")

        tables, _, _ = _inspect(database_url)
        assert "notifications" not in tables
        assert "clearance_requests" in tables

    def test_student_user_id_backfilled_from_student_id(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "0002")
        engine = create_engine(database_url)
        try:
            with engine.begin() as conn:
                conn.execute(text(
                    "INSERT INTO clearance_requests (id, student_id, student_name, submission_date) "
                    "VALUES ('00000000000000000000000000000001', 'u-17', 'Old Request', '2026-09-01 10:00:00')"
                ))
        finally:
            engine.dispose()

        command.upgrade(alembic_cfg, "head")

        engine = create_engine(database_url)
        try:
            with engine.connect() as conn:
                value = conn.execute(text("SELECT student_user_id FROM clearance_requests")).scalar_one()
        finally:
            engine.dispose()
        assert value == "u-17"

    def test_downgrade_drops_student_user_id(self, alembic_cfg, database_url):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "0002")

        _, _, columns = _inspect(database_url)
        assert "student_user_id" not in columns["clearance_requests"]
        assert "student_id" in columns["clearance_requests"]
