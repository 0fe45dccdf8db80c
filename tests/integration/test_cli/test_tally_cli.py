"""Integration tests for the tally-api CLI against a file-backed SQLite database."""

import json
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from typer.testing import CliRunner

from tally_api.cli.app import app
from tally_api.core.security import subject_from_token
from tally_api.models.audit_log import AuditLog
from tally_api.models.base import Base
from tests.factories import TEST_SECRET

runner = CliRunner()

REFERENCE_BUNDLE = {
    "regions": [{"code": 1, "label": "Centre", "abbreviation": "CE"}],
    "departments": [{"code": 10, "label": "Mfoundi", "region_code": 1}],
    "communes": [
        {"code": 1001, "label": "Yaounde I", "department_code": 10},
        {"code": 1002, "label": "Yaounde II", "department_code": 10},
    ],
    "parties": [{"code": 1, "label": "Independent", "abbreviation": "IND"}],
    "candidates": [{"code": 5, "last_name": "Five", "party_codes": [1]}],
}


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create the schema in a temporary database and point the CLI at it."""
    db_path = tmp_path / "tally.db"
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    engine.dispose()

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("JWT_SECRET_KEY", TEST_SECRET)
    monkeypatch.delenv("LOG_DIR", raising=False)
    return tmp_path


@pytest.fixture
def reference_file(cli_env: Path) -> Path:
    path = cli_env / "reference.json"
    path.write_text(json.dumps(REFERENCE_BUNDLE), encoding="utf-8")
    return path


def _load_reference(reference_file: Path) -> None:
    result = runner.invoke(app, ["reference", "load", str(reference_file)])
    assert result.exit_code == 0, result.output


class TestReferenceLoad:
    """Tests for `tally-api reference load`."""

    def test_load_reports_counts(self, reference_file: Path) -> None:
        result = runner.invoke(app, ["reference", "load", str(reference_file)])
        assert result.exit_code == 0, result.output
        assert "regions: 1" in result.output
        assert "communes: 2" in result.output
        assert "candidate_parties: 1" in result.output

    def test_load_twice_is_idempotent(self, reference_file: Path) -> None:
        _load_reference(reference_file)
        result = runner.invoke(app, ["reference", "load", str(reference_file)])
        assert result.exit_code == 0, result.output

    def test_invalid_json(self, cli_env: Path) -> None:
        path = cli_env / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["reference", "load", str(path)])
        assert result.exit_code == 1

    def test_invalid_bundle(self, cli_env: Path) -> None:
        path = cli_env / "invalid.json"
        path.write_text(json.dumps({"regions": [{"code": 0, "label": ""}]}), encoding="utf-8")
        result = runner.invoke(app, ["reference", "load", str(path)])
        assert result.exit_code == 1


class TestIdentityCommands:
    """Tests for `tally-api identity ...`."""

    def test_create_and_list(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["identity", "create", "--username", "alice", "--role", "scrutineer"])
        assert result.exit_code == 0, result.output
        assert "Identity 'alice' created with role 'scrutineer'" in result.output

        result = runner.invoke(app, ["identity", "list"])
        assert result.exit_code == 0, result.output
        assert "alice" in result.output
        assert "Total: 1" in result.output

    def test_duplicate_fails_unless_if_not_exists(self, cli_env: Path) -> None:
        args = ["identity", "create", "--username", "alice", "--role", "scrutineer"]
        assert runner.invoke(app, args).exit_code == 0

        assert runner.invoke(app, args).exit_code == 1

        result = runner.invoke(app, [*args, "--if-not-exists"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_invalid_role(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["identity", "create", "--username", "alice", "--role", "superuser"])
        assert result.exit_code == 1

    def test_assignments(self, reference_file: Path) -> None:
        _load_reference(reference_file)
        runner.invoke(app, ["identity", "create", "--username", "alice", "--role", "scrutineer"])

        result = runner.invoke(app, ["identity", "assign-region", "alice", "1"])
        assert result.exit_code == 0, result.output
        assert "Assigned region 1 to 'alice'" in result.output

        result = runner.invoke(app, ["identity", "assign-region", "alice", "1"])
        assert "'alice' already has region 1" in result.output

        result = runner.invoke(app, ["identity", "assign-department", "alice", "10"])
        assert "Assigned department 10 to 'alice'" in result.output

    def test_assign_unknown_department(self, reference_file: Path) -> None:
        _load_reference(reference_file)
        runner.invoke(app, ["identity", "create", "--username", "alice", "--role", "scrutineer"])

        result = runner.invoke(app, ["identity", "assign-department", "alice", "404"])
        assert result.exit_code == 1

    def test_token_subject(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["identity", "token", "alice"])
        assert result.exit_code == 0, result.output
        token = result.output.strip().splitlines()[-1]
        assert subject_from_token(token, TEST_SECRET) == "alice"


class TestRecapAndAudit:
    """Tests for `tally-api recap` and `tally-api audit list`."""

    def test_recap_of_empty_department(self, reference_file: Path) -> None:
        _load_reference(reference_file)

        result = runner.invoke(app, ["recap", "10"])
        assert result.exit_code == 0, result.output
        assert "Department 10 - Mfoundi" in result.output
        assert "Locked: no" in result.output
        assert "Communes: 0/2 submitted (0.0%)" in result.output

    def test_recap_unknown_department(self, reference_file: Path) -> None:
        _load_reference(reference_file)

        result = runner.invoke(app, ["recap", "404"])
        assert result.exit_code == 1

    def test_audit_list_empty(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["audit", "list", "--overridden"])
        assert result.exit_code == 0, result.output
        assert "Total: 0" in result.output

    def test_audit_list_filters_by_unit_type(self, cli_env: Path) -> None:
        engine = create_engine(f"sqlite:///{cli_env / 'tally.db'}")
        with Session(engine) as session:
            session.add_all(
                [
                    AuditLog(
                        username="admin", action="submit_department_results", unit_type="department", unit_code=10
                    ),
                    AuditLog(
                        username="admin", action="submit_commune_participation", unit_type="commune", unit_code=10
                    ),
                ]
            )
            session.commit()
        engine.dispose()

        result = runner.invoke(app, ["audit", "list", "--unit", "10"])
        assert result.exit_code == 0, result.output
        assert "Total: 2" in result.output

        result = runner.invoke(app, ["audit", "list", "--unit-type", "commune", "--unit", "10"])
        assert result.exit_code == 0, result.output
        assert "submit_commune_participation commune 10" in result.output
        assert "submit_department_results" not in result.output
        assert "Total: 1" in result.output

    def test_audit_list_rejects_unknown_unit_type(self, cli_env: Path) -> None:
        result = runner.invoke(app, ["audit", "list", "--unit-type", "region"])
        assert result.exit_code != 0
