"""Argument handling and an end-to-end run of scripts/sweep_overdue.py."""

import importlib.util
from datetime import date
from pathlib import Path
from uuid import UUID

import pytest

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "sweep_overdue.py"


@pytest.fixture(scope="module")
def sweep_script():
    spec = importlib.util.spec_from_file_location("sweep_overdue_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestArguments:

    def test_defaults(self, sweep_script, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        args = sweep_script._parse_args([])
        assert args.organization_id is None
        assert args.as_of is None
        assert args.db_url == sweep_script.DB_URL
        assert not args.create_tables

    def test_parsed_values(self, sweep_script):
        org = "00000000-0000-4000-a000-000000000002"
        args = sweep_script._parse_args(
            ["--organization-id", org, "--as-of", "2025-03-31", "--create-tables", "-v"]
        )
        assert args.organization_id == UUID(org)
        assert args.as_of == date(2025, 3, 31)
        assert args.create_tables
        assert args.verbose

    def test_bad_date_exits(self, sweep_script):
        with pytest.raises(SystemExit):
            sweep_script._parse_args(["--as-of", "31/03/2025"])


class TestMain:

    def test_bad_config_returns_error(self, sweep_script, tmp_path, capsys):
        missing = tmp_path / "missing.yaml"
        code = sweep_script.main(["--config", str(missing), "--db-url", "sqlite://"])
        assert code == 1
        assert "ERROR" in capsys.readouterr().err
