from __future__ import annotations

import importlib.util
from pathlib import Path

from sqlalchemy import create_engine, inspect, text


SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load_script(name: str):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_create_orm_tables_check_and_create(tmp_path, capsys) -> None:
    script = _load_script("create_orm_tables")
    url = f"sqlite:///{tmp_path / 'fresh.db'}"

    assert script.main(["--db-url", url, "--check"]) == 1
    assert "missing: users" in capsys.readouterr().out

    assert script.main(["--db-url", url]) == 2
    assert "re-run with --i-understand" in capsys.readouterr().out

    assert script.main(["--db-url", url, "--i-understand"]) == 0
    assert "job_alerts" in capsys.readouterr().out
    assert script.main(["--db-url", url, "--check"]) == 0


def test_create_orm_tables_leaves_existing_tables_alone(tmp_path, capsys) -> None:
    script = _load_script("create_orm_tables")
    url = f"sqlite:///{tmp_path / 'partial.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, legacy TEXT)"))

    assert script.main(["--db-url", url, "--i-understand"]) == 0
    created = capsys.readouterr().out.split("created: ", 1)[1].strip().split(", ")
    assert "users" not in created
    assert "job_seekers" in created

    columns = {column["name"] for column in inspect(engine).get_columns("users")}
    assert columns == {"id", "legacy"}
    assert "job_alerts" in inspect(engine).get_table_names()
