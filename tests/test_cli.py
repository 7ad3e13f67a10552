import json

from ecole_manager.cli import main
from ecole_manager.core.config import Settings
from ecole_manager.migration.legacy_store import JsonFileLegacyStore


def _settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'school.db'}",
        LEGACY_STORE_PATH=str(tmp_path / "legacy.json"),
        LOG_LEVEL="WARNING",
    )


def test_migrate_then_export(tmp_path, capsys) -> None:
    settings = _settings(tmp_path)
    legacy = JsonFileLegacyStore(settings.legacy_store_path)
    legacy.write_json("students", [{"id": "1", "firstName": "Ada", "lastName": "Lovelace"}])
    legacy.set_item("activeYearId", "2025-2026")

    assert main(["migrate", "--clear"], settings) == 0
    assert legacy.keys() == ["activeYearId"]

    capsys.readouterr()
    output = tmp_path / "export.json"
    assert main(["export", "--output", str(output)], settings) == 0
    document = json.loads(output.read_text(encoding="utf-8"))
    assert [s["last_name"] for s in document["students"]] == ["Lovelace"]


def test_health_and_backup(tmp_path, capsys) -> None:
    settings = _settings(tmp_path)
    JsonFileLegacyStore(settings.legacy_store_path).set_item("sidebarHidden", "true")

    assert main(["health"], settings) == 0
    assert capsys.readouterr().out.strip() == "healthy"

    assert main(["backup"], settings) == 0
    assert json.loads(capsys.readouterr().out) == {"sidebarHidden": True}


def test_unreachable_store_exits_non_zero(tmp_path, capsys) -> None:
    settings = Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'school.db'}",
        LEGACY_STORE_PATH=str(tmp_path / "legacy.json"),
        LOG_LEVEL="WARNING",
    )
    assert main(["health"], settings) == 1
    assert "Store unavailable" in capsys.readouterr().err


def test_stats(tmp_path, capsys) -> None:
    settings = _settings(tmp_path)
    assert main(["stats"], settings) == 0
    stats = json.loads(capsys.readouterr().out)
    assert (stats["students"], stats["academic_years"]) == (0, 1)
