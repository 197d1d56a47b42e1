from pathlib import Path

import pytest

import config
from db import database


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[review]",
                "default_limit = 20",
                "max_limit = 200",
                "",
                "[grading]",
                "perfect_threshold = 0.98",
                "good_threshold = 0.85",
                "pass_threshold = 0.70",
                "close_threshold = 0.50",
                "some_threshold = 0.20",
                "",
                "[logging]",
                "level = \"WARNING\"",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / ".lecturelens"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    for name in ("REVIEW_DEFAULT_LIMIT", "REVIEW_MAX_LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


@pytest.fixture
def db_path(config_dir, monkeypatch):
    path = config_dir / "lecturelens.db"
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", path)
    database.init_db()
    return path


@pytest.fixture
def conn(db_path):
    with database.get_conn() as conn:
        yield conn
