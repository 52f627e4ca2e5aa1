import json
import logging
from pathlib import Path

from invtrack.config import get_app_paths
from invtrack.logging_config import JsonFormatter
from invtrack.main import _parse_args


def test_app_paths_honour_home_override(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("INVTRACK_HOME", str(tmp_path / "home"))

    paths = get_app_paths()

    assert paths.base_dir == tmp_path / "home"
    assert paths.db_path == tmp_path / "home" / "inventory.db"
    assert paths.logs_dir.is_dir()


def test_explicit_db_path_wins(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("INVTRACK_HOME", str(tmp_path / "home"))

    paths = get_app_paths(db_path=tmp_path / "data" / "shop.db")

    assert paths.db_path == tmp_path / "data" / "shop.db"
    assert (tmp_path / "data").is_dir()


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord(
        "invtrack.stock", logging.WARNING, __file__, 1,
        "stock_exit_rejected product_id=%s", (7,), None,
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "invtrack.stock"
    assert payload["message"] == "stock_exit_rejected product_id=7"


def test_cli_arguments():
    args = _parse_args(["--db", "x.db", "--log-level", "DEBUG"])
    assert args.db == Path("x.db")
    assert args.log_level == "DEBUG"

    defaults = _parse_args([])
    assert defaults.db is None
    assert defaults.log_level == "INFO"
