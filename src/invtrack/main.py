from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from invtrack.application.container import build_container
from invtrack.config import get_app_paths
from invtrack.logging_config import setup_logging
from invtrack.ui.app import ConsoleApp

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="invtrack",
        description="Console inventory tracker with FIFO stock batches.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite database (default: inventory.db in the app directory).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum level written to app.log (default: INFO).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    paths = get_app_paths(db_path=args.db)
    setup_logging(paths.logs_dir, level=getattr(logging, args.log_level))

    container = build_container(paths.db_path)
    log.info("app_started db=%s", paths.db_path)

    try:
        ConsoleApp(container).run()
    except (KeyboardInterrupt, EOFError):
        print()
    log.info("app_stopped")


if __name__ == "__main__":
    main()
