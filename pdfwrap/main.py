from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from pdfwrap.core.config import load_config
from pdfwrap.core.constants import PROGRAM_VERSION
from pdfwrap.core.errors import ConfigError
from pdfwrap.core.logging import resolve_level, setup_logging
from pdfwrap.core.settings import get_settings
from pdfwrap.db.session import check_database, get_engine, get_session_factory
from pdfwrap.pipeline.run import run_pipeline


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pdfwrap", description=PROGRAM_VERSION)
    parser.add_argument("--cfg", default=None, help="Configuration override file")
    parser.add_argument("-s", "--silent", action="store_true", help="Run silently")
    parser.add_argument("--debug", action="store_true", help="Show debugging info")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    setup_logging(
        resolve_level(silent=args.silent, debug=args.debug, default=settings.log_level),
        echo_sql=args.debug,
    )
    logger = logging.getLogger("pdfwrap")
    logger.info(PROGRAM_VERSION)

    try:
        config = load_config(args.cfg or settings.config_path, database_url=settings.database_url)
    except ConfigError as exc:
        sys.stderr.write(f"ERROR: {exc}\n")
        return 1

    engine = None
    try:
        engine = get_engine(config)
        logger.debug("Opening database %s", engine.url.render_as_string(hide_password=True))
        with get_session_factory(engine)() as db:
            if not check_database(db):
                return 1
            logger.debug("Database opened")
            run_pipeline(db, config)
    except SQLAlchemyError as exc:
        logger.error("Run aborted: %s", exc)
        return 1
    finally:
        if engine is not None:
            engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
