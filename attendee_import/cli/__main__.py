from __future__ import annotations

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from attendee_import.analysis.classifier import ClassificationError, build_classifier
from attendee_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from attendee_import.db.store import InMemoryTicketStore, PostgresTicketStore
from attendee_import.logging.error_log import ErrorLogBuffer
from attendee_import.logging.init import enable_debug, log_summary, setup_logging
from attendee_import.models.import_outcome import ImportOutcome
from attendee_import.services.session import ImportSession
from attendee_import.services.summary import (
    render_error_lines,
    render_preview_lines,
    render_summary_fields,
)

"""CLI entrypoint.

Flow:
- Load .env and config
- Analyze the uploaded file and print the preview (no writes)
- Ask for confirmation (skipped with --yes)
- Commit and print the SUMMARY line
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DRY_RUN_TICKET_TYPE = "General Admission (dry run)"


@contextmanager
def _db_connection(cfg):  # pragma: no cover (thin wrapper; tested via integration)
    """Context manager yielding a psycopg2 cursor on an autocommit connection.

    Connection settings, highest priority first:
        1. DATABASE_URL / PGDSN (whole DSN)
        2. config database.dsn
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
           the individual config database keys
    Autocommit is on so the store's explicit BEGIN/COMMIT are the only
    transaction boundaries (one per batch).
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    try:
        conn.autocommit = True
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over the existing environment."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Bulk-import attendees from a CSV/XLSX file into an event")
    p.add_argument("file", type=Path, help="Attendee file (.csv, .tsv, .txt, .xlsx, .xlsm)")
    p.add_argument("--event-id", help="Target event (overrides IMPORT_EVENT_ID and config event_id)")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument(
        "--include-name-only",
        action="store_true",
        help="Also import rows without an email (a placeholder email is generated)",
    )
    p.add_argument("--yes", action="store_true", help="Import without asking for confirmation")
    p.add_argument("--analyze-only", action="store_true", help="Print the preview and exit")
    p.add_argument("--dry-run", action="store_true", help="Commit into an in-memory store")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _confirm(count: int) -> bool:
    try:
        answer = input(f"Import {count} attendee(s)? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def _exit_code(outcome: ImportOutcome) -> int:
    if outcome.fatal:
        return EXIT_FATAL
    if outcome.error_count > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _report(logger, outcome: ImportOutcome, error_log: ErrorLogBuffer) -> int:
    if outcome.errors:
        logger.warning(f"{len(outcome.errors)} attendee(s) not imported:")
        for line in render_error_lines(outcome):
            logger.warning(line)
    try:
        written = error_log.flush()
        if written is not None:
            logger.info(f"error log written: {written}")
    except OSError as e:
        logger.warning(f"could not write error log: {e}")
    log_summary(render_summary_fields(outcome))
    return _exit_code(outcome)


def _run(args: argparse.Namespace, cfg, store, logger) -> int:
    event_id = args.event_id or os.getenv("IMPORT_EVENT_ID") or cfg.event_id
    error_log = ErrorLogBuffer()
    try:
        classifier = build_classifier(cfg.classifier)
    except ClassificationError as e:
        logger.error(f"classifier: {e}")
        return EXIT_FATAL

    if args.dry_run and event_id:
        store.add_ticket_type(event_id, DRY_RUN_TICKET_TYPE, 0)

    session = ImportSession(event_id, classifier, store, cfg, error_log=error_log)
    analyzed = session.analyze(args.file)
    if isinstance(analyzed, ImportOutcome):
        logger.error(f"analysis: {analyzed.errors[0].reason}")
        return _report(logger, analyzed, error_log)

    for line in render_preview_lines(analyzed):
        print(line)
    if args.analyze_only:
        error_log.flush()
        return EXIT_SUCCESS_ALL

    count = analyzed.importable_count if args.include_name_only else analyzed.with_email_count
    if not args.include_name_only and analyzed.name_only_count:
        logger.info(
            f"{analyzed.name_only_count} row(s) without email will not be imported "
            "(use --include-name-only)"
        )
    if not args.yes and not _confirm(count):
        logger.info("import cancelled")
        session.reset()
        return EXIT_SUCCESS_ALL

    outcome = session.commit(include_name_only=args.include_name_only)
    return _report(logger, outcome, error_log)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up the test runner's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path('.env'), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug()

    logger.info(f"Importing attendees from: {args.file}")

    # DISABLE_DB_CONNECT=1 behaves like --dry-run (tests, local trials)
    if args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1":
        args.dry_run = True
        logger.info("mode=dry-run (in-memory store, nothing is persisted)")
        return _run(args, cfg, InMemoryTicketStore(), logger)

    if args.analyze_only:
        return _run(args, cfg, None, logger)

    try:
        with _db_connection(cfg) as cur:
            logger.info("mode=live")
            return _run(args, cfg, PostgresTicketStore(cur), logger)
    except Exception as db_e:
        logger.error(f"database: {db_e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
