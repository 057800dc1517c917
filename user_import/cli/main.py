from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..db.base import AccountStore, RoleStore
from ..db.memory import InMemoryAccountStore, InMemoryRoleStore
from ..excel.codec import ParseError
from ..excel.template import generate_template
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..services.importer import ImportService, InvalidRoleError, UploadedFile, UploadRejectedError
from ..services.summary import render_summary_line

"""CLI entrypoint.

Subcommands:
- template OUTPUT: write the example workbook
- roles: list assignable roles
- import FILE --role-id ID --owner OWNER: provision accounts, print the JSON
  response, download the results workbook once and write it to --output

Exit codes: 0 every record provisioned, 2 some records failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

DEFAULT_RESULTS_PATH = "user-import-results.xlsx"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so that connection settings in it win over the YAML config."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="user-import", description="Batch admin-user import from Excel")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    sub = p.add_subparsers(dest="command", required=True)

    tpl = sub.add_parser("template", help="Write the import template workbook")
    tpl.add_argument("output", type=Path)

    sub.add_parser("roles", help="List assignable roles")

    imp = sub.add_parser("import", help="Import users from a workbook")
    imp.add_argument("file", type=Path)
    imp.add_argument("--role-id", required=True, help="Role assigned to every imported user")
    imp.add_argument("--owner", required=True, help="Identity of the principal running the import")
    imp.add_argument("--output", type=Path, default=Path(DEFAULT_RESULTS_PATH), help="Results workbook path")
    return p.parse_args(argv)


@contextmanager
def _backends(cfg: ImportConfig) -> Iterator[tuple[AccountStore, RoleStore]]:
    """Yield account/role backends; DISABLE_DB_CONNECT=1 selects the in-memory ones."""
    logger = logging.getLogger(__name__)
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> in-memory backends")
        yield InMemoryAccountStore(), InMemoryRoleStore()
        return

    # psycopg2 は DB モードでのみ読み込む
    from ..db.accounts import PgAccountStore, PgRoleStore
    from ..db.connection import db_cursor

    with db_cursor(cfg.database) as cur:
        yield PgAccountStore(cur), PgRoleStore(cur)


def _run_import(args: argparse.Namespace, cfg: ImportConfig, accounts: AccountStore, roles: RoleStore) -> int:
    logger = setup_logging()
    try:
        upload = UploadedFile.from_path(args.file)
    except OSError as e:
        logger.error(f"import: cannot read {args.file}: {e}")
        return EXIT_FATAL

    service = ImportService(
        accounts,
        roles,
        config=cfg,
        error_log=ErrorLogBuffer(cfg.error_log_dir),
        show_progress=True,
    )
    with service:
        try:
            response = service.import_users(upload, args.role_id, owner_id=args.owner)
        except (UploadRejectedError, InvalidRoleError, ParseError) as e:
            logger.error(f"import: {e}")
            return EXIT_FATAL

        print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))

        if response.result_id is not None:
            report = service.download_results(response.result_id, args.owner)
            args.output.write_bytes(report)
            logger.info(f"results written to {args.output}")

    log_summary(render_summary_line(response)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if response.error_count else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.command == "template":
        args.output.write_bytes(generate_template())
        logger.info(f"template written to {args.output}")
        return EXIT_SUCCESS_ALL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        with _backends(cfg) as (accounts, roles):
            if args.command == "roles":
                for role in roles.list_roles():
                    print(json.dumps(role.to_dict(), ensure_ascii=False))
                return EXIT_SUCCESS_ALL
            return _run_import(args, cfg, accounts, roles)
    except Exception as e:  # DB 接続失敗など
        logger.error(f"fatal: {e}")
        return EXIT_FATAL
