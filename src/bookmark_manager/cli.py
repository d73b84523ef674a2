"""Command-line interface for the bookmark manager."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .db.config import get_config

MIGRATIONS_DIR = Path(__file__).parent / "db" / "migrations"


def configure_logging(level: str) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Bookmark Manager - personal bookmarks on Supabase",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # =========================================================================
    # SERVE COMMAND
    # =========================================================================
    serve_parser = subparsers.add_parser("serve", help="Run the web server")
    serve_parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development only)",
    )

    # =========================================================================
    # DB COMMAND GROUP
    # =========================================================================
    db_parser = subparsers.add_parser("db", help="Database management commands")
    db_subparsers = db_parser.add_subparsers(
        dest="db_command", help="Database commands"
    )

    # db migrate
    db_migrate_parser = db_subparsers.add_parser(
        "migrate", help="Apply pending database migrations"
    )
    db_migrate_parser.add_argument(
        "--revision",
        type=str,
        default="head",
        help="Target revision (default: head)",
    )

    # db status
    db_subparsers.add_parser("status", help="Show migration status")

    # db setup
    db_subparsers.add_parser(
        "setup", help="Setup database (bookmarks table, row-level security, realtime)"
    )

    # =========================================================================
    # PARSE AND DISPATCH
    # =========================================================================
    args = parser.parse_args(argv)

    if args.command == "serve":
        _cmd_serve(args)
    elif args.command == "db":
        _cmd_db(args)
    else:
        parser.print_help()


# =============================================================================
# SERVE COMMAND
# =============================================================================


def _cmd_serve(args: argparse.Namespace) -> None:
    """Handle the serve command."""
    import uvicorn

    config = get_config()
    configure_logging(config.log_level)

    uvicorn.run(
        "bookmark_manager.web.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )


# =============================================================================
# DB COMMANDS
# =============================================================================


def _cmd_db(args: argparse.Namespace) -> None:
    """Handle database commands."""
    if args.db_command == "migrate":
        _db_migrate(args.revision)
    elif args.db_command == "status":
        _db_status()
    elif args.db_command == "setup":
        _db_setup()
    else:
        print("Usage: bookmark-manager db [migrate|status|setup]")
        sys.exit(1)


def _alembic_config():
    """Build the Alembic config, exiting if the database is not configured."""
    from alembic.config import Config

    alembic_ini = MIGRATIONS_DIR / "alembic.ini"
    if not alembic_ini.exists():
        print(f"Error: alembic.ini not found at {alembic_ini}")
        sys.exit(1)

    config = get_config()
    if not config.is_database_configured:
        print("Error: DATABASE_URL or DATABASE_URL_DIRECT must be set")
        sys.exit(1)

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    alembic_cfg.set_main_option(
        "sqlalchemy.url",
        (config.database_url_direct or config.database_url or "").replace("%", "%%"),
    )
    return alembic_cfg


def _db_migrate(revision: str = "head") -> None:
    """Run database migrations."""
    from alembic import command

    alembic_cfg = _alembic_config()

    print(f"Running migrations to {revision}...")
    try:
        command.upgrade(alembic_cfg, revision)
        print("Migrations completed successfully!")
    except Exception as e:
        print(f"Migration error: {e}")
        sys.exit(1)


def _db_status() -> None:
    """Show migration status."""
    from alembic import command

    alembic_cfg = _alembic_config()

    print("Migration status:")
    try:
        command.current(alembic_cfg, verbose=True)
    except Exception as e:
        print(f"Error checking status: {e}")
        sys.exit(1)


def _db_setup() -> None:
    """Full database setup."""
    print("Setting up bookmark manager database...")
    print()
    _db_migrate("head")
    print()
    print("Setup complete! Enable the OAuth provider in Supabase Dashboard > Authentication,")
    print(f"and add {get_config().callback_url} to the allowed redirect URLs.")


if __name__ == "__main__":
    main()
