#!/usr/bin/env python3
"""
Stock ledger management CLI.

Usage:
    python manage.py serve                Start the API server
    python manage.py migrate              Apply pending database migrations
    python manage.py generate-summaries   Monthly summaries (default: previous month)
    python manage.py refresh-values       Rebuild the current-value projection
    python manage.py status               Database and migration status
"""

import argparse
import asyncio
import sys

from stockledger.config import configure_logging, get_settings


async def _migrate() -> None:
    from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

    results = await initialize_database()
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "ok" if result.success else f"FAILED ({result.error})"
        print(f"  {result.version}: {state}")


def cmd_migrate(args: argparse.Namespace) -> None:
    asyncio.run(_migrate())


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    print(f"Starting server on {args.host}:{args.port}...")
    uvicorn.run(
        "stockledger.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


async def _generate_summaries(args: argparse.Namespace) -> int:
    from stockledger.application.dto.requests import (
        GenerateAllSummariesRequest,
        GenerateSummaryRequest,
    )
    from stockledger.application.use_cases import (
        GenerateAllSummariesUseCase,
        GenerateSummaryUseCase,
    )
    from stockledger.infrastructure.storage.sqlite import close_pool
    from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

    await initialize_database(create_backup_before=False)
    try:
        if args.sku or args.variant:
            if args.year is None or args.month is None:
                print("--year and --month are required with --sku/--variant", file=sys.stderr)
                return 2
            summary = await GenerateSummaryUseCase().execute(
                GenerateSummaryRequest(
                    sku=args.sku, variant_id=args.variant, year=args.year, month=args.month
                )
            )
            print(
                f"{summary.period} {summary.scope}: "
                f"opening {summary.opening_qty} / {summary.opening_value}, "
                f"closing {summary.closing_qty} / {summary.closing_value}"
            )
            return 0

        use_case = GenerateAllSummariesUseCase()
        report = await use_case.execute(
            GenerateAllSummariesRequest(year=args.year, month=args.month)
        )
        print(
            f"Summaries up to {report.target}: "
            f"{report.created} created, {report.skipped} skipped, {report.failed} failed"
        )
        for result in report.results:
            if result.message:
                print(f"  {result.sku}/{result.variant_id or '-'} {result.period}: {result.message}")
        return 1 if report.failed else 0
    finally:
        await close_pool()


def cmd_generate_summaries(args: argparse.Namespace) -> None:
    sys.exit(asyncio.run(_generate_summaries(args)))


async def _refresh_values() -> None:
    from stockledger.application.services import get_current_value_projection
    from stockledger.infrastructure.storage.sqlite import close_pool
    from stockledger.infrastructure.storage.sqlite.migrations import initialize_database

    await initialize_database(create_backup_before=False)
    try:
        projection = await get_current_value_projection()
        count = await projection.rebuild_all()
        print(f"Rebuilt {count} current-value rows.")
    finally:
        await close_pool()


def cmd_refresh_values(args: argparse.Namespace) -> None:
    asyncio.run(_refresh_values())


async def _status() -> None:
    from stockledger.infrastructure.storage.sqlite.migrations import (
        get_migration_status,
        verify_schema_integrity,
    )

    settings = get_settings()
    status = await get_migration_status()
    print(f"Database:  {settings.storage.db_path}")
    if not status["exists"]:
        print("  not created yet; run 'migrate'")
        return
    print(f"  version: {status['current_version']}")
    print(f"  applied: {len(status['applied_migrations'])}/{status['total_migrations']}")
    if status["pending_migrations"]:
        print(f"  pending: {', '.join(status['pending_migrations'])}")
    for check in await verify_schema_integrity():
        print(f"  {check['check']}: {check['status']}")


def cmd_status(args: argparse.Namespace) -> None:
    asyncio.run(_status())


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stock ledger management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    settings = get_settings()

    # serve
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", default=settings.api.host, help="Bind host")
    p_serve.add_argument("--port", type=int, default=settings.api.port, help="Bind port")
    p_serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.set_defaults(func=cmd_migrate)

    # generate-summaries
    p_sum = sub.add_parser(
        "generate-summaries",
        help="Generate monthly summaries (default: every scope, previous month)",
    )
    p_sum.add_argument("--year", type=int, help="Target year")
    p_sum.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12", help="Target month")
    p_sum.add_argument("--sku", help="Generate a single SKU scope")
    p_sum.add_argument("--variant", help="Generate a single variant scope")
    p_sum.set_defaults(func=cmd_generate_summaries)

    # refresh-values
    p_refresh = sub.add_parser("refresh-values", help="Rebuild the current-value projection")
    p_refresh.set_defaults(func=cmd_refresh_values)

    # status
    p_status = sub.add_parser("status", help="Database and migration status")
    p_status.set_defaults(func=cmd_status)

    args = parser.parse_args()
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
