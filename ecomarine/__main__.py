"""Command-line entry point: ``python -m ecomarine {serve,migrate,seed}``."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import timedelta

import uvicorn

from ecomarine.config import settings
from ecomarine.foundation.clock import utc_today
from ecomarine.main import build_store, configure_logging
from ecomarine.store.seed import seed_catalog

logger = logging.getLogger("ecomarine")


async def _migrate() -> None:
    store = build_store(settings)
    await store.open()
    await store.close()
    logger.info("Database migration complete")


async def _seed() -> None:
    store = build_store(settings)
    await store.open()
    try:
        day = utc_today() - timedelta(days=settings.imagery_lag_days)
        inserted = await seed_catalog(store, day, settings.imagery_delta_degrees)
        logger.info("Seeded %d baseline record(s)", inserted)
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="ecomarine", description=__doc__)
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="run the HTTP/WebSocket server")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    sub.add_parser("migrate", help="create database tables")
    sub.add_parser("seed", help="insert one baseline record per coastal location")

    args = parser.parse_args(argv)
    configure_logging(settings.log_level)

    if args.command == "migrate":
        asyncio.run(_migrate())
    elif args.command == "seed":
        asyncio.run(_seed())
    else:
        uvicorn.run(
            "ecomarine.main:app",
            host=getattr(args, "host", settings.host),
            port=getattr(args, "port", settings.port),
            log_level=settings.log_level.lower(),
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
