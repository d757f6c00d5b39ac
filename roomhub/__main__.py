"""Run the roomhub server: ``python -m roomhub``."""
from __future__ import annotations

import argparse
import logging

import uvicorn

from .app import create_app
from .settings import Settings


def parse_args(settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Multi-room chat and live collaboration server")
    parser.add_argument("--host", default=settings.host, help=f"bind host (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"bind port (default: {settings.port})")
    parser.add_argument("--log-level", default=settings.log_level, help="DEBUG/INFO/WARNING/...")
    return parser.parse_args()


def main() -> None:
    settings = Settings()
    args = parse_args(settings)
    settings = settings.model_copy(update={"host": args.host, "port": args.port, "log_level": args.log_level.upper()})

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
