from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import List, Optional

import uvicorn

from filegate.api.server import create_app
from filegate.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="filegate", description="Serve the filegate API."
    )
    p.add_argument("--host", default=None, help="bind address (env HOST)")
    p.add_argument(
        "--port", type=int, default=None, help="listening port (env PORT)"
    )
    p.add_argument(
        "--log-level", default=None, help="log level (env LOG_LEVEL)"
    )
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    overrides = {
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    settings = replace(
        settings, **{k: v for k, v in overrides.items() if v is not None}
    )

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
