"""Command line entry point: ``python -m agproxy``."""

import argparse
import os

import uvicorn

from .config_loader import load_config
from .logging import setup_logging
from .main import create_app
from .settings import build_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agproxy",
        description="OpenAI-compatible chat completions proxy for the Cloud Code API.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Bind host (default: server.host from the config).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (default: server.port from the config).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML config (default: $AGPROXY_CONFIG or configs/config_default.yaml).",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("AGPROXY_LOG_LEVEL", "info"),
        help="Log level (default: info).",
    )
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    if args.config:
        os.environ["AGPROXY_CONFIG"] = args.config

    setup_logging(args.log_level)
    settings = build_settings(load_config())
    app = create_app(settings)

    uvicorn.run(
        app,
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
