"""CLI entry point for bulletin."""

import argparse
import sys

from .config import BulletinConfig, load_config, merge_cli_args
from .logs import setup_logging
from .prober import start_prober
from .registry import JsonFileStore, ServiceRegistry
from .server import create_server


def _build_config(args) -> BulletinConfig:
    """Build a BulletinConfig from a config file + CLI overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = BulletinConfig()
    return merge_cli_args(config, args)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="bulletin",
        description="Bulletin: service registry with liveness probing",
    )
    parser.add_argument(
        "-p", "--port", type=int, default=None,
        help="Port to run the web server on (default: 8087)",
    )
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    args = parser.parse_args(argv)

    config = _build_config(args)

    try:
        logger = setup_logging(config.log_path)
    except OSError as e:
        print(f"Error: cannot open log file {config.log_path}: {e}", file=sys.stderr)
        sys.exit(1)

    registry = ServiceRegistry.from_store(JsonFileStore(config.db_path))

    try:
        server = create_server(registry, host=config.host, port=config.port)
    except OSError as e:
        logger.error("Listen on %s:%d failed: %s", config.host, config.port, e)
        print(f"Error: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        sys.exit(1)

    start_prober(registry, interval=config.probe_interval, timeout=config.probe_timeout)
    logger.info("Listening on %s:%d", config.host, config.port)
    print(f"Bulletin listening on {config.host}:{config.port}", file=sys.stderr)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
