#!/usr/bin/env python3
"""Run the cell status server until Ctrl+C / SIGTERM.

Reads config (argument, CELLSTATUS_CONFIG, config/config.yaml, config/config.yaml.example),
starts the service and prints the URL mobile clients should open."""

import argparse
import logging
import os
import signal
import sys
import threading

# Project root: allow running without installing the package
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

logging.basicConfig(
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cell status server for mobile clients on the LAN")
    parser.add_argument("config", nargs="?", default=None, help="Path to config YAML")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (overrides server.port)")
    parser.add_argument("--static-dir", default=None, help="Directory served at / (overrides server.static_dir)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    from cellstatus.app.host import ServiceHost
    from cellstatus.config.settings import get_static_dir, read_config
    from cellstatus.core.errors import ConfigError
    from cellstatus.engine.service import CellStatusService

    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config, config_path = read_config(args.config)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1
    if args.port is not None:
        config = {**config, "server": {**(config.get("server") or {}), "port": args.port}}
    static_dir = args.static_dir or get_static_dir(config)

    host = ServiceHost(service_factory=lambda: CellStatusService(static_dir=static_dir))
    result = host.start_server(config)
    if not result["success"]:
        print(f"Failed to start server: {result['error']}", file=sys.stderr)
        return 1
    print(f"Cell status server running (config={config_path})")
    print(f"Mobile URL: {result['url']}")

    stop_requested = threading.Event()

    def _on_signal(signum, frame):
        stop_requested.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)
    while not stop_requested.wait(0.5):
        pass
    host.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
