#!/usr/bin/env python3
"""
Main entry point for the stock market simulator.

``run`` executes a command file against a fresh market and prints the
requested views to stdout. ``serve`` starts the REST API and the
WebSocket feeds over one shared matching engine.
"""

import argparse
import asyncio
import signal
import sys
import threading
import time
from typing import List, Optional

from stockmarket.api.command_runner import CommandRunner
from stockmarket.api.rest_api import create_app
from stockmarket.api.websocket_api import WebSocketServer
from stockmarket.config.settings import get_settings
from stockmarket.core.exceptions import CommandParseError
from stockmarket.core.matching_engine import MatchingEngine
from stockmarket.utils.logger import setup_logging, get_logger, create_audit_logger, log_trade_audit
from stockmarket.utils.performance import get_performance_monitor

logger = get_logger(__name__)


def build_engine() -> MatchingEngine:
    """Create a matching engine wired to the audit log and, if enabled, the performance monitor."""
    settings = get_settings()
    monitor = get_performance_monitor() if settings.enable_performance_monitoring else None
    engine = MatchingEngine(performance_monitor=monitor)

    audit_logger = create_audit_logger(settings.audit_log_file)
    engine.add_trade_callback(lambda trade: log_trade_audit(audit_logger, trade.to_dict()))
    return engine


class StockMarketServer:
    """
    REST API on a daemon thread plus the WebSocket feed on the main
    thread, both serving the same engine.
    """

    def __init__(self, engine: MatchingEngine):
        self.settings = get_settings()
        self.matching_engine = engine
        self.websocket_server = None
        self.rest_thread = None

    def start(self) -> None:
        """Blocks until the WebSocket loop stops."""
        self.matching_engine.market_logger.log_system_event(
            "SERVER_START",
            f"rest={self.settings.rest_port} websocket={self.settings.websocket_port}"
        )
        self._start_rest_server()
        self._start_websocket_server()

    def _start_rest_server(self) -> None:
        app = create_app(self.matching_engine)

        def run_rest_server():
            logger.info(f"REST API listening on http://{self.settings.rest_host}:{self.settings.rest_port}")
            app.run(
                host=self.settings.rest_host,
                port=self.settings.rest_port,
                debug=self.settings.debug,
                use_reloader=False
            )

        self.rest_thread = threading.Thread(target=run_rest_server, daemon=True)
        self.rest_thread.start()

        # werkzeug binds asynchronously; let it claim the port before the feed starts
        time.sleep(1)

    def _start_websocket_server(self) -> None:
        self.websocket_server = WebSocketServer(
            self.matching_engine,
            host=self.settings.websocket_host,
            port=self.settings.websocket_port,
            ping_interval=self.settings.websocket_ping_interval,
            ping_timeout=self.settings.websocket_ping_timeout,
        )
        asyncio.run(self.websocket_server.start())


def run_commands(path: str, strict: bool, echo: bool = True) -> int:
    """Run a command file; returns the process exit code."""
    runner = CommandRunner(engine=build_engine(), strict=strict, echo=echo)
    try:
        rejected = runner.run_file(path)
    except FileNotFoundError:
        logger.error(f"Input file not found: {path}")
        return 1
    except CommandParseError as e:
        logger.error(f"Parse error: {e} (line: {e.line.strip()!r})")
        return 2

    if rejected:
        logger.warning(f"{rejected} malformed line(s) skipped")
    return 0


def signal_handler(signum, frame):
    logger.info(f"Signal {signum} received, stopping")
    sys.exit(0)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Heap-based limit-order stock market")
    subparsers = parser.add_subparsers(dest="mode")

    run_parser = subparsers.add_parser("run", help="Execute a command file")
    run_parser.add_argument("input", nargs="?", default=settings.input_file, help="Command file")
    run_parser.add_argument("--strict", action="store_true", default=settings.strict_input,
                            help="Stop at the first malformed line")
    run_parser.add_argument("--no-echo", dest="echo", action="store_false", default=settings.echo_commands,
                            help="Do not echo input lines")

    subparsers.add_parser("serve", help="Start the REST and WebSocket servers")

    args = parser.parse_args(argv)

    setup_logging(level=settings.log_level, log_file=settings.log_file)

    if args.mode == "serve":
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
        try:
            StockMarketServer(build_engine()).start()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping")
        return 0

    return run_commands(
        getattr(args, "input", settings.input_file),
        getattr(args, "strict", settings.strict_input),
        getattr(args, "echo", settings.echo_commands),
    )


if __name__ == "__main__":
    sys.exit(main())
