#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
CONFIG_PATH = PROJECT_ROOT / "config" / "settings.json"
LOG_DIR = PROJECT_ROOT / "logs"

from bjut_auth import (  # noqa: E402
    Credentials,
    Orchestrator,
    PortalAuthError,
    dormitory_logout,
    probe_connectivity,
    probe_reachability,
    query_traffic,
)
from bjut_auth.settings import load_settings, mask_value  # noqa: E402

logger = logging.getLogger("bjut_autologin")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BJUT campus network auto login")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="settings JSON file")
    parser.add_argument("--log-dir", type=Path, default=LOG_DIR)
    parser.add_argument("--no-log-file", action="store_true", help="log to the console only")
    parser.add_argument(
        "command",
        nargs="?",
        default="login",
        choices=("login", "logout", "status", "traffic"),
    )
    return parser


def load_credentials(settings: Dict[str, Any]) -> Optional[Credentials]:
    login = settings.get("login", {})
    username = os.environ.get("BJUT_USERNAME") or login.get("username", "")
    password = os.environ.get("BJUT_PASSWORD") or login.get("password", "")
    if not username or not password:
        return None
    return Credentials(username, password, login.get("operator") or "campus")


def run_login(settings: Dict[str, Any]) -> int:
    credentials = load_credentials(settings)
    if credentials is None:
        logger.error("Username or password missing (settings.json or BJUT_USERNAME/BJUT_PASSWORD)")
        return EXIT_CONFIG

    logger.info("Authentication process started for %s", mask_value(credentials.username))
    outcome = Orchestrator.from_settings(settings, logger=logger).login(credentials)
    logger.info("Authentication process finished.")
    print(outcome.message)
    return EXIT_OK if outcome.success else EXIT_FAILED


def run_logout(settings: Dict[str, Any]) -> int:
    outcome = dormitory_logout(settings, logger=logger)
    print(outcome.message)
    return EXIT_OK if outcome.success else EXIT_FAILED


def run_status(settings: Dict[str, Any]) -> int:
    http = settings.get("http", {})
    connectivity = settings.get("connectivity", {})
    state = probe_connectivity(
        timeout=http.get("connectivity_timeout_seconds", 5),
        ipv4_url=connectivity.get("ipv4_url", ""),
        ipv6_url=connectivity.get("ipv6_url", ""),
        logger=logger,
    )
    reachability = probe_reachability(
        timeout=http.get("reachability_timeout_seconds", 1),
        portals=settings.get("portals", {}),
        logger=logger,
    )
    print(f"IPv4: {'online' if state.ipv4_reachable else 'offline'}")
    print(f"IPv6: {'online' if state.ipv6_reachable else 'offline'}")
    for name, reachable in reachability.items():
        print(f"{name}: {'reachable' if reachable else 'unreachable'}")
    return EXIT_OK if state.fully_online else EXIT_FAILED


def run_traffic(settings: Dict[str, Any]) -> int:
    try:
        info = query_traffic(settings=settings, logger=logger)
    except PortalAuthError as exc:
        logger.error("Traffic query failed: %s", exc)
        print(f"Traffic query failed: {exc}")
        return EXIT_FAILED
    print(f"Plan: {info.plan or 'Unknown'}")
    print(f"Used: {info.used_traffic}")
    print(f"Total: {info.total_traffic}")
    print(f"Balance: {info.balance}")
    return EXIT_OK


COMMANDS = {
    "login": run_login,
    "logout": run_logout,
    "status": run_status,
    "traffic": run_traffic,
}


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)

    from config.logging_config import setup_logging

    setup_logging(None if args.no_log_file else args.log_dir, log_level=settings.get("log_level", "INFO"))

    return COMMANDS[args.command](settings)


if __name__ == "__main__":
    raise SystemExit(main())
