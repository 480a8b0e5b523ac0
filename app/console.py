# SPDX-License-Identifier: GPL-3.0-or-later
"""
goal: main launcher for the integrity checker REST service. loads .env, sets up console logging,
prints a banner and serves the API. "--nonce" prints a REST nonce for scripts and curl instead.
"""

from __future__ import annotations  # lets us use string annotations before classes are defined

import argparse  # for parsing command line arguments
import logging  # for console log output
import os  # for reading secrets from the environment
import secrets  # for generating a nonce secret on first run
import sys  # for checking if we are frozen (packaged)
from dataclasses import replace  # for applying command line overrides to the frozen config
from pathlib import Path  # for working with file paths

from dotenv import load_dotenv

load_dotenv()  # load .env file if it exists

from rest.app import run_server  # noqa: E402
from rest.config import Config, load_config  # noqa: E402
from rest.nonce import NonceManager  # noqa: E402
from rest.rest import NAMESPACE, NONCE_ACTION  # noqa: E402

logger = logging.getLogger("integrity_checker")


def _resolve_base_dir() -> Path:
    # figure out the base directory of the application
    if getattr(sys, "frozen", False):  # running as a packaged executable (like PyInstaller)
        return Path(sys.executable).parent
    return Path(__file__).resolve().parents[1]  # project root


def _ensure_nonce_secret(base_dir: Path) -> None:
    # first run: write a .env with a fresh secret so nonces survive restarts
    if os.getenv("INTEGRITY_CHECKER_NONCE_SECRET"):
        return
    env_file = base_dir / ".env"
    if env_file.exists():
        return
    env_file.write_text(
        "# auto-generated on first run - keep this file secure and never commit it!\n"
        f"INTEGRITY_CHECKER_NONCE_SECRET={secrets.token_hex(32)}\n",
        encoding="utf-8",
    )
    load_dotenv(env_file)


class ColoredLevelFormatter(logging.Formatter):
    """prefix each line with a colored level tag when the terminal supports it"""

    COLORS = {
        logging.DEBUG: "\x1b[36m",  # cyan
        logging.INFO: "\x1b[32m",  # green
        logging.WARNING: "\x1b[33m",  # yellow
        logging.ERROR: "\x1b[31m",  # red
        logging.CRITICAL: "\x1b[35m",  # magenta
    }
    RESET = "\x1b[0m"

    def __init__(self, use_color: bool = True) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.use_color:
            return line
        return f"{self.COLORS.get(record.levelno, '')}{line}{self.RESET}"


def setup_logging(verbose: bool = False) -> None:
    try:
        from colorama import just_fix_windows_console

        just_fix_windows_console()
        use_color = sys.stderr.isatty()
    except Exception:
        use_color = False

    handler = logging.StreamHandler()
    handler.setFormatter(ColoredLevelFormatter(use_color=use_color))
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    # silence waitress web server log messages so the console stays clean
    logging.getLogger("waitress").setLevel(logging.ERROR)
    logging.getLogger("waitress.queue").setLevel(logging.CRITICAL)


def print_banner(cfg: Config) -> None:
    try:
        from colorama import Fore, Style

        purple, cyan, reset = Fore.MAGENTA, Fore.CYAN, Style.RESET_ALL
    except Exception:
        purple = cyan = reset = ""
    print(f"{purple}Integrity Checker{reset} REST service")
    print(f"  {cyan}WordPress:{reset} {cfg.wp_root}")
    print(f"  {cyan}API:{reset}       http://{cfg.host}:{cfg.port}/{NAMESPACE}")
    print(f"  {cyan}Reference:{reset} {cfg.api_url}\n")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Integrity Checker REST service")
    parser.add_argument("--host", help="address to bind (overrides config)")
    parser.add_argument("--port", type=int, help="port to bind (overrides config)")
    parser.add_argument("--wp-root", help="WordPress install to check (overrides config)")
    parser.add_argument(
        "--nonce",
        action="store_true",
        help=f"print a nonce for the {NONCE_ACTION} action and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    _ensure_nonce_secret(_resolve_base_dir())

    cfg = load_config()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.wp_root:
        wp_root = Path(args.wp_root)
        overrides.update(
            wp_root=wp_root,
            plugins_path=wp_root / "wp-content" / "plugins",
            themes_path=wp_root / "wp-content" / "themes",
        )
    if overrides:
        cfg = replace(cfg, **overrides)

    if args.nonce:
        if not cfg.nonce_secret:
            logger.error("no nonce secret configured (INTEGRITY_CHECKER_NONCE_SECRET)")
            return 1
        print(NonceManager(cfg.nonce_secret, cfg.nonce_lifetime).create_nonce(NONCE_ACTION))
        return 0

    print_banner(cfg)
    run_server(cfg)
    return 0


if __name__ == "__main__":
    sys.exit(main())
