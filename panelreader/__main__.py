"""Entry point for running PanelReader as a module.

Usage:
    python -m panelreader [PATH] [--config FILE.yaml] [--preset NAME] [--page N]
"""

from __future__ import annotations

import argparse
import logging
import sys

from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication

from .config import PRESETS, AppConfig
from .main_window import ReaderWindow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="panelreader",
                                     description="Read comics one panel at a time")
    parser.add_argument("path", nargs="?", help="PDF, image or folder of images")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to a YAML configuration file")
    parser.add_argument("--preset", choices=sorted(PRESETS), default=None,
                        help="Start from a preset configuration")
    parser.add_argument("--page", type=int, default=1, help="Page to open (1-based)")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (DEBUG, INFO, WARNING...)")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    """Preset first (if any), then the YAML file on top of it."""
    base = PRESETS[args.preset].copy() if args.preset else AppConfig()
    if args.config:
        return AppConfig.from_yaml(args.config, base=base)
    return base


def main(argv=None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    config = load_config(args)

    level = (args.log_level or config.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format="%(asctime)s [%(name)s] %(levelname)s %(message)s")

    app = QApplication(sys.argv[:1])
    window = ReaderWindow(config)
    window.show()

    if args.path:
        QtAsyncio.run(window.open_path(args.path, max(0, args.page - 1)),
                      keep_running=True, handle_sigint=True)
    else:
        QtAsyncio.run(keep_running=True, handle_sigint=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
