# app.py - command line entry point: build and render the missing-data deck
"""
Missing Data Deck - CLI

    missing-deck build [--data PATH] [--output DIR] [--format html,pdf,markdown]
                       [--seed N] [--imputations M] [--theme NAME] [--log-level LEVEL]
    missing-deck info

Exit code 0 on success, 1 on any build failure.
"""

import argparse
import json
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from config import get_config_info
from config.logging_config import (
    add_run_file_sinks,
    get_logger,
    remove_run_file_sinks,
    set_log_level,
    set_run_context,
)
from config.settings import SUPPORTED_DECK_FORMATS, settings
from config.theme import available_themes, get_theme
from core.exceptions import ConfigurationError, MissingDeckError, handle_exception

log = get_logger(__name__, component="cli")


def _new_run_id() -> str:
    return f"{datetime.now():%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:6]}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="missing-deck",
        description="Build the missing-data slide deck (MCAR/MAR/MNAR, deletion, imputation)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Run the demonstrations and render the deck")
    build.add_argument("--data", type=Path, default=None, help="Attrition CSV/Parquet (default: bundled or synthetic sample)")
    build.add_argument("--output", type=Path, default=None, help=f"Output directory (default: {settings.OUTPUT_PATH})")
    build.add_argument(
        "--format",
        default=None,
        help=f"Comma separated formats: {', '.join(SUPPORTED_DECK_FORMATS)} (default: {settings.DECK_FORMATS})",
    )
    build.add_argument("--seed", type=int, default=None, help="Random seed for amputation and imputation")
    build.add_argument("--imputations", type=int, default=None, help="Number of multiple imputations (>= 2)")
    build.add_argument("--theme", default=None, choices=available_themes(), help="Visual theme preset")
    build.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")

    sub.add_parser("info", help="Print dataset and settings summary")
    return parser


def cmd_build(args: argparse.Namespace) -> int:
    # deck building pulls in statsmodels/plotly/reportlab; keep `info` light
    from agents.presentation.deck_builder import DeckBuilder, DeckConfig
    from core.data_loader import AttritionDataLoader
    from services.report.render_service import normalize_formats, render_deck

    if args.log_level:
        set_log_level(args.log_level.upper())

    run_id = _new_run_id()
    set_run_context(run_id)
    if not settings.TEST_MODE:
        add_run_file_sinks(run_id, settings.LOGS_PATH / "builds")

    try:
        try:
            theme = get_theme(args.theme or settings.DECK_THEME)
        except KeyError as e:
            raise ConfigurationError(str(e), details={"available": available_themes()}) from e

        formats = normalize_formats(args.format)
        config = DeckConfig.from_settings(random_state=args.seed, n_imputations=args.imputations)
        loader = AttritionDataLoader(random_state=config.random_state)
        data = loader.load(args.data) if args.data else None

        log.info(f"🚀 Building deck (run {run_id}, seed {config.random_state}, m={config.n_imputations})")
        deck = DeckBuilder(config=config, theme=theme, loader=loader).build(data)
        paths = render_deck(deck, formats, args.output)

        for fmt, path in paths.items():
            print(f"{fmt}: {path}")
        log.success(f"✓ Build {run_id} finished: {len(deck)} slides")
        return 0

    except MissingDeckError as e:
        log.error(f"Build {run_id} failed: {e.message}")
        print(handle_exception(e, "Deck build"), file=sys.stderr)
        return 1

    finally:
        remove_run_file_sinks(run_id)
        set_run_context(None)


def cmd_info(args: argparse.Namespace) -> int:
    from core.data_loader import AttritionDataLoader

    info = get_config_info()
    try:
        loader = AttritionDataLoader()
        df = loader.load()
    except MissingDeckError as e:
        print(handle_exception(e, "Dataset info"), file=sys.stderr)
        return 1

    info["dataset"] = {
        "source": loader.source,
        "path": str(loader.source_path) if loader.source_path else None,
        "rows": int(len(df)),
        "columns": list(df.columns),
        "missing_values": int(df.isna().sum().sum()),
    }
    print(json.dumps(info, indent=2, default=str))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "build":
        return cmd_build(args)
    return cmd_info(args)


if __name__ == "__main__":
    sys.exit(main())
