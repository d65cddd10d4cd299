# main.py

"""Entry point for the prixnc_ai assistant (TUI, headless CLI or relay)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("prixnc_ai.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="prixnc_ai",
        description="Shopping assistant for the prix.nc price catalog.",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search query. Omit to launch the interactive TUI.",
    )
    parser.add_argument(
        "-p",
        "--page",
        type=int,
        default=0,
        help="Zero-indexed result page (default: 0).",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=None,
        help=f"Page size (default: {Settings.DEFAULT_PAGE_SIZE}).",
    )
    parser.add_argument(
        "--sort",
        choices=Settings.SORT_OPTIONS,
        default=None,
        dest="sort_by",
        help="Client-side ordering of the results page.",
    )
    parser.add_argument(
        "--lat",
        type=float,
        default=None,
        dest="latitude",
        help="User latitude, enables store distances.",
    )
    parser.add_argument(
        "--lon",
        type=float,
        default=None,
        dest="longitude",
        help="User longitude, enables store distances.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--details",
        nargs=2,
        metavar=("ID", "NAME"),
        default=None,
        help="Show every selling point of a product.",
    )
    parser.add_argument(
        "--scan",
        metavar="IMAGE",
        default=None,
        help="Extract items from a shopping-list photo and compare stores.",
    )
    parser.add_argument(
        "--history",
        metavar="FILE",
        default=None,
        help="Analyse a JSON purchase history and print recommendations.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the catalog relay and auth HTTP endpoints.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check the catalog API, OCR engine and model configuration.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import PrixNcApp

    try:
        app = PrixNcApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("prixnc_ai TUI shutting down")


def _run_mode(args: argparse.Namespace) -> str:
    """Name of the entry point selected by *args*, used to tag the log."""
    if args.serve:
        return "relay"
    if args.health:
        return "health"
    if args.history is not None:
        return "history"
    if args.scan is not None:
        return "scan"
    if args.details is not None:
        return "details"
    if args.query is None:
        return "tui"
    return "search"


def main() -> None:
    """Route to the requested mode; no arguments opens the TUI."""
    args = _build_parser().parse_args()
    log_file = setup_logging(_run_mode(args))
    logger.info("prixnc_ai starting, log file: %s", log_file)

    from src.cli import runner

    if args.serve:
        sys.exit(runner.run_relay())
    elif args.health:
        sys.exit(asyncio.run(runner.run_health_check()))
    elif args.history is not None:
        sys.exit(
            runner.run_pattern_analysis(args.history, args.output_format)
        )
    elif args.scan is not None:
        sys.exit(
            asyncio.run(
                runner.cli_scan(
                    args.scan,
                    args.output_format,
                    args.latitude,
                    args.longitude,
                )
            )
        )
    elif args.details is not None:
        product_id, product_name = args.details
        sys.exit(
            runner.cli_details(
                product_id, product_name, args.output_format
            )
        )
    elif args.query is None:
        _run_tui()
    else:
        sys.exit(
            runner.cli_search(
                query=args.query,
                page=args.page,
                size=args.size,
                sort_by=args.sort_by,
                output_format=args.output_format,
                latitude=args.latitude,
                longitude=args.longitude,
            )
        )


if __name__ == "__main__":
    main()
