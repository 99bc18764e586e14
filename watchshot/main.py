#!/usr/bin/env python3
"""
WatchShot CLI

Puts watch screenshots onto watch-face artwork for sharing.

Commands:
  list      - List screenshots of known watch sizes
  models    - Show the models for a screenshot's watch size
  compose   - Composite a screenshot onto a model
  buy       - Buy a model that is for sale
  restore   - Restore previous purchases

Usage:
  watchshot list
  watchshot compose ~/Pictures/IMG_0042.png --model steel_steel_milanese --tint "#3a6ea5"
  watchshot buy edition_gold_red --size 42mm
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from watchshot import __version__
from watchshot.commands.compose import ComposeCommand, ListCommand
from watchshot.commands.purchases import BuyCommand, ModelsCommand, RestoreCommand
from watchshot.commands.session import Session
from watchshot.config.project_config import AppConfig
from watchshot.services.catalog import CatalogError


# Console colors
MAGENTA = '\033[0;35m'
YELLOW = '\033[1;33m'
RED = '\033[0;31m'
NC = '\033[0m'


def print_banner() -> None:
    """Print CLI banner"""
    print()
    print(f"{MAGENTA}╔════════════════════════════════════════════╗{NC}")
    print(f"{MAGENTA}║            ⌚  WATCH SHOT  ⌚              ║{NC}")
    print(f"{MAGENTA}║      Python + Pillow + NumPy + OpenCV      ║{NC}")
    print(f"{MAGENTA}╚════════════════════════════════════════════╝{NC}")
    print()


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands"""
    parser = argparse.ArgumentParser(
        prog='watchshot',
        description="Composite watch screenshots onto watch-face artwork",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  list      List screenshots of known watch sizes
  models    Show the models for a screenshot's watch size
  compose   Composite a screenshot onto a model
  buy       Buy a model that is for sale
  restore   Restore previous purchases

Environment:
  WATCHSHOT_CONFIG           Watch configuration (JSON or plist)
  WATCHSHOT_ARTWORK_DIR      Directory of <prefix>_<suffix>.png faces
  WATCHSHOT_DEFAULTS         Preferences file
  WATCHSHOT_STORE_DIR        Directory with products.json and receipt.json
  WATCHSHOT_SCREENSHOTS_DIR  Default screenshots directory
  WATCHSHOT_TINT             Default background tint

For command-specific help:
  %(prog)s compose --help
        """
    )

    # Global options
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'WatchShot {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        help='Watch configuration file (overrides WATCHSHOT_CONFIG)'
    )

    parser.add_argument(
        '--artwork-dir',
        type=Path,
        help='Watch-face artwork directory (overrides WATCHSHOT_ARTWORK_DIR)'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        help='Command to execute',
        required=True
    )

    # =====================================
    # LIST SUBCOMMAND
    # =====================================
    list_parser = subparsers.add_parser(
        'list',
        help='List screenshots of known watch sizes',
        description='List screenshots whose size matches a watch, newest first'
    )

    list_parser.add_argument(
        '--screenshots-dir',
        type=Path,
        help='Screenshots directory'
    )

    # =====================================
    # MODELS SUBCOMMAND
    # =====================================
    models_parser = subparsers.add_parser(
        'models',
        help="Show the models for a screenshot's watch size",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='Show each model with its ownership and action',
        epilog="""
Examples:
  %(prog)s ~/Pictures/IMG_0042.png
  %(prog)s --size 38mm --all
        """
    )

    models_parser.add_argument(
        'screenshot',
        type=Path,
        nargs='?',
        help='Screenshot whose size selects the watch'
    )

    models_parser.add_argument(
        '--size',
        help='Watch size filename prefix, instead of a screenshot'
    )

    models_parser.add_argument(
        '--all',
        action='store_true',
        dest='show_all',
        help='Include unavailable models'
    )

    # =====================================
    # COMPOSE SUBCOMMAND
    # =====================================
    compose_parser = subparsers.add_parser(
        'compose',
        help='Composite a screenshot onto a model',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description='Write the shareable PNG for a screenshot',
        epilog="""
Examples:
  # Last selected model, transparent background:
  %(prog)s IMG_0042.png

  # Specific model on a tinted background:
  %(prog)s IMG_0042.png --model steel_steel_milanese --tint 3a6ea5

  # Faded preview of a model that is not owned yet:
  %(prog)s IMG_0042.png --model edition_gold_red --preview
        """
    )

    compose_parser.add_argument(
        'screenshot',
        type=Path,
        help='Screenshot to composite'
    )

    compose_parser.add_argument(
        '--model',
        help='Model filename suffix (default: last selected for the size)'
    )

    compose_parser.add_argument(
        '--tint',
        help='Background color, e.g. "#3a6ea5" or "navy" (default: WATCHSHOT_TINT)'
    )

    compose_parser.add_argument(
        '--output',
        type=Path,
        help='Output PNG (default: <screenshot>_<model>.png)'
    )

    compose_parser.add_argument(
        '--preview',
        action='store_true',
        help='Allow models that are not owned; writes a faded preview'
    )

    # =====================================
    # BUY SUBCOMMAND
    # =====================================
    buy_parser = subparsers.add_parser(
        'buy',
        help='Buy a model that is for sale',
        description='Submit a purchase for a model'
    )

    buy_parser.add_argument(
        'model',
        help='Model filename suffix'
    )

    buy_parser.add_argument(
        '--size',
        required=True,
        help='Watch size filename prefix'
    )

    # =====================================
    # RESTORE SUBCOMMAND
    # =====================================
    subparsers.add_parser(
        'restore',
        help='Restore previous purchases',
        description='Refresh the receipt and re-validate purchases'
    )

    return parser


def cmd_list(args: argparse.Namespace, session: Session) -> int:
    """Execute list command"""
    return ListCommand(screenshots_dir=args.screenshots_dir, session=session).run()


def cmd_models(args: argparse.Namespace, session: Session) -> int:
    """Execute models command"""
    if args.screenshot is None and args.size is None:
        print(f"{RED}❌ Give a screenshot or --size{NC}")
        return 1
    return ModelsCommand(
        screenshot_path=args.screenshot,
        size_prefix=args.size,
        show_all=args.show_all,
        session=session
    ).run()


def cmd_compose(args: argparse.Namespace, session: Session) -> int:
    """Execute compose command"""
    return ComposeCommand(
        screenshot_path=args.screenshot,
        model_suffix=args.model,
        tint=args.tint,
        output_path=args.output,
        preview=args.preview,
        session=session
    ).run()


def cmd_buy(args: argparse.Namespace, session: Session) -> int:
    """Execute buy command"""
    return BuyCommand(model_suffix=args.model, size_prefix=args.size, session=session).run()


def cmd_restore(args: argparse.Namespace, session: Session) -> int:
    """Execute restore command"""
    return RestoreCommand(session=session).run()


COMMANDS = {
    'list': cmd_list,
    'models': cmd_models,
    'compose': cmd_compose,
    'buy': cmd_buy,
    'restore': cmd_restore,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print_banner()

    session = None
    try:
        config = AppConfig(watches_path=args.config, artwork_dir=args.artwork_dir)
        session = Session(config)
        return COMMANDS[args.command](args, session)

    except CatalogError as e:
        print(f"{RED}❌ {e}{NC}")
        return 1

    except KeyboardInterrupt:
        print(f"\n{YELLOW}⚠️  Operation cancelled by user{NC}")
        return 130

    except Exception as e:
        logging.exception(f"Unexpected error: {e}")
        return 1

    finally:
        if session is not None:
            session.close()


if __name__ == "__main__":
    sys.exit(main())
