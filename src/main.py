"""
PoE Data - Command line entry point
Refreshes the cached wiki and trade datasets and runs quick lookups.

Usage:
    python main.py                         # Refresh stale caches
    python main.py --force                 # Refetch everything
    python main.py --currency alt          # Print currency stack text
    python main.py --mod IncreasedLife3    # Print a mod and its trade ids
    python main.py --item "Iron Hat"       # Print an item base
    python main.py --debug                 # Verbose file logging
"""

import sys
import os
import logging
import argparse
from pathlib import Path

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import LOG_FILE, LOG_FILE_NAME, LOG_LEVEL
from core import PoeData
from games.poe import create_poe_config

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False, log_file: Path = LOG_FILE):
    """Configure logging.

    Console shows LOG_LEVEL and up (INFO by default: progress, results, errors).
    File gets DEBUG when --debug is used (orphan rows, cache hits, etc.).
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(LOG_LEVEL)
    console.setFormatter(logging.Formatter(
        "%(asctime)s %(message)s",
        datefmt="%H:%M:%S"
    ))

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console)
    root_logger.addHandler(file_handler)


def attach_progress(poe: PoeData) -> None:
    """Log reader progress events to the console."""
    poe.register_callback(
        "update-start", lambda source: logger.info(f"Updating {source} data..."))
    poe.register_callback(
        "update-status",
        lambda source, sub_type, index: logger.info(f"  {source}/{sub_type}: {index} rows"))
    poe.register_callback(
        "update-done", lambda source: logger.info(f"Finished {source} update"))


def print_mod(poe: PoeData, mod_ident: str) -> bool:
    mod = poe.get_mod_by_ident(mod_ident)
    if mod is None:
        print(f"Unknown mod: {mod_ident}")
        return False
    print(f"{mod.mod_ident} ({mod.name or 'unnamed'})")
    print(f"  domain={mod.domain} generation={mod.generation_type}")
    for line, limits, ids in zip(mod.trade_text.split("\n"),
                                 mod.trade_limits, mod.trade_ids):
        print(f"  {line}  {limits}  → {', '.join(ids) or '(no trade stat)'}")
    return True


def print_item(poe: PoeData, name: str) -> bool:
    item = poe.get_item_base(name)
    if item is None:
        print(f"Unknown item: {name}")
        return False
    print(f"{item.name} [{item.item_class}]")
    if item.tags:
        print(f"  tags: {', '.join(item.tags)}")
    for mod in item.mods:
        print(f"  mod: {mod.get('id', '?')}")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="PoE Data - cached Path of Exile wiki and trade data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --force --debug          # Full refetch with debug log
  python main.py --currency chaos         # Chaos Orb stack text
        """
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Refetch even if the caches are fresh"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Directory for the compressed caches and the log file"
    )
    parser.add_argument(
        "--currency",
        metavar="IDENT",
        help="Print the clipboard text for one currency (trade id, e.g. alt)"
    )
    parser.add_argument(
        "--mod",
        metavar="IDENT",
        help="Print a mod by its wiki id (e.g. IncreasedLife3)"
    )
    parser.add_argument(
        "--item",
        metavar="NAME",
        help="Print an item base by name"
    )

    args = parser.parse_args()

    log_file = args.cache_dir / LOG_FILE_NAME if args.cache_dir else LOG_FILE
    setup_logging(debug=args.debug, log_file=log_file)

    try:
        poe = PoeData(create_poe_config(cache_dir=args.cache_dir))
        attach_progress(poe)
        poe.refresh(force=args.force)

        ok = True
        if args.currency:
            text = poe.get_currency_item_text(args.currency, 1)
            if text is None:
                print(f"Unknown currency: {args.currency}")
                ok = False
            else:
                print(text)
        if args.mod:
            ok = print_mod(poe, args.mod) and ok
        if args.item:
            ok = print_item(poe, args.item) and ok
        if not ok:
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
