from __future__ import annotations

import argparse
import sqlite3
import time
from pathlib import Path
from typing import List

from . import __version__
from .config import load_settings
from .convert import convert_places
from .dump import dump_store
from .errors import ConversionError, PlacesKVError
from .log import LogConfig, get_logger, setup_logging

log = get_logger(__name__)


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="placeskv",
        description="Denormalize a Firefox places.sqlite into an ordered key-value store.",
    )
    p.add_argument("-V", "--version", action="version", version=f"placeskv {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    sub = p.add_subparsers(dest="cmd", required=True)

    conv = sub.add_parser("convert", help="Convert places.sqlite into a new ordered store.")
    conv.add_argument("--places", required=True, help="places.sqlite file or Firefox profile dir.")
    conv.add_argument("--out", required=True, help="Output store path (must not exist).")
    conv.add_argument("--batch-limit", type=int, default=None, help="Place rows per write batch (overrides env/config).")
    conv.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    conv.add_argument("--no-color", action="store_true", help="Disable colored logging.")

    dump = sub.add_parser("dump", help="Print every entry of a converted store in key order.")
    dump.add_argument("--store", required=True, help="Store path written by `convert`.")
    dump.add_argument("--prefix", default="", help="Only entries whose key starts with this (e.g. 'H').")
    dump.add_argument("--limit", type=int, default=None, help="Stop after this many entries.")
    dump.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    dump.add_argument("--no-color", action="store_true", help="Disable colored logging.")

    args = p.parse_args(argv)
    cfg = load_settings(args.config)
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color))

    if args.cmd == "convert":
        return _cmd_convert(args, cfg)
    if args.cmd == "dump":
        return _cmd_dump(args)
    return 2


def _cmd_convert(args, cfg) -> int:
    t0 = time.time()
    if args.batch_limit is not None:
        cfg.batch_limit = args.batch_limit
    places = _resolve_places_path(Path(args.places))
    try:
        report = convert_places(places, Path(args.out), cfg)
    except ConversionError as e:
        log.error("The following fatal thing has ended us in phase %s: %s", e.phase, e.cause)
        return 2
    except PlacesKVError as e:
        log.error("Cannot start conversion: %s", e)
        return 2
    log.info(
        "Converted %d places into %s (%d puts, %d data warnings).",
        report.stats.places,
        args.out,
        report.puts,
        sum(report.warnings.values()),
    )
    log.info("Done in %d ms.", int((time.time() - t0) * 1000))
    return 0


def _cmd_dump(args) -> int:
    try:
        dump_store(Path(args.store), prefix=args.prefix, limit=args.limit)
    except FileNotFoundError as e:
        log.error("%s", e)
        return 2
    except sqlite3.Error as e:
        log.error("Cannot read store %s: %s", args.store, e)
        return 2
    return 0


def _resolve_places_path(profile_or_db_path: Path) -> Path:
    if profile_or_db_path.is_dir():
        return profile_or_db_path / "places.sqlite"
    return profile_or_db_path
