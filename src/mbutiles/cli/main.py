"""CLI entry point for mbutiles."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional

from mbutiles.config import ConversionConfig, load_config
from mbutiles.core.errors import MBTilesError
from mbutiles.core.models import ImageFormat, Scheme
from mbutiles.logging import configure_logging, get_logger, level_for
from mbutiles.pipeline import dump_metadata, export_tiles, import_tiles

LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input", type=Path, help="Source directory or MBTiles file")
    common.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=None,
        help="Destination (defaults to <input>.mbtiles on import, the container stem otherwise)",
    )
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a configuration file (YAML or JSON) providing option defaults",
    )
    common.add_argument(
        "--scheme",
        choices=[scheme.value for scheme in Scheme],
        default=None,
        help=(
            'Tiling scheme of the tiles. Default is "xyz" (z/x/y), other options are "tms" which '
            'is also z/x/y but uses a flipped y coordinate, "wms" which replicates the MapServer '
            'WMS TileCache directory structure "z/000/000/x/000/000/y.png", and "ags" for ArcGIS '
            "exploded caches"
        ),
    )
    common.add_argument(
        "--image-format",
        choices=["png", "jpg", "jpeg", "webp", "pbf"],
        default=None,
        help="The format of the image tiles (default: png)",
    )
    common.add_argument(
        "--grid-callback",
        default=None,
        help=(
            "JSONP callback for UTFGrid tiles (default: grid). If grids are not used as JSONP, "
            'remove callbacks with --grid-callback=""'
        ),
    )
    common.add_argument("--verbose", action="store_true", help="Show log info")
    common.add_argument("--log-level", default=None, help="Explicit logging level, overrides --verbose")
    common.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")

    parser = argparse.ArgumentParser(description="MBTiles utils: convert between tile directories and MBTiles")
    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("import", parents=[common], help="Import a tile directory into a new MBTiles file")
    subcommands.add_parser("export", parents=[common], help="Export an MBTiles file into a new tile directory")
    subcommands.add_parser("metadata", parents=[common], help="Dump the metadata of an MBTiles file")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        cfg = load_config(args.config) if args.config is not None else ConversionConfig()
    except (OSError, ValueError) as exc:
        parser.error(f"Invalid configuration {args.config}: {exc}")
        return 2
    _apply_overrides(cfg, args)

    configure_logging(
        level=level_for(args.verbose, cfg.log_level),
        json_logs=cfg.json_logs,
        log_file=cfg.log_file,
    )
    LOGGER.info("arguments", extra={"command": args.command, "input": str(args.input)})

    try:
        if args.command == "import":
            return _handle_import(args, cfg)
        if args.command == "export":
            return _handle_export(args, cfg)
        if args.command == "metadata":
            return _handle_metadata(args)
    except MBTilesError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    parser.error("Unknown command")
    return 1


def _apply_overrides(cfg: ConversionConfig, args: argparse.Namespace) -> None:
    if args.scheme is not None:
        cfg.scheme = Scheme.parse(args.scheme)
    if args.image_format is not None:
        cfg.image_format = ImageFormat.parse(args.image_format)
    if args.grid_callback is not None:
        cfg.grid_callback = args.grid_callback
    if args.log_level is not None:
        cfg.log_level = args.log_level
    if args.log_json:
        cfg.json_logs = True


def _default_output(args: argparse.Namespace) -> Path:
    if args.output is not None:
        return args.output
    if args.command == "import":
        return Path(f"{args.input}.mbtiles")
    return Path(args.input.stem)


def _handle_import(args: argparse.Namespace, cfg: ConversionConfig) -> int:
    report = import_tiles(args.input, _default_output(args), cfg.scheme, cfg.image_format)
    LOGGER.info(
        "import summary",
        extra={"tiles": report.tiles, "grids": report.grids, "skipped": report.skipped},
    )
    return 0


def _handle_export(args: argparse.Namespace, cfg: ConversionConfig) -> int:
    report = export_tiles(
        args.input,
        _default_output(args),
        cfg.scheme,
        cfg.image_format,
        cfg.grid_callback,
    )
    LOGGER.info("export summary", extra={"tiles": report.tiles, "grids": report.grids})
    return 0


def _handle_metadata(args: argparse.Namespace) -> int:
    metadata_path = dump_metadata(args.input, _default_output(args))
    LOGGER.info("metadata summary", extra={"path": str(metadata_path)})
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
