"""Game Save Scanner: command-line entry point."""

import argparse
import json
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication
from loguru import logger

from savescan.config import Config
from savescan.core.catalog import CatalogLoader
from savescan.core.scanner import Scanner, ScanWorker
from savescan.errors import SaveScanError
from savescan.logger import setup_logger
from savescan.models.scan import ScanOptions, ScanResult

_SOURCE_FLAGS = ("steam", "epic", "origin", "registry", "common-dirs")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="savescan",
        description="Detect installed games and locate their save data.",
    )
    parser.add_argument("--log-level", default="INFO", help="console log level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="scan this machine for games and save locations")
    scan.add_argument("--platform", choices=("windows", "linux", "macos"), help="target platform")
    for flag in _SOURCE_FLAGS:
        scan.add_argument(f"--no-{flag}", action="store_true", help=f"skip the {flag} source")
    scan.add_argument("--processes", action="store_true", help="request process scanning")
    scan.add_argument("--units", action="store_true", help="include synthesized save units")
    scan.add_argument("--json", action="store_true", help="print the full result as JSON")

    query = sub.add_parser("query", help="search the game catalog")
    query.add_argument("name")
    query.add_argument("--fuzzy", action="store_true", help="allow substring matches")
    query.add_argument("--platform", help="only games with a save rule for this platform")
    query.add_argument("--limit", type=int, default=20)

    imp = sub.add_parser(
        "import",
        help="import a JSON or SQLite catalog export into the catalog cache",
        description=(
            "Convert a catalog export and write it to the per-user cache. "
            "The cache is only consulted when the primary catalog store is "
            "missing, so later 'query' and 'scan' runs keep using the primary "
            "store unless 'catalog_path' points elsewhere."
        ),
    )
    imp.add_argument("file", type=Path)

    sub.add_parser("refresh", help="rebuild the catalog cache from the primary store")
    return parser


def _options_from_args(config: Config, args: argparse.Namespace) -> ScanOptions:
    data: dict = dict(config.get_scan_toggles())
    if args.platform:
        data["platform"] = args.platform
    for flag in _SOURCE_FLAGS:
        if getattr(args, f"no_{flag.replace('-', '_')}"):
            data[f"search_{flag.replace('-', '_')}"] = False
    if args.processes:
        data["search_processes"] = True
    return ScanOptions.from_dict(data)


def _print_json(data) -> None:  # noqa: ANN001
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _print_summary(data: dict) -> None:
    print(f"{len(data['detected'])} games detected")
    for game in data["detected"]:
        print(f"  {game['info']['name']} [{game['source']}] {game['install_path'] or '-'}")
    existing = [m for m in data["matches"] if m["exists"]]
    print(f"{len(existing)} existing save locations ({len(data['matches'])} candidates)")
    for match in existing:
        print(f"  {match['confidence']:.2f}  {match['resolved_path']}  ({match['rule_id']})")
    for unit in data.get("units", []):
        print(f"  unit {unit['game']}: {unit['unit_type']} {', '.join(unit['paths'].values())}")
    if data["errors"]:
        print(f"{len(data['errors'])} errors")
        for error in data["errors"]:
            print(f"  {error}")


def run_scan(config: Config, args: argparse.Namespace) -> int:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    scanner = Scanner(config)
    if scanner.reporter.bus is not None:
        scanner.reporter.bus.scan_progress.connect(
            lambda ev: logger.info("[{}/{}] {}", ev.current, ev.total, ev.message or ev.step)
        )

    outcome: dict = {}

    def on_finished(result: ScanResult) -> None:
        outcome["result"] = result
        app.quit()

    def on_error(message: str) -> None:
        outcome["error"] = message
        app.quit()

    worker = ScanWorker()
    worker.set_scanner(scanner, _options_from_args(config, args))
    worker.finished.connect(on_finished)
    worker.error.connect(on_error)
    worker.start()
    app.exec()
    worker.wait()

    if "error" in outcome:
        logger.error("Scan failed: {}", outcome["error"])
        return 1

    result: ScanResult = outcome["result"]
    data = result.to_dict()
    if args.units:
        data["units"] = [
            {"game": d.info.name, **unit.to_dict()}
            for d in result.detected
            for unit in scanner.generate_save_units(d.info, d.install_path)
        ]
    if args.json:
        _print_json(data)
    else:
        _print_summary(data)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # ---- 1. Config ----
    config = Config()

    # ---- 2. Logger ----
    setup_logger(level=args.log_level.upper())
    logger.info("Game Save Scanner starting…")

    # ---- 3. Command ----
    try:
        if args.command == "scan":
            return run_scan(config, args)

        loader = CatalogLoader(config)
        if args.command == "query":
            scanner = Scanner(config, catalog_loader=loader)
            items = scanner.search(args.name, fuzzy=args.fuzzy, platform=args.platform, limit=args.limit)
            _print_json([item.to_dict() for item in items])
        elif args.command == "import":
            if args.file.suffix.lower() in (".db", ".sqlite", ".sqlite3"):
                meta = loader.import_from_sqlite(args.file)
            else:
                meta = loader.import_from_file(args.file)
            _print_json({"version": meta.version, "count": meta.count})
        elif args.command == "refresh":
            meta = loader.refresh()
            _print_json({"version": meta.version, "count": meta.count})
    except SaveScanError as e:
        logger.error("{}", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
