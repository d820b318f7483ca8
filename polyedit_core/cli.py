"""Command line interface for converting and inspecting drawings."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

from .commands import EXPORT_NAMES, CommandInterpreter
from .config import load_config
from .dxf_reader import read_dxf
from .session import EditSession

logger = logging.getLogger(__name__)


def load_session(path: Path, config_path: str | None = None) -> EditSession:
    """Open a DXF or JSON drawing into a fresh session."""
    session = EditSession(load_config(config_path))
    if path.suffix.lower() == ".dxf":
        count = session.load_parsed(read_dxf(path, session.config.flatten_distance))
    else:
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
        count = session.apply_json_text(text)
        session.fit_to_content()
    if count == 0:
        raise ValueError(f"No usable polylines in {path}")
    return session


def _ensure_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _cmd_convert(args: argparse.Namespace) -> None:
    session = load_session(Path(args.input), args.config)
    payload = CommandInterpreter(session).render_export(args.to)
    if not args.output:
        sys.stdout.write(payload)
        return
    out_path = Path(args.output)
    _ensure_dir(out_path)
    out_path.write_text(payload, encoding="utf-8")
    print(f"Wrote {out_path} | polylines={len(session.items)} format={args.to}")


def _cmd_stats(args: argparse.Namespace) -> None:
    session = load_session(Path(args.input), args.config)
    print(json.dumps(session.stats(), indent=2))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polyedit",
        description="Polyline drawing conversion tools",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", help="Path to an editor config JSON file")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert a DXF or JSON drawing")
    convert.add_argument("input", help="Input .dxf or .json file")
    convert.add_argument("--to", default="json", choices=sorted(EXPORT_NAMES), help="Output format")
    convert.add_argument("--output", help="Output path (stdout when omitted)")
    convert.set_defaults(func=_cmd_convert)

    stats = sub.add_parser("stats", help="Print drawing statistics as JSON")
    stats.add_argument("input", help="Input .dxf or .json file")
    stats.set_defaults(func=_cmd_stats)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
