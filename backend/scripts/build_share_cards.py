"""Precompute static site share cards and refresh the manifest.

Usage (from the backend directory):
    python scripts/build_share_cards.py [--locales=en,de] [--include-prefixes=/blog]

Flags take comma separated values. Without flags every static target is
built and orphaned card files are removed; with any filter only the matching
routes are rebuilt and merged into the existing manifest.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from dotenv import load_dotenv  # noqa: E402

from services.batch_build import BatchRenderError, ShareCardBuild  # noqa: E402
from services.share_card_targets import (  # noqa: E402
    FilterOptions,
    ShareCardConfigError,
    resolve_filter_options,
)

logger = logging.getLogger("share_cards.build")

FLAG_FIELDS: Dict[str, str] = {
    "--locales": "locales",
    "--include-paths": "include_paths",
    "--include-prefixes": "include_prefixes",
    "--exclude-paths": "exclude_paths",
    "--exclude-prefixes": "exclude_prefixes",
}
HELP_FLAGS = ("-h", "--help")


def _supported_flags() -> str:
    return ", ".join(f"{flag}=" for flag in FLAG_FIELDS)


def _split(value: str) -> List[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Precompute static site share cards and refresh the manifest.",
        allow_abbrev=False,
    )
    for flag, field_name in FLAG_FIELDS.items():
        parser.add_argument(
            flag,
            dest=field_name,
            action="append",
            default=[],
            metavar="a,b",
            help=f"Comma separated {field_name.replace('_', ' ')} to rebuild.",
        )
    return parser


def parse_build_args(argv: Sequence[str]) -> FilterOptions:
    """Parse `--flag=a,b` arguments; unknown or valueless flags raise ShareCardConfigError."""
    flags: List[str] = []
    for arg in argv:
        if arg in HELP_FLAGS:
            flags.append(arg)
            continue
        # Bare words and "--" separators from package runners are ignored.
        if arg == "--" or not arg.startswith("--"):
            continue
        name, sep, _ = arg.partition("=")
        if name not in FLAG_FIELDS:
            raise ShareCardConfigError(f'Unknown flag "{arg}". Supported flags: {_supported_flags()}')
        if not sep:
            raise ShareCardConfigError(f'Flag "{name}" requires a value (example: {name}=value1,value2).')
        flags.append(arg)

    args = build_parser().parse_args(flags)
    return FilterOptions(
        **{
            field_name: [token for value in getattr(args, field_name) for token in _split(value)]
            for field_name in FLAG_FIELDS.values()
        }
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        filters = resolve_filter_options(parse_build_args(args))
        ShareCardBuild(filters).run()
    except (ShareCardConfigError, BatchRenderError) as exc:
        logger.error("[share-cards] %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
