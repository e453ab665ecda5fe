#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "pydantic>=2.0.0",
#     "rich>=13.0.0",
# ]
# ///

"""List directory contents, ls style, with LS_COLORS extension colouring."""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from errors import ConfigError, KlsError
from formatter import render_listings, resolve_color_system
from identity import PosixIdentityResolver
from ls_colors import default_color_table
from models import Listing, ListOptions
from pathlib_collector import build_listing


__version__ = "0.1.0"


class KlsArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ConfigError instead of exiting."""

    def error(self, message: str):
        raise ConfigError(message)


def expand_flag_groups(argv: Sequence[str]) -> list[str]:
    """Rewrite single-dash flag groups like ``-la`` into long flags.

    A group enables long format if it contains ``l`` and hidden files if it
    contains ``a``; any other characters are ignored.
    """
    expanded = []
    options_done = False
    for arg in argv:
        if options_done or arg == "-" or not arg.startswith("-"):
            expanded.append(arg)
        elif arg == "--":
            options_done = True
            expanded.append(arg)
        elif arg.startswith("--"):
            expanded.append(arg)
        else:
            if "l" in arg:
                expanded.append("--long-format")
            if "a" in arg:
                expanded.append("--all")

    return expanded


def build_parser() -> argparse.ArgumentParser:
    p = KlsArgumentParser(prog="kls", allow_abbrev=False, description="List directory contents.")
    p.add_argument("paths", nargs="*", type=Path, default=[Path("./")], help="paths to list (default: ./)")
    p.add_argument("--long-format", dest="long_format", action="store_true", help="use a long listing format (-l)")
    p.add_argument("--all", dest="show_hidden", action="store_true", help="include entries starting with . (-a)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Optional[Sequence[str]] = None) -> tuple[list[Path], ListOptions]:
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_intermixed_args(expand_flag_groups(argv))
    options = ListOptions(long_format=args.long_format, show_hidden=args.show_hidden)
    return list(args.paths), options


def collect_listings(paths: Sequence[Path], options: ListOptions) -> list[Listing]:
    """Build a listing per root; failed roots are reported and skipped."""
    listings = []
    for path in paths:
        try:
            listings.append(build_listing(path, options))
        except KlsError as e:
            print(f"Error: {e.message}", file=sys.stderr)

    return listings


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    try:
        paths, options = parse_args(argv)
    except ConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    listings = collect_listings(paths, options)

    lines = render_listings(
        listings,
        options,
        table=default_color_table(),
        identity=PosixIdentityResolver(),
        color_system=resolve_color_system(),
        show_headers=len(paths) > 1,
    )
    for line in lines:
        print(line)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
