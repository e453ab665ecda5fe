"""Collect directory listings using pathlib and populate Pydantic models."""

import os
import stat
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Mapping, Optional

from errors import CanonicalizeError, EntryMetadataError, EntryReadError, RootAccessError
from models import MODE_MASK, DirectoryKind, Entry, FileKind, Listing, ListOptions, RegularFileKind, SymlinkKind
from paths import canonicalize_relative_to, kabsolute, read_link_target


MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
RECENT_WINDOW = timedelta(days=180)

# Checked in order; the first positive integer wins.
BLOCK_SIZE_VARS = ("LS_BLOCK_SIZE", "BLOCK_SIZE", "BLOCKSIZE", "POSIXLY_CORRECT")
DEFAULT_BLOCK_SIZE = 1024
DEVICE_BLOCK_SIZE = 512


def format_timestamp(timestamp: float, now: Optional[datetime] = None) -> str:
    """Convert Unix timestamp to an ls-style timestamp string.

    Anything older than 180 days shows the year ("Mar  4 2021"), newer
    timestamps show the time of day ("Mar  4 09:07").
    """
    if now is None:
        now = datetime.now(timezone.utc)

    local = datetime.fromtimestamp(timestamp)
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    month = MONTHS[local.month - 1]

    if moment < now - RECENT_WINDOW:
        return f"{month} {local.day:>2} {local.year}"
    return f"{month} {local.day:>2} {local.hour:02d}:{local.minute:02d}"


def get_block_size(environ: Optional[Mapping[str, str]] = None) -> int:
    """Resolve the block unit used for the ``total`` line."""
    if environ is None:
        environ = os.environ

    for name in BLOCK_SIZE_VARS:
        value = environ.get(name)
        if value is None:
            continue
        try:
            size = int(value)
        except ValueError:
            continue
        if size > 0:
            return size

    return DEFAULT_BLOCK_SIZE


def sort_key(name: str) -> str:
    """Case-insensitive key with every dot removed ("file.txt" sorts as "filetxt")."""
    return name.lower().replace(".", "")


def entry_from_stat(file_kind: FileKind, st: os.stat_result, now: Optional[datetime] = None) -> Entry:
    """Build an Entry from one metadata snapshot."""
    return Entry(
        file_kind=file_kind,
        mode=st.st_mode & MODE_MASK,
        size=st.st_size,
        modified=format_timestamp(st.st_mtime, now),
        uid=st.st_uid,
        gid=st.st_gid,
        nlink=st.st_nlink,
        blocks=getattr(st, "st_blocks", 0),
    )


def collect_entry(path: Path, now: Optional[datetime] = None) -> Entry:
    """Collect information about a single directory member.

    Link-ness is tested first, so a symlink to a directory is still a symlink.
    """
    try:
        st = path.lstat()
        if stat.S_ISLNK(st.st_mode):
            file_kind = SymlinkKind(link_path=path, target_path=read_link_target(path))
        elif stat.S_ISDIR(st.st_mode):
            file_kind = DirectoryKind(path=path)
        else:
            file_kind = RegularFileKind(path=path)
    except OSError as e:
        raise EntryMetadataError(f"Could not access {path}: {e}", path) from e

    try:
        absolute = kabsolute(path)
    except CanonicalizeError as e:
        print(f"Warning: {e.message}", file=sys.stderr)
    else:
        if isinstance(file_kind, SymlinkKind):
            file_kind = SymlinkKind(link_path=absolute, target_path=file_kind.target_path)
        else:
            file_kind = type(file_kind)(path=absolute)

    return entry_from_stat(file_kind, st, now)


def collect_parent(directory: Path, now: Optional[datetime] = None) -> Optional[Entry]:
    """Synthesize the ``..`` entry; ``None`` when there is no readable parent."""
    parent = directory.parent
    if parent == directory:
        return None

    try:
        st = parent.stat()
    except OSError as e:
        print(f"Warning: Failed to fetch parent metadata for \"{parent}\": {e}", file=sys.stderr)
        return None

    return entry_from_stat(DirectoryKind(path=parent), st, now)


def _device_blocks(path: Path) -> int:
    try:
        return getattr(path.lstat(), "st_blocks", 0)
    except OSError:
        return 0


def build_listing(
    root: Path,
    options: ListOptions,
    environ: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> Listing:
    """Collect all members of ``root`` into a sorted Listing.

    Raises RootAccessError if the root itself cannot be stat'ed and
    EntryReadError if enumerating it fails part way. Members that vanish
    between readdir and stat are skipped with a warning.
    """
    root = Path(root)
    try:
        root_stat = root.stat()
        root_path = canonicalize_relative_to(root, Path.cwd())
    except OSError as e:
        raise RootAccessError(f"cannot access '{root}': {e.strerror or e}", root) from e
    except CanonicalizeError as e:
        raise RootAccessError(f"cannot access '{root}': {e.message}", root) from e

    is_dir = stat.S_ISDIR(root_stat.st_mode)
    root_kind = DirectoryKind(path=root_path) if is_dir else RegularFileKind(path=root_path)
    dir_entry = entry_from_stat(root_kind, root_stat, now)

    raw_blocks = 0
    if options.show_hidden:
        raw_blocks += _device_blocks(root_path)
        if root_path.parent != root_path:
            raw_blocks += _device_blocks(root_path.parent)

    entries = []
    if is_dir:
        try:
            for item in root_path.iterdir():
                if item.name.startswith(".") and not options.show_hidden:
                    continue
                try:
                    entry = collect_entry(item, now)
                except EntryMetadataError as e:
                    print(f"Warning: {e.message}", file=sys.stderr)
                    continue
                raw_blocks += entry.blocks
                entries.append(entry)
        except OSError as e:
            raise EntryReadError(f"cannot read directory '{root}': {e.strerror or e}", root) from e

    entries.sort(key=lambda entry: sort_key(entry.name() or "."))

    return Listing(
        entries=tuple(entries),
        dir=dir_entry,
        up_dir=collect_parent(root_path, now),
        blocks=(raw_blocks * DEVICE_BLOCK_SIZE) // get_block_size(environ),
    )
