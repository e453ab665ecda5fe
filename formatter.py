"""Render listings as aligned, colourised text lines."""

import os
import stat
import sys
from pathlib import Path
from typing import Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from rich.color import ColorSystem
from rich.style import Style

from errors import CanonicalizeError
from identity import IdentityResolver, PosixIdentityResolver
from ls_colors import ColorTable, compute_color_for
from models import Entry, Listing, ListOptions, SymlinkKind
from paths import canonicalize_relative_to, read_link_target


MAX_SYMLINK_HOPS = 40
PLACEHOLDER = "-"

DIRECTORY_STYLE = Style(color="blue", bold=True)
EXECUTABLE_STYLE = Style(color="green", bold=True)
SYMLINK_STYLE = Style(color="cyan", bold=True)
PLAIN_STYLE = Style()

DeepKind = Literal["file", "directory", "symlink"]
TargetClass = Literal["executable", "directory", "symlink", "plain"]

TARGET_STYLES = {
    "executable": EXECUTABLE_STYLE,
    "directory": DIRECTORY_STYLE,
    "symlink": SYMLINK_STYLE,
    "plain": PLAIN_STYLE,
}


def resolve_color_system(environ: Optional[Mapping[str, str]] = None) -> Optional[ColorSystem]:
    """Colour system for output, or ``None`` when ``NO_COLOR`` is set."""
    if environ is None:
        environ = os.environ
    if environ.get("NO_COLOR"):
        return None
    return ColorSystem.EIGHT_BIT


def resolve_deep_kind(path: Path) -> DeepKind:
    """Follow a symlink chain to the kind of the object at its end.

    Relative hops are rebased on the directory holding the link. A chain
    that breaks or exceeds MAX_SYMLINK_HOPS is reported as a symlink.
    """
    current = Path(path)
    for _ in range(MAX_SYMLINK_HOPS):
        if not current.is_symlink():
            if current.is_dir():
                return "directory"
            if current.exists():
                return "file"
            return "symlink"

        try:
            target = read_link_target(current)
        except OSError as e:
            print(f"Warning: Failed to read deep symlink {current}: {e}", file=sys.stderr)
            return "symlink"
        current = target if target.is_absolute() else current.parent / target

    print(f"Warning: Too many levels of symbolic links: {path}", file=sys.stderr)
    return "symlink"


class SymlinkTarget(BaseModel):
    """How a symlink's target is shown after ``->``."""

    model_config = ConfigDict(frozen=True)

    display: str = Field(..., description="Target exactly as stored in the link")
    resolved: Optional[Path] = None
    target_class: TargetClass = "plain"


def classify_target(resolved: Path) -> TargetClass:
    deep_kind = resolve_deep_kind(resolved)
    if deep_kind == "directory":
        return "directory"
    if deep_kind == "symlink":
        return "symlink"

    try:
        st = resolved.lstat() if resolved.is_symlink() else resolved.stat()
    except OSError as e:
        print(f"Warning: Failed to fetch target meta for: {resolved}: {e}", file=sys.stderr)
        return "plain"

    if st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
        return "executable"
    return "plain"


def describe_symlink(file_kind: SymlinkKind) -> SymlinkTarget:
    """Resolve a link target against the link's own directory.

    Dangling targets keep their literal text, unstyled.
    """
    display = str(file_kind.target_path)
    try:
        resolved = canonicalize_relative_to(file_kind.target_path, file_kind.link_path.parent)
    except CanonicalizeError as e:
        print(f"Warning: Failed to resolve symlink target {file_kind.link_path} -> {display}: {e.message}", file=sys.stderr)
        return SymlinkTarget(display=display)

    return SymlinkTarget(display=display, resolved=resolved, target_class=classify_target(resolved))


class FormattedEntry(BaseModel):
    """One row of text fields, before padding and colouring."""

    model_config = ConfigDict(frozen=True)

    mode: str
    links: str
    user: str
    group: str
    size: str
    modified: str
    name: str
    kind: DeepKind
    executable: bool = False
    target: Optional[SymlinkTarget] = None

    @classmethod
    def new(cls, entry: Entry, name: str, identity: IdentityResolver, resolve_target: bool = True) -> "FormattedEntry":
        try:
            user = entry.get_user_str(identity)
        except LookupError:
            user = PLACEHOLDER

        try:
            group = entry.get_group_str(identity)
        except LookupError:
            group = PLACEHOLDER

        target = None
        if isinstance(entry.file_kind, SymlinkKind):
            kind = "symlink"
            if resolve_target:
                target = describe_symlink(entry.file_kind)
        elif entry.is_dir():
            kind = "directory"
        else:
            kind = "file"

        return cls(
            mode=entry.get_mode_str(),
            links=str(entry.get_link_count()),
            user=user,
            group=group,
            size=str(entry.size),
            modified=entry.modified,
            name=name,
            kind=kind,
            executable=entry.is_executable(),
            target=target,
        )

    def name_style(self) -> Style:
        if self.kind == "symlink":
            return SYMLINK_STYLE
        elif self.kind == "directory":
            return DIRECTORY_STYLE
        elif self.executable:
            return EXECUTABLE_STYLE
        return PLAIN_STYLE

    def get_colored_name(
        self,
        long_format: bool,
        table: ColorTable,
        color_system: Optional[ColorSystem] = ColorSystem.EIGHT_BIT,
    ) -> str:
        style = compute_color_for(table, self.name_style(), self.name)
        text = style.render(self.name, color_system=color_system)

        if long_format and self.target is not None:
            target_style = TARGET_STYLES[self.target.target_class]
            text += " -> " + target_style.render(self.target.display, color_system=color_system)

        return text


class ColumnWidths(BaseModel):
    """Widest value of each padded column across the rows being printed."""

    mode: int = 0
    links: int = 0
    user: int = 0
    group: int = 0
    size: int = 0
    modified: int = 0

    @classmethod
    def measure(cls, rows: Sequence[FormattedEntry]) -> "ColumnWidths":
        widths = cls()
        for row in rows:
            widths.mode = max(widths.mode, len(row.mode))
            widths.links = max(widths.links, len(row.links))
            widths.user = max(widths.user, len(row.user))
            widths.group = max(widths.group, len(row.group))
            widths.size = max(widths.size, len(row.size))
            widths.modified = max(widths.modified, len(row.modified))
        return widths

    def apply(self, row: FormattedEntry, name: str) -> str:
        """Pad every field of ``row`` and append the already coloured ``name``."""
        return " ".join((
            row.mode.rjust(self.mode),
            row.links.rjust(self.links),
            row.user.ljust(self.user),
            row.group.ljust(self.group),
            row.size.rjust(self.size),
            row.modified.rjust(self.modified),
            name,
        ))


def get_formatted_list(
    listing: Listing,
    options: ListOptions,
    identity: IdentityResolver,
) -> list[FormattedEntry]:
    rows = []
    resolve_target = options.long_format

    if options.show_hidden:
        rows.append(FormattedEntry.new(listing.dir, ".", identity, resolve_target))
        up_dir = listing.up_dir if listing.up_dir is not None else listing.dir
        rows.append(FormattedEntry.new(up_dir, "..", identity, resolve_target))

    for entry in listing.entries:
        name = entry.name()
        if name is not None:
            rows.append(FormattedEntry.new(entry, name, identity, resolve_target))

    return rows


def render_long(
    listing: Listing,
    options: ListOptions,
    table: ColorTable,
    identity: IdentityResolver,
    color_system: Optional[ColorSystem] = ColorSystem.EIGHT_BIT,
) -> list[str]:
    rows = get_formatted_list(listing, options, identity)
    widths = ColumnWidths.measure(rows)

    lines = [f"total {listing.blocks}"]
    for row in rows:
        lines.append(widths.apply(row, row.get_colored_name(True, table, color_system)))
    return lines


def render_short(
    listing: Listing,
    options: ListOptions,
    table: ColorTable,
    identity: IdentityResolver,
    color_system: Optional[ColorSystem] = ColorSystem.EIGHT_BIT,
) -> list[str]:
    rows = get_formatted_list(listing, options, identity)
    return ["  ".join(row.get_colored_name(False, table, color_system) for row in rows)]


def listing_header(listing: Listing) -> str:
    return listing.dir.name() or str(listing.dir.path)


def render_listings(
    listings: Sequence[Listing],
    options: ListOptions,
    table: Optional[ColorTable] = None,
    identity: Optional[IdentityResolver] = None,
    color_system: Optional[ColorSystem] = ColorSystem.EIGHT_BIT,
    show_headers: Optional[bool] = None,
) -> list[str]:
    """Render each listing in order, separated by blank lines.

    ``show_headers`` defaults to whether more than one listing was given;
    callers pass the number of roots requested so a failed root still counts.
    """
    if table is None:
        table = ColorTable()
    if identity is None:
        identity = PosixIdentityResolver()
    if show_headers is None:
        show_headers = len(listings) > 1

    render = render_long if options.long_format else render_short

    lines = []
    for index, listing in enumerate(listings):
        if index:
            lines.append("")
        if show_headers:
            lines.append(f"{listing_header(listing)}:")
        lines.extend(render(listing, options, table, identity, color_system))

    return lines
