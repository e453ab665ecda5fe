"""Pydantic models for directory listing data structures."""

import stat
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from identity import IdentityResolver


MODE_MASK = 0xFFFF


class DirectoryKind(BaseModel):
    """A directory, addressed by its absolute path."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["directory"] = "directory"
    path: Path


class RegularFileKind(BaseModel):
    """Anything that is neither a directory nor a symlink."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: Path


class SymlinkKind(BaseModel):
    """A symbolic link and the raw target stored in it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["symlink"] = "symlink"
    link_path: Path
    target_path: Path = Field(..., description="Target as read from the link, possibly relative or dangling")

    @property
    def path(self) -> Path:
        return self.link_path


FileKind = Annotated[
    Union[DirectoryKind, RegularFileKind, SymlinkKind],
    Field(discriminator="kind"),
]


def type_char(file_kind: FileKind) -> str:
    if isinstance(file_kind, DirectoryKind):
        return "d"
    elif isinstance(file_kind, SymlinkKind):
        return "l"
    else:
        return "-"


def format_permissions(mode: int, kind_char: str) -> str:
    """Convert numeric file mode to an ls-style permission string.

    The execute slot of each triplet doubles as the display for the matching
    special bit: ``s``/``S`` for setuid and setgid, ``t``/``T`` for sticky.
    The lowercase form means the execute bit is also set.
    """
    triplets = (
        (stat.S_IRUSR, stat.S_IWUSR, stat.S_IXUSR, stat.S_ISUID, "S", "s"),
        (stat.S_IRGRP, stat.S_IWGRP, stat.S_IXGRP, stat.S_ISGID, "S", "s"),
        (stat.S_IROTH, stat.S_IWOTH, stat.S_IXOTH, stat.S_ISVTX, "T", "t"),
    )

    result = kind_char
    for read, write, execute, special, special_off, special_on in triplets:
        result += "r" if mode & read else "-"
        result += "w" if mode & write else "-"
        if mode & special:
            result += special_on if mode & execute else special_off
        else:
            result += "x" if mode & execute else "-"

    return result


class Entry(BaseModel):
    """One filesystem object, decoded from a single metadata snapshot."""

    model_config = ConfigDict(frozen=True)

    file_kind: FileKind
    mode: int = Field(..., ge=0, le=MODE_MASK, description="st_mode masked to 16 bits")
    size: int = Field(..., ge=0, description="Size in bytes")
    modified: str = Field(..., description="Pre-formatted modification time")
    uid: int
    gid: int
    nlink: int = Field(..., ge=0)
    blocks: int = Field(0, ge=0, description="Allocated 512-byte blocks")

    @property
    def path(self) -> Path:
        return self.file_kind.path

    def name(self) -> Optional[str]:
        return self.path.name or None

    def is_dir(self) -> bool:
        return isinstance(self.file_kind, DirectoryKind)

    def is_symlink(self) -> bool:
        return isinstance(self.file_kind, SymlinkKind)

    def is_executable(self) -> bool:
        return bool(self.mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))

    def get_mode_str(self) -> str:
        return format_permissions(self.mode, type_char(self.file_kind))

    def get_user_str(self, identity: IdentityResolver) -> str:
        """Owner name; raises ``LookupError`` if the uid is unknown."""
        return identity.user_name(self.uid)

    def get_group_str(self, identity: IdentityResolver) -> str:
        """Group name; raises ``LookupError`` if the gid is unknown."""
        return identity.group_name(self.gid)

    def get_link_count(self) -> int:
        return self.nlink


class Listing(BaseModel):
    """The sorted members of one root plus its synthesized ``.`` and ``..`` entries."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[Entry, ...] = Field(default_factory=tuple)
    dir: Entry
    up_dir: Optional[Entry] = None
    blocks: int = Field(0, description="Aggregate usage in the configured block unit")


class ListOptions(BaseModel):
    """Parsed command-line options."""

    model_config = ConfigDict(frozen=True)

    long_format: bool = Field(False, description="Emit detailed columns")
    show_hidden: bool = Field(False, description="Include dotfiles and synthesize . and ..")
