from __future__ import annotations

import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from models import DirectoryKind, Entry, Listing, ListOptions, RegularFileKind, SymlinkKind, format_permissions


def make_entry(file_kind, mode: int, uid: int = 0, gid: int = 0) -> Entry:
    return Entry(
        file_kind=file_kind,
        mode=mode,
        size=42,
        modified="Oct 19 10:00",
        uid=uid,
        gid=gid,
        nlink=1,
    )


class TestModeString:
    """get_mode_str() renders type and permission bits like ls -l."""

    @pytest.mark.parametrize(
        ("mode", "expected"),
        [
            (stat.S_IFREG | 0o644, "-rw-r--r--"),
            (stat.S_IFREG | 0o755, "-rwxr-xr-x"),
            (stat.S_IFREG | 0o000, "----------"),
            (stat.S_IFREG | 0o4755, "-rwsr-xr-x"),
            (stat.S_IFREG | 0o4644, "-rwSr--r--"),
            (stat.S_IFREG | 0o2755, "-rwxr-sr-x"),
            (stat.S_IFREG | 0o2745, "-rwxr-Sr-x"),
            (stat.S_IFREG | 0o6777, "-rwsrwsrwx"),
        ],
    )
    def test_regular_file_modes(self, mode: int, expected: str) -> None:
        entry = make_entry(RegularFileKind(path=Path("/tmp/file")), mode)
        assert entry.get_mode_str() == expected

    def test_sticky_directory(self) -> None:
        """Sticky bit shows t with other-execute, T without."""
        with_exec = make_entry(DirectoryKind(path=Path("/tmp")), stat.S_IFDIR | 0o1777)
        without_exec = make_entry(DirectoryKind(path=Path("/tmp")), stat.S_IFDIR | 0o1776)

        assert with_exec.get_mode_str() == "drwxrwxrwt"
        assert without_exec.get_mode_str() == "drwxrwxrwT"

    def test_symlink_leading_char(self) -> None:
        entry = make_entry(
            SymlinkKind(link_path=Path("/tmp/link"), target_path=Path("../target")),
            stat.S_IFLNK | 0o777,
        )
        assert entry.get_mode_str() == "lrwxrwxrwx"

    def test_mode_string_length_and_kind(self) -> None:
        kinds = {
            "d": DirectoryKind(path=Path("/a")),
            "-": RegularFileKind(path=Path("/b")),
            "l": SymlinkKind(link_path=Path("/c"), target_path=Path("b")),
        }
        for char, file_kind in kinds.items():
            mode_str = make_entry(file_kind, 0o7777).get_mode_str()
            assert len(mode_str) == 10
            assert mode_str[0] == char

    def test_format_permissions_uses_given_type_char(self) -> None:
        assert format_permissions(0o750, "d") == "drwxr-x---"


class TestEntry:
    """Entry fields and derived queries."""

    def test_entry_is_immutable(self) -> None:
        entry = make_entry(RegularFileKind(path=Path("/tmp/file")), 0o644)
        with pytest.raises(ValidationError):
            entry.size = 1

    def test_mode_must_fit_sixteen_bits(self) -> None:
        with pytest.raises(ValidationError):
            make_entry(RegularFileKind(path=Path("/tmp/file")), 0x10000)

    def test_name_and_kind_helpers(self) -> None:
        link = make_entry(SymlinkKind(link_path=Path("/tmp/link"), target_path=Path("data")), stat.S_IFLNK | 0o777)
        folder = make_entry(DirectoryKind(path=Path("/tmp/data")), stat.S_IFDIR | 0o755)

        assert link.name() == "link"
        assert link.path == Path("/tmp/link")
        assert link.is_symlink()
        assert not link.is_dir()
        assert folder.is_dir()

    def test_root_has_no_name(self) -> None:
        entry = make_entry(DirectoryKind(path=Path("/")), stat.S_IFDIR | 0o755)
        assert entry.name() is None

    def test_is_executable_checks_any_execute_bit(self) -> None:
        assert make_entry(RegularFileKind(path=Path("/x")), 0o601).is_executable()
        assert make_entry(RegularFileKind(path=Path("/x")), 0o610).is_executable()
        assert not make_entry(RegularFileKind(path=Path("/x")), 0o666).is_executable()

    def test_owner_lookup(self, identity) -> None:
        entry = make_entry(RegularFileKind(path=Path("/x")), 0o644, uid=1000, gid=1000)
        assert entry.get_user_str(identity) == "alice"
        assert entry.get_group_str(identity) == "staff"

    def test_owner_lookup_failure_raises(self, identity) -> None:
        entry = make_entry(RegularFileKind(path=Path("/x")), 0o644, uid=4242, gid=4242)
        with pytest.raises(LookupError):
            entry.get_user_str(identity)
        with pytest.raises(LookupError):
            entry.get_group_str(identity)

    def test_file_kind_discriminator_from_dict(self) -> None:
        entry = Entry.model_validate({
            "file_kind": {"kind": "symlink", "link_path": "/tmp/l", "target_path": "../t"},
            "mode": stat.S_IFLNK | 0o777,
            "size": 2,
            "modified": "Oct 19 10:00",
            "uid": 0,
            "gid": 0,
            "nlink": 1,
        })
        assert isinstance(entry.file_kind, SymlinkKind)
        assert entry.file_kind.target_path == Path("../t")


class TestListing:
    def test_defaults(self) -> None:
        folder = make_entry(DirectoryKind(path=Path("/tmp")), stat.S_IFDIR | 0o755)
        listing = Listing(dir=folder)

        assert listing.entries == ()
        assert listing.up_dir is None
        assert listing.blocks == 0

    def test_options_default_to_short_visible_only(self) -> None:
        options = ListOptions()
        assert options.long_format is False
        assert options.show_hidden is False
