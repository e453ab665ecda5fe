from __future__ import annotations

from pathlib import Path
from typing import Optional

import pytest


class FakeIdentity:
    """Identity lookups against fixed tables instead of the OS databases."""

    def __init__(self, users: Optional[dict[int, str]] = None, groups: Optional[dict[int, str]] = None) -> None:
        self.users = users or {}
        self.groups = groups or {}

    def user_name(self, uid: int) -> str:
        return self.users[uid]

    def group_name(self, gid: int) -> str:
        return self.groups[gid]


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity(users={0: "root", 1000: "alice"}, groups={0: "wheel", 1000: "staff"})


@pytest.fixture
def scenario_dir(tmp_path: Path) -> Path:
    """A hidden file, an executable script and a subdirectory."""
    root = tmp_path / "project"
    root.mkdir()
    (root / ".env").write_text("KEY=value\n")
    (root / "run.sh").write_text("#!/bin/sh\necho run\n")
    (root / "run.sh").chmod(0o755)
    (root / "bin").mkdir()
    return root


@pytest.fixture
def test_directory(tmp_path: Path) -> Path:
    """Create a test directory with various file types for testing."""
    root = tmp_path / "tree"
    root.mkdir()

    (root / "empty_dir").mkdir()
    (root / "data").mkdir()

    (root / "README.md").write_text("# Test README\n")
    (root / "script.sh").write_text("#!/bin/bash\necho 'test'\n")
    (root / "data" / "config.json").write_text('{"key": "value"}\n')
    (root / "script.sh").chmod(0o755)

    (root / "link_to_readme").symlink_to("README.md")
    (root / "link_to_data").symlink_to("data")
    (root / "dangling").symlink_to("../target")

    (root / "file with spaces.txt").write_text("content\n")
    (root / ".hidden").write_text("secret\n")

    return root
