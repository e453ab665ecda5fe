"""Path canonicalization and symlink target rebasing."""

import os
from pathlib import Path

from errors import CanonicalizeError


def kabsolute(path: Path) -> Path:
    """Return the absolute location of ``path`` without following a final symlink.

    Ordinary paths are fully resolved. For a symlink only the parent is
    resolved and the link's own name is joined back on, so the link stays
    visible as an object of its own.
    """
    path = Path(path)
    if not path.is_symlink():
        try:
            return path.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise CanonicalizeError(f"Failed to canonicalize path: {e}", path) from e

    if not path.name:
        raise CanonicalizeError("Failed to get symlink filename", path)

    try:
        link_dir = path.absolute().parent.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise CanonicalizeError(f"Failed to canonicalize symlink parent: {e}", path) from e

    return link_dir / path.name


def canonicalize_relative_to(path: Path, base: Path) -> Path:
    """Resolve ``path`` the way the kernel resolves a link target stored in ``base``."""
    path = Path(path)
    if not path.is_absolute():
        path = Path(base) / path

    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise CanonicalizeError(f"Failed to canonicalize path: {e}", path) from e


def read_link_target(path: Path) -> Path:
    """Return the raw target stored in a symlink, never resolved against cwd."""
    return Path(os.readlink(path))
