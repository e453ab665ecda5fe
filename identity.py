"""Owner and group name lookup against the OS identity database."""

import grp
import pwd
from typing import Protocol


class IdentityResolver(Protocol):
    """Resolves numeric IDs to names. Raises ``LookupError`` for unknown IDs."""

    def user_name(self, uid: int) -> str: ...

    def group_name(self, gid: int) -> str: ...


class PosixIdentityResolver:
    """Identity lookups backed by ``pwd`` and ``grp``."""

    def user_name(self, uid: int) -> str:
        return pwd.getpwuid(uid).pw_name

    def group_name(self, gid: int) -> str:
        return grp.getgrgid(gid).gr_name
