"""The requester's identity, as supplied by the host site."""
from dataclasses import dataclass, field
from typing import Mapping, Optional

from elections.core.constants import Groups


@dataclass(frozen=True)
class Principal:
    """Who is asking: user id (None when anonymous), groups, IP and cookies."""

    user_id: Optional[int] = None
    groups: frozenset = frozenset()
    ip_address: str = ""
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_root(self) -> bool:
        return Groups.ROOT in self.groups

    def in_group(self, group_id: int) -> bool:
        """Group check with the site's implicit groups applied."""
        if group_id == Groups.ALL_USERS:
            return True
        if group_id == Groups.LOGGED_IN:
            return self.is_authenticated
        return self.is_root or group_id in self.groups
