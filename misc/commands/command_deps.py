from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    brief_manager: Any = None
    settings_store: Any = None
    brief_scheduler: Any = None
    send_chunked: Callable | None = None

    default_brief_days: int = 2
    min_brief_days: int = 1
    max_brief_days: int = 14


@dataclass(frozen=True)
class CommandGates:
    user_is_owner: Callable[[Any], bool] = _default_false

    def user_is_admin(self, member: Any) -> bool:
        if self.user_is_owner(member):
            return True
        perms = getattr(member, "guild_permissions", None)
        return bool(getattr(perms, "administrator", False))
