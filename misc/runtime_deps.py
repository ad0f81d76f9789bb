from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RuntimeBootDeps:
    settings_store: Any
    brief_manager: Any
    brief_scheduler: Any
    scheduler_enabled: bool
