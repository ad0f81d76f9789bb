from __future__ import annotations

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_briefs import register as register_briefs
from misc.commands.commands_config import register as register_config
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps


def wire_bot_runtime(
    bot,
    *,
    user_is_owner,
    send_chunked,
    settings_store,
    brief_manager,
    brief_scheduler,
    scheduler_enabled: bool,
    default_brief_days: int,
    max_brief_days: int,
) -> None:
    command_deps = CommandDeps(
        brief_manager=brief_manager,
        settings_store=settings_store,
        brief_scheduler=brief_scheduler if scheduler_enabled else None,
        send_chunked=send_chunked,
        default_brief_days=default_brief_days,
        max_brief_days=max_brief_days,
    )
    command_gates = CommandGates(
        user_is_owner=user_is_owner,
    )

    register_briefs(
        bot,
        deps=command_deps,
        gates=command_gates,
    )

    register_config(
        bot,
        deps=command_deps,
        gates=command_gates,
    )

    register_runtime_events(
        bot,
        boot=RuntimeBootDeps(
            settings_store=settings_store,
            brief_manager=brief_manager,
            brief_scheduler=brief_scheduler,
            scheduler_enabled=scheduler_enabled,
        ),
    )
