from __future__ import annotations

from dataclasses import dataclass
from dataclasses import replace
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Any


class BriefStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class GeneratedBrief:
    company_name: str
    company_description: str
    job_description: str
    deadline_label: str


@dataclass(slots=True)
class Brief:
    id: str
    company_name: str
    company_description: str
    job_description: str
    deadline_label: str
    created_at: datetime
    deadline: datetime
    channel_id: int
    message_id: int | None = None
    status: BriefStatus = BriefStatus.ACTIVE
    guild_id: int | None = None

    @property
    def is_active(self) -> bool:
        return self.status == BriefStatus.ACTIVE

    def is_expired(self, now: datetime) -> bool:
        return self.deadline < now

    def copy(self) -> Brief:
        return replace(self)


def _parse_iso(value: Any) -> datetime:
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def brief_to_record(brief: Brief) -> dict[str, Any]:
    return {
        "id": brief.id,
        "companyName": brief.company_name,
        "companyDescription": brief.company_description,
        "jobDescription": brief.job_description,
        "deadlineDays": brief.deadline_label,
        "deadline": brief.deadline.isoformat(),
        "createdAt": brief.created_at.isoformat(),
        "channelId": str(brief.channel_id),
        "messageId": str(brief.message_id) if brief.message_id is not None else None,
        "status": brief.status.value,
        "guildId": str(brief.guild_id) if brief.guild_id is not None else None,
    }


def brief_from_record(record: dict[str, Any]) -> Brief:
    # snowflake ids are stored as strings
    return Brief(
        id=str(record["id"]),
        company_name=str(record.get("companyName") or ""),
        company_description=str(record.get("companyDescription") or ""),
        job_description=str(record.get("jobDescription") or ""),
        deadline_label=str(record.get("deadlineDays") or ""),
        created_at=_parse_iso(record["createdAt"]),
        deadline=_parse_iso(record["deadline"]),
        channel_id=int(record["channelId"]),
        message_id=_optional_int(record.get("messageId")),
        status=BriefStatus(str(record.get("status") or "active")),
        guild_id=_optional_int(record.get("guildId")),
    )
