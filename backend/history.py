from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Final, Iterable, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from models import Role


CSV_HEADER: Final[str] = "Timestamp,Role,Message"

_TAG_PATTERN: Final[re.Pattern[str]] = re.compile(r"<[^>]*>")


def make_message(role: Role, content: str, timestamp: Optional[datetime] = None) -> BaseMessage:
    """Create a chat log entry.

    Party messages are `HumanMessage`s named after the role; bot messages are
    `AIMessage`s. The ISO-8601 timestamp is kept in `additional_kwargs`.
    """
    stamp = (timestamp or datetime.now(timezone.utc)).isoformat()
    if role is Role.BOT:
        return AIMessage(content=content, name=role.value, additional_kwargs={"timestamp": stamp})
    return HumanMessage(content=content, name=role.value, additional_kwargs={"timestamp": stamp})


def message_role(message: BaseMessage) -> Role:
    if message.name:
        return Role(message.name)
    return Role.BOT if isinstance(message, AIMessage) else Role.CLIENT


def message_timestamp(message: BaseMessage) -> str:
    return str(message.additional_kwargs.get("timestamp", ""))


def messages_for(messages: Iterable[BaseMessage], role: Role) -> str:
    """Join one role's message texts, oldest first, with single spaces."""
    return " ".join(str(m.content) for m in messages if message_role(m) is role)


def export_history_csv(messages: Iterable[BaseMessage]) -> str:
    """Render the chat log as CSV text with a `Timestamp,Role,Message` header.

    Message text has markup tags stripped and commas replaced by semicolons,
    then is wrapped in double quotes (embedded quotes are doubled).
    """
    rows: List[str] = [CSV_HEADER]
    for message in messages:
        text = _TAG_PATTERN.sub("", str(message.content)).replace(",", ";").replace('"', '""')
        rows.append(f'{message_timestamp(message)},{message_role(message).value},"{text}"')
    return "\n".join(rows)


def history_filename(day: Optional[date] = None) -> str:
    day = day or datetime.now(timezone.utc).date()
    return f"negotiation_chat_{day.isoformat()}.csv"
