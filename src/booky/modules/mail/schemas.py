from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

SendStatus = Literal["queued", "sent", "failed"]


@dataclass(frozen=True)
class SendEmailInput:
    from_address: str
    to: list[str]
    subject: str
    html: str
    text: str | None = None
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    reply_to: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    attachments: list[dict[str, Any]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SendEmailResult:
    id: str
    status: SendStatus


@dataclass(frozen=True)
class InboxRecord:
    id: str
    address: str
    status: str = "active"


@dataclass(frozen=True)
class AliasRecord:
    id: str | None
    address: str
    target: str | None
    status: str = "active"
