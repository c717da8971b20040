from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Protocol
from urllib.parse import quote

from booky.core.config import Settings
from booky.core.http import HttpRequestError, ResilientHttpClient, Sleep
from booky.core.logging import get_logger, log_event, log_exception
from booky.modules.mail.schemas import (
    AliasRecord,
    InboxRecord,
    SendEmailInput,
    SendEmailResult,
)

logger = get_logger(__name__)


class EmailClient(Protocol):
    async def send(self, message: SendEmailInput) -> SendEmailResult: ...

    async def create_inbox(
        self, address: str, metadata: dict[str, Any] | None = None
    ) -> InboxRecord: ...

    async def get_alias(self, address: str) -> AliasRecord | None: ...

    async def create_alias(
        self, address: str, target: str, metadata: dict[str, Any] | None = None
    ) -> AliasRecord: ...


def generate_message_id() -> str:
    return f"am_{secrets.token_hex(6)}{int(time.time() * 1000):x}"


# The provider has been seen returning either the generic key or a
# resource-specific one (`inbox_id`, `alias_id`, `message_id`); the
# generic key wins when both are present. Unverified upstream contract.


def _first(resp: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = resp.get(key)
        if value:
            return value
    return None


def normalize_send_result(resp: dict[str, Any]) -> SendEmailResult:
    message_id = _first(resp, "id", "message_id") or generate_message_id()
    status = resp.get("status") or "queued"
    if status == "queued":
        status = "sent"
    return SendEmailResult(id=str(message_id), status=status)


def normalize_inbox(resp: dict[str, Any], *, address: str) -> InboxRecord:
    return InboxRecord(
        id=str(_first(resp, "id", "inbox_id") or generate_message_id()),
        address=resp.get("address") or address,
        status=resp.get("status") or "active",
    )


def normalize_alias(
    resp: dict[str, Any], *, address: str, target: str | None = None, generate_id: bool = False
) -> AliasRecord:
    alias_id = _first(resp, "id", "alias_id")
    if alias_id is None and generate_id:
        alias_id = generate_message_id()
    return AliasRecord(
        id=str(alias_id) if alias_id is not None else None,
        address=resp.get("address") or address,
        target=resp.get("target") or target,
        status=resp.get("status") or "active",
    )


class AgentMailClient:
    """Mail provider client.

    In dev mode no request leaves the process: sends report ``sent`` with a
    generated id, creates return generated records and alias lookups miss.
    """

    def __init__(self, http: ResilientHttpClient, *, dev_mode: bool = True) -> None:
        self._http = http
        self._dev_mode = dev_mode

    @property
    def dev_mode(self) -> bool:
        return self._dev_mode

    async def send(self, message: SendEmailInput) -> SendEmailResult:
        if self._dev_mode:
            log_event(
                logger,
                "mail.send.dev",
                from_address=message.from_address,
                to=message.to,
                subject=message.subject,
            )
            return SendEmailResult(id=generate_message_id(), status="sent")

        payload = {
            "from": message.from_address,
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
            "cc": list(message.cc),
            "bcc": list(message.bcc),
            "reply_to": message.reply_to or message.from_address,
            "headers": dict(message.headers),
            "attachments": list(message.attachments),
            "track": {"opens": True, "clicks": True, "unsubscribe": False},
            "tags": list(message.tags),
        }
        try:
            resp = await self._http.request("POST", "/send", payload)
        except Exception:
            log_exception(logger, "mail.send.failure", to=message.to, subject=message.subject)
            return SendEmailResult(id=generate_message_id(), status="failed")

        result = normalize_send_result(resp if isinstance(resp, dict) else {})
        log_event(logger, "mail.send.success", message_id=result.id, status=result.status)
        return result

    async def create_inbox(
        self, address: str, metadata: dict[str, Any] | None = None
    ) -> InboxRecord:
        if self._dev_mode:
            return InboxRecord(id=generate_message_id(), address=address)
        body = {
            "address": address,
            "type": "booking",
            "metadata": metadata or {},
            "settings": {"auto_reply": False, "forward_to": None},
        }
        resp = await self._http.request("POST", "/inboxes", body)
        inbox = normalize_inbox(resp if isinstance(resp, dict) else {}, address=address)
        log_event(logger, "mail.inbox.created", inbox_id=inbox.id, address=inbox.address)
        return inbox

    async def get_alias(self, address: str) -> AliasRecord | None:
        if self._dev_mode:
            return None
        try:
            resp = await self._http.request("GET", f"/aliases/{quote(address, safe='')}")
        except HttpRequestError as e:
            if e.status == 404:
                log_event(logger, "mail.alias.missing", level=logging.DEBUG, address=address)
                return None
            raise
        return normalize_alias(resp if isinstance(resp, dict) else {}, address=address)

    async def create_alias(
        self, address: str, target: str, metadata: dict[str, Any] | None = None
    ) -> AliasRecord:
        if self._dev_mode:
            return AliasRecord(id=generate_message_id(), address=address, target=target)
        body = {
            "alias": address,
            "target": target,
            "type": "venue",
            "metadata": metadata or {},
            "settings": {"active": True, "preserve_original_recipient": True},
        }
        resp = await self._http.request("POST", "/aliases", body)
        alias = normalize_alias(
            resp if isinstance(resp, dict) else {},
            address=address,
            target=target,
            generate_id=True,
        )
        log_event(logger, "mail.alias.created", alias_id=alias.id, address=alias.address)
        return alias


def build_email_client(settings: Settings, *, sleep: Sleep | None = None) -> AgentMailClient:
    http_kwargs: dict[str, Any] = {}
    if sleep is not None:
        http_kwargs["sleep"] = sleep
    http = ResilientHttpClient(
        base_url=settings.agentmail_base_url,
        api_key=settings.agentmail_api_key,
        timeout_seconds=settings.agentmail_timeout_seconds,
        max_attempts=settings.agentmail_max_attempts,
        backoff_base_seconds=settings.agentmail_backoff_base_seconds,
        service="agentmail",
        **http_kwargs,
    )
    return AgentMailClient(http, dev_mode=settings.agentmail_dev_mode)
