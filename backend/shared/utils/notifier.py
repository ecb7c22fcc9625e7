"""
Out-of-band operational alerts via the Telegram Bot API.
Best effort: every failure is logged and swallowed, nothing is raised to callers.
"""
from __future__ import annotations

import html
from datetime import datetime
from typing import Optional

import httpx

from shared.config import Environment, Settings, get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import NOTIFICATIONS

logger = get_logger(__name__)


class TelegramNotifier:
    """Sends startup/shutdown/error messages to a Telegram chat."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._enabled = (
            self._settings.telegram_enabled
            and self._settings.environment != Environment.TEST
            and bool(self._settings.telegram_bot_token)
            and bool(self._settings.telegram_chat_id)
        )
        if not self._enabled and self._settings.environment != Environment.TEST:
            logger.warning("telegram_notifications_disabled")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _timestamp(self) -> str:
        return datetime.now(self._settings.tz).strftime("%A, %d %B %Y %H:%M:%S")

    async def send_startup(self) -> None:
        message = "\n".join(
            [
                "🚀 <b>Match Tracker Started</b>",
                "",
                f"⏰ <i>{self._timestamp()}</i>",
                "✅ Scheduler initialized",
                "📊 Real-time tracking active",
            ]
        )
        await self._send("startup", message)

    async def send_shutdown(self) -> None:
        message = "\n".join(
            [
                "🛑 <b>Match Tracker Stopped</b>",
                "",
                f"⏰ <i>{self._timestamp()}</i>",
                "👋 Service gracefully terminated",
            ]
        )
        await self._send("shutdown", message)

    async def report_error(self, message: str, context: Optional[str] = None) -> None:
        """Report an operational error. Never raises."""
        lines = ["❌ <b>Critical Error</b>", "", f"⏰ <i>{self._timestamp()}</i>"]
        if context:
            lines.append(f"📍 Context: {html.escape(context, quote=False)}")
        lines.extend(["", f"<code>{html.escape(message, quote=False)}</code>"])
        await self._send("error", "\n".join(lines))

    async def _send(self, kind: str, text: str) -> None:
        if not self._enabled:
            NOTIFICATIONS.labels(kind=kind, result="skipped").inc()
            return

        url = f"{self._settings.telegram_api_base}/bot{self._settings.telegram_bot_token}/sendMessage"
        payload = {"chat_id": self._settings.telegram_chat_id, "text": text, "parse_mode": "HTML"}
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.post(url, json=payload)
            if resp.is_error:
                NOTIFICATIONS.labels(kind=kind, result="rejected").inc()
                logger.error("telegram_send_rejected", status=resp.status_code, body=resp.text[:500])
                return
        except Exception as exc:
            NOTIFICATIONS.labels(kind=kind, result="failed").inc()
            logger.error("telegram_send_failed", error=str(exc))
            return
        NOTIFICATIONS.labels(kind=kind, result="sent").inc()
