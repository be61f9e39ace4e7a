# services/push_relay.py
"""Клиент push-релея (Expo push API). Доставка best-effort."""

import logging
from typing import Any, Dict, Optional

import httpx

from core.config import settings


class PushRelay:
    """Тонкая async-обёртка над HTTP API push-релея"""

    def __init__(self, api_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self.api_url = api_url or settings.PUSH_API_URL
        self._http = client or httpx.AsyncClient(timeout=settings.PUSH_TIMEOUT_SECONDS)
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def build_message(push_token: str, title: str, body: str,
                      data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "to": push_token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }

    async def send_push(self, push_token: str, title: str, body: str,
                        data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Отправить уведомление.

        Returns:
            True, если релей принял сообщение. Ошибки логируются и не пробрасываются.
        """
        if not push_token:
            self.logger.info(f"No push token, skipping notification: {title}")
            return False

        try:
            resp = await self._http.post(
                self.api_url,
                json=self.build_message(push_token, title, body, data),
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                    "Content-Type": "application/json",
                },
            )
            resp.raise_for_status()
            result = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"❌ Error sending push notification: {e}")
            return False

        ticket = result.get("data") if isinstance(result, dict) else None
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            self.logger.warning(f"Push relay rejected message: {ticket.get('message')}")
            return False

        self.logger.debug(f"Push notification sent: {result}")
        return True

    async def close(self) -> None:
        await self._http.aclose()
