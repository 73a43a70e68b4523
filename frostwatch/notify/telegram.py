"""Telegram Bot API delivery."""

import logging

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramDeliverer:
    def __init__(
        self,
        bot_token: str,
        api_base: str = TELEGRAM_API_BASE,
        timeout: float = 15.0,
    ):
        self.bot_token = bot_token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def deliver(self, chat_id: str, text: str) -> bool:
        """Send a message. Returns False on any failure instead of raising."""
        url = f"{self.api_base}/bot{self.bot_token}/sendMessage"
        try:
            resp = httpx.post(
                url,
                json={"chat_id": chat_id, "text": text},
                timeout=self.timeout,
            )
        except httpx.RequestError as e:
            logger.warning("Telegram delivery to %s failed: %s", chat_id, e)
            return False

        if resp.status_code != 200:
            logger.warning(
                "Telegram delivery to %s returned %d", chat_id, resp.status_code
            )
            return False
        try:
            data = resp.json()
        except ValueError:
            data = None
        ok = isinstance(data, dict) and data.get("ok") is True
        if not ok:
            logger.warning("Telegram rejected message to %s", chat_id)
        return ok


class LogDeliverer:
    """Delivery stand-in used when Telegram is disabled: writes to the log."""

    def deliver(self, chat_id: str, text: str) -> bool:
        logger.info("Notification for %s:\n%s", chat_id, text)
        return True
