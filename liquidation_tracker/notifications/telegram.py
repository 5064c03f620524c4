"""Telegram notification service."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig
from ..models import Severity

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Send notifications via Telegram bots.

    Warnings and critical alerts go through the alert bot unmuted; info
    messages go through the log bot silently.
    """

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    async def _send_message(
        self, message: str, bot_token: str, silent: bool = False
    ) -> bool:
        """Send Telegram message using specified bot."""
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": message,
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(url, json=payload) as response:
                if response.status == 200:
                    return True
                logger.error("Failed to send Telegram message: %s", response.status)
                return False

    async def notify(self, severity: Severity, title: str, message: str) -> bool:
        text = f"{title}\n\n{message}"
        if severity is Severity.INFO:
            sent = await self._send_message(text, self.log_bot_token, silent=True)
        else:
            sent = await self._send_message(text, self.alert_bot_token, silent=False)
        if sent:
            logger.info("Telegram %s notification sent", severity.value)
        return sent
