"""Telegram Bot API notifier."""

import logging

import httpx

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Delivers messages to one chat through one bot."""

    BASE_URL = "https://api.telegram.org"

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def destination(self) -> str:
        """Chat id with the bot id, without the secret part of the token."""
        bot_id = self.bot_token.split(":", 1)[0]
        return f"{bot_id}/{self.chat_id}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def deliver(self, message: str) -> bool:
        """
        Send a Markdown message.

        Failures are logged, never raised and never retried.

        Returns:
            True if Telegram accepted the message
        """
        client = await self._get_client()
        try:
            response = await client.post(
                f"/bot{self.bot_token}/sendMessage",
                json={
                    "chat_id": self.chat_id,
                    "text": message,
                    "parse_mode": "Markdown",
                },
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Telegram delivery to %s failed: %s", self.destination, e)
            return False

        if not payload.get("ok", False):
            logger.error(
                "Telegram rejected message to %s: %s",
                self.destination, payload.get("description", "unknown error"),
            )
            return False
        return True


def build_notifiers(
    tokens: list[str],
    chat_ids: list[str],
    timeout: float = 10.0,
) -> list[TelegramNotifier]:
    """
    Pair bot tokens with chat ids by position.

    Entries without a token or a chat id are skipped with a warning.
    """
    notifiers = []
    for index, token in enumerate(tokens):
        chat_id = chat_ids[index] if index < len(chat_ids) else ""
        if not token or not chat_id:
            logger.warning("Telegram bot #%d has no token or chat id, skipping", index + 1)
            continue
        notifiers.append(TelegramNotifier(token, chat_id, timeout=timeout))
    return notifiers
