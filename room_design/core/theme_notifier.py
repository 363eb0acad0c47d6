"""
Theme-change notification client.

Posts a small JSON event to a configured webhook whenever a new theme
becomes active. Notifications are a non-critical side effect: every failure
is logged and reported as ``False``, never raised.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from room_design.models.dtos import Theme

logger = logging.getLogger(__name__)

THEME_CHANGED_EVENT = "theme_changed"


class ThemeNotifier:
    """
    Async webhook client announcing theme rotations.

    When no webhook URL is configured the notifier only logs the change.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the notifier.

        Args:
            webhook_url: Endpoint receiving the event; notifications are only logged when None
            api_key: Optional bearer token sent with each request
            max_retries: Extra attempts after a failed delivery
            retry_delay: Delay between attempts in seconds
            timeout: Request timeout in seconds
            client: Pre-built HTTP client, mainly for tests
        """
        self.webhook_url = webhook_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = client or httpx.AsyncClient(headers=headers, timeout=httpx.Timeout(timeout))

        if webhook_url:
            logger.info(f"ThemeNotifier initialized with webhook URL: {webhook_url[:50]}...")
        else:
            logger.info("ThemeNotifier initialized without webhook; theme changes will only be logged")

    @staticmethod
    def build_payload(theme: Theme, previous: Optional[Theme] = None) -> Dict[str, Any]:
        return {
            "event": THEME_CHANGED_EVENT,
            "theme": theme.model_dump(by_alias=True),
            "previousThemeId": previous.id if previous else None,
        }

    async def notify_theme_change(self, theme: Theme, previous: Optional[Theme] = None) -> bool:
        """
        Announce that ``theme`` is now active.

        Returns:
            bool: True if delivered (or nothing to deliver to), False otherwise
        """
        logger.info(f"New theme notification: {theme.name} - {theme.description}")
        if not self.webhook_url:
            return True

        payload = self.build_payload(theme, previous)
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(self.webhook_url, json=payload)
                if 200 <= response.status_code < 300:
                    logger.info(f"Theme change for {theme.id} delivered to webhook")
                    return True
                logger.warning(
                    f"Theme webhook answered {response.status_code} (attempt {attempt + 1}): {response.text}"
                )
            except httpx.HTTPError as e:
                logger.warning(f"Error delivering theme change (attempt {attempt + 1}): {str(e)}")
            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay)

        logger.warning(f"Giving up on theme change notification for {theme.id}")
        return False

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("ThemeNotifier closed")
