"""Tip-of-the-day client for the advice slip feed."""

from collections.abc import Mapping
from typing import Optional

from budgetbuddy.audit.logger import get_logger
from budgetbuddy.config.settings import AdviceSettings
from budgetbuddy.models.results import Advice
from budgetbuddy.services.http import ExternalServiceError, JsonHttpClient, Transport

logger = get_logger(__name__)


class AdviceFetchError(ExternalServiceError):
    """Raised when the advice feed can't be reached or answers with an error."""

    service = "advice"
    display_name = "Advice API"


class AdviceClient:
    """
    Fetches one advice slip per call.

    The feed caches aggressively, so every request asks it not to.
    """

    def __init__(
        self,
        settings: Optional[AdviceSettings] = None,
        transport: Optional[Transport] = None,
    ):
        self.settings = settings or AdviceSettings()
        self._http = JsonHttpClient(
            AdviceFetchError,
            timeout_seconds=self.settings.timeout_seconds,
            retry_attempts=self.settings.retry_attempts,
            transport=transport,
        )

    async def fetch_advice(self) -> Advice:
        """
        Fetch a tip.

        A response without advice text gets the configured fallback text.

        Raises:
            AdviceFetchError: Network failure, error status or invalid JSON
        """
        body = await self._http.get_json(
            self.settings.endpoint,
            headers={"Cache-Control": "no-cache"},
        )
        slip = body.get("slip") if isinstance(body, Mapping) else None
        if not isinstance(slip, Mapping):
            slip = {}

        advice = Advice(
            id=slip.get("id"),
            text=str(slip.get("advice") or self.settings.fallback_text),
        )
        logger.debug("advice_fetched", advice_id=advice.id)
        return advice
