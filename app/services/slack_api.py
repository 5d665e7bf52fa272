"""Slack Web API client used for profile lookups and response_url delivery."""
from typing import Any, Optional

import httpx
import structlog

from app.config import settings
from app.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class SlackApiError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.status_code = status_code


class SlackApiClient:
    """
    Thin async client over the Slack Web API.

    The bot token is the only credential this client holds; it is sent to
    the Slack API base URL only, never to caller-supplied response URLs.
    """

    def __init__(
        self,
        token: Optional[str],
        *,
        base_url: str = "https://slack.com/api",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._api = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )
        self._hooks = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    async def close(self) -> None:
        await self._api.aclose()
        await self._hooks.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        try:
            response = await self._api.request(method, endpoint, params=params)
        except httpx.HTTPError as exc:
            logger.warning("slack.network_error", endpoint=endpoint, error=str(exc))
            raise SlackApiError("Slack request failed") from exc

        if response.status_code >= 400:
            raise SlackApiError(
                f"Slack HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SlackApiError("Slack response was not JSON") from exc

        if payload.get("ok") is not True:
            error = payload.get("error")
            raise SlackApiError(
                f"Slack API error: {error}",
                error=error,
                status_code=response.status_code,
            )

        return payload

    async def get_user_email(self, slack_user_id: str) -> Optional[str]:
        """
        Fetch the profile email of a Slack user via users.info.

        Returns:
            The email address, or None if the profile has none

        Raises:
            ConfigurationError: If no bot token is configured
            SlackApiError: If the API call fails
        """
        if not self._token:
            raise ConfigurationError("SLACK_BOT_TOKEN is not set")

        payload = await self._request("GET", "/users.info", params={"user": slack_user_id})
        user = payload.get("user") or {}
        email = (user.get("profile") or {}).get("email")
        if not isinstance(email, str) or not email.strip():
            return None
        return email.strip()

    async def post_response_url(self, response_url: str, payload: dict[str, Any]) -> None:
        """
        POST a message payload to an interaction's response_url. One attempt.

        Raises:
            SlackApiError: If the request fails or Slack rejects it
        """
        try:
            response = await self._hooks.post(response_url, json=payload)
        except httpx.HTTPError as exc:
            raise SlackApiError("response_url request failed") from exc

        if response.status_code >= 400:
            raise SlackApiError(
                f"response_url HTTP {response.status_code}",
                status_code=response.status_code,
            )


class SlackConnection:
    """Owns the Slack client for the lifetime of the application."""

    client: SlackApiClient | None = None

    def connect(self) -> None:
        self.client = SlackApiClient(
            settings.slack_bot_token,
            base_url=settings.slack_api_url,
            timeout_s=settings.slack_timeout_seconds,
        )
        if not self.client.has_token:
            logger.warning("slack.bot_token_missing")

    async def disconnect(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None


slack = SlackConnection()


async def get_slack_client() -> SlackApiClient:
    """Dependency to get the Slack client."""
    if slack.client is None:
        raise RuntimeError("Slack client not initialized")
    return slack.client
