"""Identity resolver - maps Slack users to internal users."""
from typing import Optional

import structlog
from pymongo.errors import PyMongoError

from app.errors import ConfigurationError, IdentityNotFound, NotFoundError, StoreError
from app.models.user import User
from app.services.slack_api import SlackApiClient, SlackApiError

logger = structlog.get_logger(__name__)


class IdentityResolver:
    """Resolve external chat identities to internal user IDs."""

    def __init__(self, credential, slack_client: SlackApiClient):
        """
        Initialize resolver.

        Args:
            credential: Store credential scoped to users and slack_identities
            slack_client: Slack API client used for the email fallback
        """
        self.users = credential["users"]
        self.slack_identities = credential["slack_identities"]
        self.slack_client = slack_client

    async def resolve(self, slack_user_id: str) -> str:
        """
        Resolve a Slack user ID to an internal user ID.

        Tries the persisted Slack identity link first, then falls back to
        matching the Slack profile email against the user directory.

        Args:
            slack_user_id: Slack user ID (e.g. "U012ABC")

        Returns:
            Internal user ID

        Raises:
            IdentityNotFound: If neither strategy finds a user
            StoreError: If the store fails
        """
        try:
            link = await self.slack_identities.find_one({"_id": slack_user_id})
        except PyMongoError as e:
            logger.exception("identity.lookup_failed", slack_user_id=slack_user_id)
            raise StoreError("Identity lookup failed") from e

        if link and link.get("user_id"):
            return str(link["user_id"])

        email = await self._fetch_email(slack_user_id)
        if not email:
            raise IdentityNotFound(slack_user_id)

        user_id = await self._find_user_id_by_email(email)
        if user_id is None:
            logger.info("identity.email_unmatched", slack_user_id=slack_user_id)
            raise IdentityNotFound(slack_user_id)

        return user_id

    async def _fetch_email(self, slack_user_id: str) -> Optional[str]:
        try:
            return await self.slack_client.get_user_email(slack_user_id)
        except ConfigurationError:
            logger.warning("identity.fallback_disabled", reason="SLACK_BOT_TOKEN is not set")
        except SlackApiError as e:
            logger.warning(
                "identity.email_lookup_failed",
                slack_user_id=slack_user_id,
                error=str(e),
            )
        return None

    async def _find_user_id_by_email(self, email: str) -> Optional[str]:
        wanted = email.lower()
        try:
            async for doc in self.users.find({}, {"email": 1}):
                candidate = doc.get("email")
                if isinstance(candidate, str) and candidate.lower() == wanted:
                    return str(doc["_id"])
        except PyMongoError as e:
            logger.exception("identity.directory_scan_failed")
            raise StoreError("User directory lookup failed") from e
        return None

    async def get_user(self, user_id: str) -> User:
        """
        Get a user from the directory.

        Raises:
            NotFoundError: If the user is not in the directory
        """
        try:
            doc = await self.users.find_one({"_id": user_id})
        except PyMongoError as e:
            logger.exception("identity.user_fetch_failed", user_id=user_id)
            raise StoreError("User lookup failed") from e

        if not doc:
            raise NotFoundError("User not found")

        return User(_id=str(doc["_id"]), email=doc["email"], name=doc.get("name", ""))
