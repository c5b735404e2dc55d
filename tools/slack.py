import asyncio
import hmac
from typing import Dict, Any, Optional
from loguru import logger
from slack_sdk.web import WebClient
from slack_sdk.errors import SlackApiError

from tools.errors import UpstreamError


def verify_token(received: Optional[str], expected: str) -> bool:
    """Check the verification token Slack puts in every event payload."""
    if not expected or not isinstance(received, str):
        return False
    return hmac.compare_digest(received.encode(), expected.encode())


class SlackDirectory:
    """Slack user profile lookups; team_join events don't carry the email."""

    def __init__(self, token: str, client: Optional[WebClient] = None):
        self.token = token
        self.client = client or WebClient(token=token)

        if not self.token:
            logger.warning("No Slack OAuth token provided, profile lookups will fail")

    def _get_profile(self, user_id: str) -> Dict[str, Any]:
        response = self.client.users_profile_get(user=user_id)
        return response.get("profile") or {}

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        """
        Fetch a user's profile (email, real_name, display_name...).

        Raises:
            UpstreamError: Slack rejected the call or could not be reached
        """
        try:
            profile = await asyncio.to_thread(self._get_profile, user_id)
        except SlackApiError as e:
            raise UpstreamError("slack", e.response.get("error", str(e))) from e
        except Exception as e:
            raise UpstreamError("slack", str(e)) from e

        logger.info(f"Slack profile for {user_id}: {profile.get('email')}")
        return profile
