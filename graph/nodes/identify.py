from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState, halt
from tools.names import split_name


async def identify(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Fetch the user's email from Slack; it doesn't arrive in the event."""
    services = get_services(config)
    user = dict(state.get("user") or {})
    logger.info(f"Looking up Slack profile for {user.get('id')}")

    try:
        profile = await services.slack.get_profile(user.get("id", ""))
        email = profile.get("email")
        if not email:
            raise ValueError(f"no email on Slack profile for {user.get('id')}")
    except Exception as e:
        logger.error(f"Slack profile lookup failed: {e}")
        return halt("identify", e)

    user["email"] = email
    user["real_name"] = user.get("real_name") or profile.get("real_name") or ""
    user["display_name"] = user.get("display_name") or profile.get("display_name") or user["real_name"]
    user["first_name"], user["last_name"] = split_name(user["real_name"] or user["display_name"] or email)

    domain = email.split("@")[-1]
    logger.info(f"User {user['id']} has email domain {domain}")

    return {"user": user, "domain": domain}
