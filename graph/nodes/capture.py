from typing import Any, Dict
from graph.state import JoinState
from loguru import logger


def capture(state: JoinState) -> Dict[str, Any]:
    """Build the user profile from the team_join event's user object."""
    raw = state.get("event") or {}
    if isinstance(raw, str):
        raw = {"id": raw}

    profile = raw.get("profile") or {}
    user = {
        "id": raw.get("id", ""),
        "real_name": profile.get("real_name") or raw.get("real_name") or "",
        "display_name": profile.get("display_name") or raw.get("name") or "",
    }

    logger.info(f"Captured user from request: {user}")
    return {"user": user}
