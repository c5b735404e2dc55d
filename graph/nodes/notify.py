from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState
from tools.chatter import build_feed_body, lead_in_text


async def notify(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Post a Chatter item on the record that was just written."""
    record_id = state.get("record_id")
    if not record_id:
        return {}

    resolution = state.get("resolution") or {}
    user = state.get("user") or {}
    # New leads have no owner yet
    owner_id = None if resolution.get("kind") == "lead" else resolution.get("owner_id")

    body = build_feed_body(
        record_id,
        lead_in_text(state["record_type"], is_new=resolution.get("kind") != "existing"),
        user.get("display_name") or user.get("real_name") or "",
        owner_id=owner_id,
    )

    try:
        feed_item_id = await get_services(config).salesforce.post_feed(body)
    except Exception as e:
        # The record stays; only the announcement is lost
        logger.error(f"Chatter post on {record_id} failed: {e}")
        return {"errors": [f"notify: {e}"]}

    logger.info(f"Created feed item: {feed_item_id}")
    return {"feed_item_id": feed_item_id}
