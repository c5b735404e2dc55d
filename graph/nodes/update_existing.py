from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState, halt


async def update_existing(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Stamp the Slack user id onto the Lead/Contact that already has this email."""
    services = get_services(config)
    resolution = state["resolution"]
    record_id = resolution["record_id"]
    sobject = resolution["record_type"]

    try:
        await services.salesforce.update(
            sobject, record_id, {services.settings.slack_id_field: state["user"]["id"]}
        )
    except Exception as e:
        logger.error(f"Updating {sobject} {record_id} failed: {e}")
        return halt("update_existing", e)

    logger.info(f"Updated {sobject} {record_id}")
    return {"record_id": record_id, "record_type": sobject, "outcome": "updated"}
