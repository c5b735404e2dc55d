from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.nodes.create_lead import person_fields
from graph.services import get_services
from graph.state import JoinState, halt


async def attach_contact(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Create a Contact under the matched Account, owned by the Account's owner."""
    services = get_services(config)
    resolution = state["resolution"]

    fields = person_fields(state["user"], services.settings)
    fields["AccountId"] = resolution["account_id"]
    if resolution.get("owner_id"):
        fields["OwnerId"] = resolution["owner_id"]

    try:
        contact_id = await services.salesforce.create("Contact", fields)
    except Exception as e:
        logger.error(f"Contact creation failed: {e}")
        return halt("attach_contact", e)

    logger.info(f"Created contact id: {contact_id}")
    return {"record_id": contact_id, "record_type": "Contact", "outcome": "contact_created"}
