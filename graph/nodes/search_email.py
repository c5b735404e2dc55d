from typing import Any, Dict, Optional
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import Services, get_services
from graph.state import JoinState, halt
from tools.salesforce import GROUP_ID_PREFIX, email_search_query, record_type


async def owner_to_mention(services: Services, owner_id: Optional[str]) -> Optional[str]:
    """
    Owner worth @mentioning: users always, groups only when Regular.

    Queue-owned records are treated as ownerless.
    """
    if not owner_id or not owner_id.startswith(GROUP_ID_PREFIX):
        return owner_id

    try:
        group_type = await services.salesforce.get_group_type(owner_id)
    except Exception as e:
        logger.error(f"Owner group lookup failed for {owner_id}: {e}")
        return None

    if group_type != "Regular":
        logger.info(f"Owner {owner_id} is a {group_type} group, not mentioning it")
        return None
    return owner_id


async def search_email(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Look for an existing Lead or Contact with the user's exact email."""
    services = get_services(config)
    email = state["user"]["email"]

    try:
        records = await services.salesforce.search(
            email_search_query(email, escape_all=services.settings.sosl_escape_all)
        )
    except Exception as e:
        logger.error(f"Email search failed: {e}")
        return halt("search_email", e)

    if not records:
        logger.info(f"No Lead or Contact with email {email}")
        return {}

    top = records[0]
    found_type = record_type(top)
    logger.info(f"Found {found_type} with id {top['Id']}")

    return {
        "resolution": {
            "kind": "existing",
            "record_id": top["Id"],
            "record_type": found_type,
            "owner_id": await owner_to_mention(services, top.get("OwnerId")),
        }
    }
