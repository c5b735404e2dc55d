from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from config import Settings
from graph.services import get_services
from graph.state import JoinState, UserProfile, halt

UNKNOWN_COMPANY = "Unknown"
LEAD_SOURCE = "Community"


def person_fields(user: UserProfile, settings: Settings) -> Dict[str, Any]:
    """Fields shared by new Leads and Contacts."""
    return {
        "FirstName": user.get("first_name", ""),
        "LastName": user.get("last_name", ""),
        "Email": user["email"],
        settings.slack_id_field: user["id"],
        "HasOptedOutOfEmail": True,
        "LeadSource": LEAD_SOURCE,
    }


async def create_lead(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Create an unqualified Lead when no Account could be matched."""
    services = get_services(config)
    company = (state.get("resolution") or {}).get("company") or UNKNOWN_COMPANY

    fields = person_fields(state["user"], services.settings)
    fields["Company"] = company

    try:
        lead_id = await services.salesforce.create("Lead", fields)
    except Exception as e:
        logger.error(f"Lead creation failed: {e}")
        return halt("create_lead", e)

    logger.info(f"Created lead id: {lead_id}")
    return {
        "resolution": {"kind": "lead", "company": company},
        "record_id": lead_id,
        "record_type": "Lead",
        "outcome": "lead_created",
    }
