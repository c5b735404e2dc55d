from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState, halt


async def authenticate(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Log into Salesforce; a new session is opened for every event."""
    try:
        await get_services(config).salesforce.login()
    except Exception as e:
        logger.error(f"Salesforce login failed: {e}")
        return halt("authenticate", e)
    return {}
