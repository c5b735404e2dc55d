from typing import Any, Dict
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState


async def classify(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Ask Kickfire who owns the email domain; ISPs and misses go straight to a Lead."""
    domain = state.get("domain", "")

    try:
        company = await get_services(config).kickfire.classify(domain)
    except Exception as e:
        # Not fatal: the user still becomes an "Unknown" lead
        logger.error(f"Domain classification failed for {domain}: {e}")
        return {
            "company": None,
            "resolution": {"kind": "lead", "company": None},
            "errors": [f"classify: {e}"],
        }

    if not company:
        logger.info(f"Kickfire found no company for {domain}")
        return {"company": None, "resolution": {"kind": "lead", "company": None}}

    if company["is_isp"]:
        logger.info(f"{domain} is an ISP domain")
        return {"company": company, "resolution": {"kind": "lead", "company": None}}

    logger.info(f"{domain} belongs to {company['name']}")
    return {"company": company}
