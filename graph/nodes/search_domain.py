from typing import Any, Dict, List, Optional
from langchain_core.runnables import RunnableConfig
from loguru import logger

from graph.services import get_services
from graph.state import JoinState, halt
from tools.salesforce import domain_search_query, record_type


def unambiguous_account(records: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Top record, if it is an Account not immediately followed by another Account."""
    if not records or record_type(records[0]) != "Account":
        return None
    if len(records) > 1 and record_type(records[1]) == "Account":
        return None
    return records[0]


async def search_domain(state: JoinState, config: RunnableConfig) -> Dict[str, Any]:
    """Find the Account to attach a new Contact to, via the email domain."""
    services = get_services(config)
    domain = state["domain"]
    company_name = (state.get("company") or {}).get("name") or None

    try:
        records = await services.salesforce.search(domain_search_query(domain))
    except Exception as e:
        logger.error(f"Domain search failed: {e}")
        return halt("search_domain", e)

    account = unambiguous_account(records)
    if account:
        logger.info(f"Found account {account.get('Name')} ({account['Id']})")
        return {
            "resolution": {
                "kind": "contact",
                "account_id": account["Id"],
                "owner_id": account.get("OwnerId"),
            }
        }

    if records and record_type(records[0]) == "Contact" and records[0].get("AccountId"):
        # Use first matching contact's account
        account_id = records[0]["AccountId"]
        try:
            account = await services.salesforce.retrieve("Account", account_id, ["OwnerId"])
        except Exception as e:
            logger.error(f"Account lookup failed for {account_id}: {e}")
            return halt("search_domain", e)

        logger.info(f"Using account {account_id} of contact {records[0]['Id']}")
        return {
            "resolution": {
                "kind": "contact",
                "account_id": account_id,
                "owner_id": account.get("OwnerId"),
            }
        }

    logger.info(f"No unambiguous account for {domain}")
    return {"resolution": {"kind": "lead", "company": company_name}}
