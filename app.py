import time
from typing import Dict, Any
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger
from langgraph.graph import StateGraph, START, END

# Import our modules
from config import get_settings
from graph.state import JoinState
from graph.services import Services, build_services
from graph.nodes.capture import capture
from graph.nodes.identify import identify
from graph.nodes.authenticate import authenticate
from graph.nodes.search_email import search_email
from graph.nodes.classify import classify
from graph.nodes.search_domain import search_domain
from graph.nodes.update_existing import update_existing
from graph.nodes.attach_contact import attach_contact
from graph.nodes.create_lead import create_lead
from graph.nodes.notify import notify
from tools.idempotency import Idem
from tools.slack import verify_token

settings = get_settings()

# Configure logging
logger.add(settings.log_file, rotation="1 day", retention="7 days", level="INFO")

# Initialize FastAPI app
app = FastAPI(
    title="Community Slack → Salesforce Sync",
    description="Turns Slack team_join events into Salesforce Leads and Contacts",
    version="1.0.0"
)


def _halted(state: JoinState) -> bool:
    return state.get("outcome") == "aborted"


# Build the LangGraph workflow
def build_workflow():
    """Build the entity resolution workflow."""
    workflow = StateGraph(JoinState)

    # Add nodes
    workflow.add_node("capture", capture)
    workflow.add_node("identify", identify)
    workflow.add_node("authenticate", authenticate)
    workflow.add_node("search_email", search_email)
    workflow.add_node("classify", classify)
    workflow.add_node("search_domain", search_domain)
    workflow.add_node("update_existing", update_existing)
    workflow.add_node("attach_contact", attach_contact)
    workflow.add_node("create_lead", create_lead)
    workflow.add_node("notify", notify)

    workflow.add_edge(START, "capture")
    workflow.add_edge("capture", "identify")

    def continue_or_stop(state: JoinState) -> str:
        return "stop" if _halted(state) else "continue"

    workflow.add_conditional_edges(
        "identify", continue_or_stop, {"continue": "authenticate", "stop": END}
    )
    workflow.add_conditional_edges(
        "authenticate", continue_or_stop, {"continue": "search_email", "stop": END}
    )

    # Existing Lead/Contact wins; otherwise fall back to the email domain
    def after_email_search(state: JoinState) -> str:
        if _halted(state):
            return "stop"
        if state.get("resolution", {}).get("kind") == "existing":
            logger.info("Existing record found, updating it")
            return "update_existing"
        return "classify"

    workflow.add_conditional_edges(
        "search_email",
        after_email_search,
        {"update_existing": "update_existing", "classify": "classify", "stop": END}
    )

    # ISP or unknown domains skip the domain search entirely
    def after_classify(state: JoinState) -> str:
        if state.get("resolution", {}).get("kind") == "lead":
            return "create_lead"
        return "search_domain"

    workflow.add_conditional_edges(
        "classify",
        after_classify,
        {"create_lead": "create_lead", "search_domain": "search_domain"}
    )

    def after_domain_search(state: JoinState) -> str:
        if _halted(state):
            return "stop"
        if state.get("resolution", {}).get("kind") == "contact":
            return "attach_contact"
        return "create_lead"

    workflow.add_conditional_edges(
        "search_domain",
        after_domain_search,
        {"attach_contact": "attach_contact", "create_lead": "create_lead", "stop": END}
    )

    workflow.add_edge("update_existing", "notify")
    workflow.add_edge("attach_contact", "notify")
    workflow.add_edge("create_lead", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()


# Initialize workflow, collaborators and idempotency
app_graph = build_workflow()
services = build_services(settings)
idem = Idem(
    redis_url=settings.redis_url,
    max_keys=settings.dedup_cache_size,
    ttl=settings.dedup_ttl,
)


async def process_join(user: Dict[str, Any], services: Services) -> JoinState:
    """Run one team_join event through the workflow and log its outcome."""
    start_time = time.time()
    user_id = user.get("id", "unknown")
    logger.info(f"Starting workflow execution for user: {user_id}")

    try:
        result = await app_graph.ainvoke(
            {"event": user, "errors": []},
            config={"configurable": {"services": services}}
        )
    except Exception as e:
        logger.error(f"Workflow failed for {user_id}: {e}")
        return {"event": user, "outcome": "aborted", "errors": [f"workflow: {e}"]}

    processing_time = time.time() - start_time
    logger.info(
        f"Processed {user_id} in {processing_time:.2f}s: "
        f"outcome={result.get('outcome', 'aborted')} "
        f"record={result.get('record_type')}:{result.get('record_id')} "
        f"errors={result.get('errors', [])}"
    )
    return result


@app.post("/")
async def slack_event(req: Request, background_tasks: BackgroundTasks):
    """
    Slack Events API endpoint for team_join.

    Expected payload:
    {
        "token": "<verification token>",
        "challenge": "<only on url_verification>",
        "event": {"type": "team_join", "user": {"id": "U123", "profile": {...}}}
    }
    """
    try:
        payload = await req.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        logger.warning("Rejected request without a JSON object body")
        return PlainTextResponse("Bad Request", status_code=400)

    if not verify_token(payload.get("token"), services.settings.slack_token):
        logger.warning("Rejected request with bad verification token")
        return PlainTextResponse("Unauthorized", status_code=403)

    if payload.get("challenge"):
        logger.info("Slack challenge")
        return PlainTextResponse(str(payload["challenge"]))

    event = payload.get("event")
    user = event.get("user") if isinstance(event, dict) else None
    if isinstance(user, str):
        user = {"id": user}
    if not isinstance(user, dict) or not user.get("id"):
        logger.warning(f"Event without a user ignored: {event}")
        return PlainTextResponse("ok")

    logger.info(f"user from request: {user}")

    if not idem.check_and_set(user["id"]):
        logger.warning(f"Duplicate event ignored for user: {user['id']}")
        return PlainTextResponse("ok")

    background_tasks.add_task(process_join, user, services)
    return PlainTextResponse("ok")


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Community Slack → Salesforce Sync")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=settings.port,
        log_level="info"
    )
