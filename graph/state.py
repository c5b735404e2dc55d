import operator
from typing import Annotated, TypedDict, Optional, List, Dict, Any


class UserProfile(TypedDict, total=False):
    id: str
    display_name: str
    real_name: str
    first_name: str
    last_name: str
    email: str


class CompanyInfo(TypedDict):
    name: str
    is_isp: bool


class Resolution(TypedDict, total=False):
    """Outcome of entity resolution; exactly one kind per run."""
    kind: str                        # "existing" | "contact" | "lead"
    record_id: str                   # existing
    record_type: str                 # existing: "Lead" | "Contact"
    account_id: str                  # contact
    owner_id: Optional[str]          # existing, contact
    company: Optional[str]           # lead


class JoinState(TypedDict, total=False):
    """State shape for one team_join event moving through the pipeline."""
    event: Dict[str, Any]            # event.user from the webhook payload
    user: UserProfile
    domain: str
    company: Optional[CompanyInfo]
    resolution: Resolution
    record_id: Optional[str]         # Lead/Contact written this run
    record_type: str
    outcome: str                     # "updated" | "contact_created" | "lead_created" | "aborted"
    feed_item_id: Optional[str]
    errors: Annotated[List[str], operator.add]


def halt(stage: str, error: Exception) -> Dict[str, Any]:
    """State update that stops the run after a failed external call."""
    return {"outcome": "aborted", "errors": [f"{stage}: {error}"]}
