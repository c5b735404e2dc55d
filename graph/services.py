from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import Settings
from tools.kickfire import KickfireClassifier
from tools.salesforce import SalesforceClient
from tools.slack import SlackDirectory


@dataclass
class Services:
    """External collaborators handed to every pipeline node."""
    settings: Settings
    slack: SlackDirectory
    salesforce: SalesforceClient
    kickfire: KickfireClassifier


def build_services(settings: Settings) -> Services:
    return Services(
        settings=settings,
        slack=SlackDirectory(settings.slack_oauth_token),
        salesforce=SalesforceClient(
            username=settings.username,
            password=settings.password,
            security_token=settings.security_token,
            login_url=settings.login_url,
            api_version=settings.api_version,
            timeout=settings.http_timeout,
        ),
        kickfire=KickfireClassifier(
            api_key=settings.kickfire_key,
            base_url=settings.kickfire_url,
            timeout=settings.http_timeout,
        ),
    )


def get_services(config: Optional[Dict[str, Any]]) -> Services:
    """Pull the Services bundle out of a LangGraph run config."""
    return (config or {})["configurable"]["services"]
