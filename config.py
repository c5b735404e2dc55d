import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from loguru import logger


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the Slack → Salesforce sync service."""
    username: str = ""
    password: str = ""
    security_token: str = ""
    login_url: str = "https://login.salesforce.com"
    api_version: str = "59.0"
    slack_id_field: str = "Slack_ID__c"
    kickfire_key: str = ""
    kickfire_url: str = "https://api.kickfire.com/v2"
    slack_token: str = ""
    slack_oauth_token: str = ""
    port: int = 3000
    redis_url: Optional[str] = None
    dedup_cache_size: int = 100
    dedup_ttl: int = 3600
    sosl_escape_all: bool = True
    http_timeout: float = 20.0
    log_file: str = "logs/app.log"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables (and .env) with defaults."""
    load_dotenv()

    settings = Settings(
        username=os.getenv("USERNAME", ""),
        password=os.getenv("PASSWORD", ""),
        security_token=os.getenv("SECURITY_TOKEN", ""),
        login_url=os.getenv("LOGIN_URL") or "https://login.salesforce.com",
        api_version=os.getenv("SALESFORCE_API_VERSION", "59.0"),
        slack_id_field=os.getenv("SALESFORCE_SLACK_ID_FIELD", "Slack_ID__c"),
        kickfire_key=os.getenv("KICKFIRE_KEY", ""),
        kickfire_url=os.getenv("KICKFIRE_URL", "https://api.kickfire.com/v2"),
        slack_token=os.getenv("SLACK_TOKEN", ""),
        slack_oauth_token=os.getenv("SLACK_OAUTH_TOKEN", ""),
        port=int(os.getenv("PORT") or "3000"),
        redis_url=os.getenv("REDIS_URL") or None,
        dedup_cache_size=int(os.getenv("DEDUP_CACHE_SIZE", "100")),
        dedup_ttl=int(os.getenv("DEDUP_TTL", "3600")),
        sosl_escape_all=_flag("SOSL_ESCAPE_ALL", "true"),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "20")),
        log_file=os.getenv("LOG_FILE", "logs/app.log"),
    )

    if not settings.username or not settings.password:
        logger.warning("USERNAME/PASSWORD not set; Salesforce login will fail")
    if not settings.slack_token:
        logger.warning("SLACK_TOKEN not set; every webhook request will be rejected")
    if not settings.slack_oauth_token:
        logger.warning("SLACK_OAUTH_TOKEN not set; user profile lookups will fail")
    if not settings.kickfire_key:
        logger.warning("KICKFIRE_KEY not set; every domain will be treated as unclassified")

    return settings
