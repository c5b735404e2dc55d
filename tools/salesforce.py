import asyncio
import httpx
from typing import Dict, Any, List, Optional
from urllib.parse import urlparse
from loguru import logger
from simple_salesforce import SalesforceLogin

from tools.errors import UpstreamError

# Owner ids in the Group namespace (users are 005...)
GROUP_ID_PREFIX = "00G"


def sosl_escape(term: str, escape_all: bool = True) -> str:
    """
    Escape the SOSL reserved characters that show up in email addresses.

    With escape_all=False only the first "+" and the first "-" are escaped,
    matching what older versions of this service sent.
    """
    count = -1 if escape_all else 1
    return term.replace("+", "\\+", count).replace("-", "\\-", count)


def email_search_query(email: str, escape_all: bool = True) -> str:
    """Exact-email search across Leads and Contacts."""
    return (
        f"FIND {{{sosl_escape(email, escape_all)}}} IN EMAIL FIELDS "
        "RETURNING Contact(Id, OwnerId), Lead(Id, OwnerId)"
    )


def domain_search_query(domain: str) -> str:
    """All-fields search for a bare domain across Accounts and Contacts."""
    return (
        f"FIND {{{domain}}} IN ALL FIELDS "
        "RETURNING Account(Id, Name, OwnerId), Contact(Id, AccountId)"
    )


def record_type(record: Dict[str, Any]) -> Optional[str]:
    """Type tag of a search record ("Lead", "Contact", "Account"...)."""
    return (record.get("attributes") or {}).get("type")


def login_domain(login_url: str) -> str:
    """Map a login URL onto simple-salesforce's domain argument (login, test, acme.my)."""
    host = urlparse(login_url).netloc or login_url
    suffix = ".salesforce.com"
    return host[:-len(suffix)] if host.endswith(suffix) else host


class SalesforceClient:
    """Salesforce session, search, sObject and Chatter access."""

    def __init__(self, username: str, password: str, security_token: str = "",
                 login_url: str = "https://login.salesforce.com", api_version: str = "59.0",
                 timeout: float = 20, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.username = username
        self.password = password
        self.security_token = security_token
        self.login_url = login_url
        self.api_version = api_version
        self.timeout = timeout
        self.transport = transport
        self.session_id: Optional[str] = None
        self.instance: Optional[str] = None

    @property
    def base_url(self) -> str:
        return f"https://{self.instance}/services/data/v{self.api_version}"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.session_id}",
            "Content-Type": "application/json"
        }

    async def login(self) -> None:
        """Open a fresh session with the service account credentials."""
        try:
            self.session_id, self.instance = await asyncio.to_thread(
                SalesforceLogin,
                username=self.username,
                password=self.password,
                security_token=self.security_token,
                domain=login_domain(self.login_url),
            )
        except Exception as e:
            raise UpstreamError("salesforce", f"login failed: {e}") from e

        logger.info(f"Logged into Salesforce as {self.username} ({self.instance})")

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        if not self.session_id:
            raise UpstreamError("salesforce", "not logged in")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}/{path}",
                    headers=self._get_headers(),
                    **kwargs
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                "salesforce",
                f"{method} {path} returned {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError("salesforce", f"{method} {path} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def search(self, sosl: str) -> List[Dict[str, Any]]:
        """Run a SOSL query; records come back in Salesforce relevance order."""
        data = await self._request("GET", "search/", params={"q": sosl})
        records = (data or {}).get("searchRecords", [])
        logger.info(f"Search results: {[(record_type(r), r.get('Id')) for r in records]}")
        return records

    async def retrieve(self, sobject: str, record_id: str, fields: List[str]) -> Dict[str, Any]:
        return await self._request(
            "GET",
            f"sobjects/{sobject}/{record_id}",
            params={"fields": ",".join(fields)}
        ) or {}

    async def create(self, sobject: str, fields: Dict[str, Any]) -> str:
        """Create a record and return its id."""
        data = await self._request("POST", f"sobjects/{sobject}/", json=fields) or {}
        if not data.get("id"):
            raise UpstreamError("salesforce", f"{sobject} create returned no id: {data}")
        return data["id"]

    async def update(self, sobject: str, record_id: str, fields: Dict[str, Any]) -> None:
        await self._request("PATCH", f"sobjects/{sobject}/{record_id}", json=fields)

    async def get_group_type(self, group_id: str) -> Optional[str]:
        """Group.Type of an owner group ("Regular", "Queue"...)."""
        group = await self.retrieve("Group", group_id, ["Type"])
        return group.get("Type")

    async def post_feed(self, body: Dict[str, Any]) -> str:
        """Create a Chatter feed element and return its id."""
        data = await self._request("POST", "chatter/feed-elements", json=body) or {}
        return data.get("id", "")
