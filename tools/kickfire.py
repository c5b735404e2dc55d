import httpx
from typing import Dict, Any, Optional
from loguru import logger

from tools.errors import UpstreamError


class KickfireClassifier:
    """Company identification by email domain using the Kickfire API."""

    def __init__(self, api_key: str, base_url: str = "https://api.kickfire.com/v2",
                 timeout: float = 20, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def classify(self, domain: str) -> Optional[Dict[str, Any]]:
        """
        Look up the company behind an email domain.

        Args:
            domain: Bare domain, e.g. "acme.com"

        Returns:
            CompanyInfo dict ({"name", "is_isp"}) or None when Kickfire reports
            no match

        Raises:
            UpstreamError: the request itself failed
        """
        if not self.api_key:
            logger.warning("No Kickfire API key, skipping domain classification")
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.base_url}/company",
                    params={"website": domain, "key": self.api_key}
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamError("kickfire", str(e)) from e

        logger.info(f"Kickfire results for {domain}: {payload}")

        data = payload.get("data") or []
        if payload.get("status") != "success" or not data:
            return None

        company = data[0]
        return {
            "name": company.get("name") or "",
            "is_isp": bool(company.get("isISP")),
        }
