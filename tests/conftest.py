import os
import sys
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# app.py reads settings and opens its log sink at import time
os.environ.setdefault("SLACK_TOKEN", "test-token")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "community-sync-tests.log"))

from config import Settings
from graph.services import Services


@pytest.fixture
def make_services():
    """Services bundle with mocked Slack, Salesforce and Kickfire."""

    def _make(profile=None, email_results=None, domain_results=None, company=None,
              group_type="Regular", account=None, **settings_overrides):
        settings_values = {"slack_token": "test-token", "kickfire_key": "kf-key"}
        settings_values.update(settings_overrides)

        slack = MagicMock()
        slack.get_profile = AsyncMock(return_value=profile if profile is not None else {
            "email": "jane+promo@example.com",
            "real_name": "Jane Q Public",
            "display_name": "jane",
        })

        salesforce = MagicMock()
        salesforce.login = AsyncMock()
        salesforce.search = AsyncMock(side_effect=[email_results or [], domain_results or []])
        salesforce.create = AsyncMock(return_value="003NEW")
        salesforce.update = AsyncMock()
        salesforce.retrieve = AsyncMock(return_value=account or {"OwnerId": "005acct"})
        salesforce.get_group_type = AsyncMock(return_value=group_type)
        salesforce.post_feed = AsyncMock(return_value="0D5FEED")

        kickfire = MagicMock()
        kickfire.classify = AsyncMock(return_value=company)

        return Services(
            settings=Settings(**settings_values),
            slack=slack,
            salesforce=salesforce,
            kickfire=kickfire,
        )

    return _make


def run_config(services):
    return {"configurable": {"services": services}}


def sf_record(sobject, record_id, **fields):
    record = {"attributes": {"type": sobject, "url": f"/services/data/v59.0/sobjects/{sobject}/{record_id}"}, "Id": record_id}
    record.update(fields)
    return record
