from __future__ import annotations

import os
import sys
from typing import Any, Callable, Dict, List
from urllib.parse import parse_qsl

import httpx
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from leadrelay.clients.crm import CrmClient
from leadrelay.config import Settings

CRM_BASE_URL = "https://crm.test/api/v2"

WHIZ_KIDZ_LOCATIONS = [
    {"id": "1", "name": "Whiz Kidz Phoenix"},
    {"id": "2", "name": "Whiz Kidz Scottsdale"},
]


class FakeCrm:
    """Records requests and serves canned CRM responses."""

    def __init__(
        self,
        *,
        config: Dict[str, Any] | None = None,
        config_status: int = 200,
        lead_statuses: List[int] | None = None,
        fail_config: bool = False,
        timeout_leads: bool = False,
    ) -> None:
        self.config = config if config is not None else {
            "locations": WHIZ_KIDZ_LOCATIONS,
            "sources": ["Google Ads - Tanner", "Website"],
        }
        self.config_status = config_status
        self.lead_statuses = list(lead_statuses or [200])
        self.fail_config = fail_config
        self.timeout_leads = timeout_leads
        self.queued_configs: List[Dict[str, Any]] = []
        self.config_calls = 0
        self.posts: List[Dict[str, str]] = []
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/lead/config"):
            self.config_calls += 1
            if self.fail_config:
                raise httpx.ConnectError("connection refused", request=request)
            body = self.queued_configs.pop(0) if self.queued_configs else self.config
            return httpx.Response(self.config_status, json=body)
        if request.url.path.endswith("/lead/simplified"):
            self.posts.append(dict(parse_qsl(request.content.decode())))
            if self.timeout_leads:
                raise httpx.ReadTimeout("timed out", request=request)
            status = self.lead_statuses.pop(0) if len(self.lead_statuses) > 1 else self.lead_statuses[0]
            return httpx.Response(status, json={"ok": status < 400})
        return httpx.Response(404)

    def client(self, token: str = "iks-token") -> CrmClient:
        return CrmClient(
            CRM_BASE_URL,
            token=token,
            timeout=5.0,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_crm() -> FakeCrm:
    return FakeCrm()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    def build(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            "crm_base_url": CRM_BASE_URL,
            "crm_token": "iks-token",
            "google_lead_key": "shared-secret",
        }
        values.update(overrides)
        return Settings(**values)

    return build
