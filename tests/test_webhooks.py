from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from leadrelay.config import get_settings
from leadrelay.dependencies.services import get_lead_intake_service
from leadrelay.main import app
from leadrelay.services.config_cache import ConfigCache, crm_config_fetcher
from leadrelay.services.forwarder import LeadForwarder
from leadrelay.services.intake import LeadIntakeService

from conftest import FakeCrm


@pytest.fixture
def wire(settings_factory):
    def install(crm: FakeCrm, **overrides) -> None:
        settings = settings_factory(**overrides)
        client = crm.client()
        cache = ConfigCache(crm_config_fetcher(client))
        forwarder = LeadForwarder(client, try_alternate_shapes=settings.forward_alternate_shapes)
        service = LeadIntakeService(settings, cache, forwarder)
        app.dependency_overrides[get_lead_intake_service] = lambda: service
        app.dependency_overrides[get_settings] = lambda: settings

    yield install
    app.dependency_overrides.clear()


def _google_body(key: str = "shared-secret", location: str = "I'd like the Scottsdale campus") -> dict:
    return {
        "google_key": key,
        "lead_id": "lead-1",
        "campaign_id": 555,
        "user_column_data": [
            {"column_id": "FULL_NAME", "string_value": "Jane Q Public"},
            {"column_id": "EMAIL", "string_value": "jane@example.com"},
            {"column_id": "PHONE_NUMBER", "string_value": "480-555-0100"},
            {"column_id": "your_preferred_option", "string_value": location},
        ],
    }


def test_google_lead_is_forwarded(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post("/google-leads", json=_google_body())

    assert response.status_code == 200
    assert response.json() == {}
    assert crm.config_calls == 1
    assert len(crm.posts) == 1
    posted = crm.posts[0]
    assert posted["first_name"] == "Jane"
    assert posted["last_name"] == "Q Public"
    assert posted["phone"] == "+14805550100"
    assert posted["location_id"] == posted["location"] == "2"
    assert posted["locations_select"] == "I'd like the Scottsdale campus"
    assert posted["source"] == "Google Ads - Tanner"
    assert posted["notes"] == "From Google Lead Form | campaign 555"


def test_config_is_fetched_once_across_requests(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    client.post("/google-leads", json=_google_body())
    client.post("/google-leads", json=_google_body(location="phoenix"))

    assert crm.config_calls == 1
    assert [post["location_id"] for post in crm.posts] == ["2", "1"]


def test_google_lead_with_wrong_key_is_rejected(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post("/google-leads", json=_google_body(key="wrong"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Invalid google_key"
    assert crm.requests == []


def test_google_lead_rejected_when_no_key_configured(wire) -> None:
    crm = FakeCrm()
    wire(crm, google_lead_key="")
    client = TestClient(app)

    body = _google_body()
    body.pop("google_key")
    response = client.post("/google-leads", json=body)

    assert response.status_code == 403
    assert crm.requests == []


def test_config_fetch_failure_is_upstream_error_without_forwarding(wire) -> None:
    crm = FakeCrm(fail_config=True)
    wire(crm)
    client = TestClient(app)

    response = client.post("/google-leads", json=_google_body())

    assert response.status_code == 502
    assert response.json()["detail"] == "Upstream error"
    assert crm.config_calls == 1
    assert crm.posts == []


def test_crm_rejection_is_upstream_error(wire) -> None:
    crm = FakeCrm(lead_statuses=[400])
    wire(crm)
    client = TestClient(app)

    response = client.post("/duda-form", json={"Name": "Sam Lee"})

    assert response.status_code == 502
    assert len(crm.posts) == 1


def test_duda_json_labeled_array(wire) -> None:
    crm = FakeCrm(config={"data": {"locations": [{"id": "1", "name": "Whiz Kidz Phoenix"}, {"id": "2", "name": "Whiz Kidz Scottsdale"}], "sources": []}})
    wire(crm, force_source=False)
    client = TestClient(app)

    response = client.post(
        "/duda-form",
        json={
            "data": [
                {"label": "Name *", "value": "Priya Shah"},
                {"label": "Email *", "value": "priya@example.com"},
                {"label": "Select Location *", "value": "scottsdale"},
            ],
            "pageUrl": "https://example.com/tour",
        },
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    posted = crm.posts[0]
    assert posted["first_name"] == "Priya"
    assert posted["last_name"] == "Shah"
    assert posted["email"] == "priya@example.com"
    assert "phone" not in posted
    assert posted["location_id"] == "2"
    assert posted["source"] == "Website"
    assert posted["notes"] == "From Website Form | https://example.com/tour"


def test_duda_urlencoded_flat_form(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post(
        "/duda-form",
        data={"Name *": "", "Phone *": "(602) 555-0199", "Select Location *": "Downtown Tucson"},
    )

    assert response.status_code == 200
    posted = crm.posts[0]
    assert (posted["first_name"], posted["last_name"]) == ("Website", "Lead")
    assert posted["phone"] == "+16025550199"
    assert posted["location_id"] == "1"
    assert posted["locations_select"] == "Downtown Tucson"


def test_duda_invalid_json_is_bad_request(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post(
        "/duda-form",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert crm.requests == []


def test_health_routes() -> None:
    client = TestClient(app)

    assert client.get("/").text == "OK - webhook up"
    assert client.get("/health").json() == {"ok": True}


def test_echo_can_be_disabled(wire) -> None:
    wire(FakeCrm(), enable_echo=False)
    client = TestClient(app)

    assert client.post("/echo", json={"x": 1}).status_code == 404


def test_echo_returns_ok(wire) -> None:
    wire(FakeCrm())
    client = TestClient(app)

    response = client.post("/echo", json={"hello": "world"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_config_without_locations_is_fetched_again(wire) -> None:
    crm = FakeCrm()
    crm.queued_configs.append({})
    wire(crm)
    client = TestClient(app)

    first = client.post("/duda-form", json={"Name": "Sam Lee"})
    second = client.post("/duda-form", json={"Name": "Sam Lee", "Location": "Scottsdale"})

    assert first.status_code == 502
    assert second.status_code == 200
    assert crm.config_calls == 2
    assert len(crm.posts) == 1
    assert crm.posts[0]["location_id"] == "2"


def test_forwarding_timeout_is_upstream_error(wire) -> None:
    crm = FakeCrm(timeout_leads=True)
    wire(crm)
    client = TestClient(app)

    response = client.post("/google-leads", json=_google_body())

    assert response.status_code == 502
    assert response.json()["detail"] == "Upstream error"
    assert len(crm.posts) == 1


def test_forwarding_timeout_with_alternate_shapes(wire) -> None:
    crm = FakeCrm(timeout_leads=True)
    wire(crm, forward_alternate_shapes=True)
    client = TestClient(app)

    response = client.post("/google-leads", json=_google_body())

    assert response.status_code == 502
    assert len(crm.posts) == 3


def test_google_key_checked_before_payload_shape(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post(
        "/google-leads",
        json={"google_key": 123, "user_column_data": [{"string_value": "x"}]},
    )

    assert response.status_code == 403
    assert crm.requests == []


def test_google_lead_with_odd_columns_is_still_forwarded(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post(
        "/google-leads",
        json={
            "google_key": "shared-secret",
            "is_test": "true",
            "user_column_data": [
                {"string_value": "no column id"},
                {"column_id": "PHONE_NUMBER", "string_value": 4805550100},
                {"column_id": "FULL_NAME", "string_value": None},
                "not-an-object",
            ],
        },
    )

    assert response.status_code == 200
    posted = crm.posts[0]
    assert posted["phone"] == "+14805550100"
    assert (posted["first_name"], posted["last_name"]) == ("Google", "Lead")
    assert posted["notes"] == "From Google Lead Form | TEST LEAD"


def test_duda_top_level_array_is_read_as_labeled_fields(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post(
        "/duda-form",
        json=[
            {"label": "Full Name", "value": "Priya Shah"},
            {"label": "Campus", "value": "Scottsdale"},
        ],
    )

    assert response.status_code == 200
    posted = crm.posts[0]
    assert posted["first_name"] == "Priya"
    assert posted["location_id"] == "2"


def test_duda_scalar_json_is_bad_request(wire) -> None:
    crm = FakeCrm()
    wire(crm)
    client = TestClient(app)

    response = client.post("/duda-form", json="just a string")

    assert response.status_code == 400
    assert crm.requests == []
