# tests/api/v1/test_campaigns.py

from starlette.testclient import TestClient

from tests.utils.customer import seed_three_customers
from tests.utils.rules import HIGH_SPEND_ACTIVE


def _segment_id(client):
    response = client.post(
        "/api/v1/segments", json={"name": "High Spenders", "rules": HIGH_SPEND_ACTIVE}
    )
    return response.json()["data"]["segment_id"]


def _launch(client, segment_id, name="Black Friday"):
    return client.post(
        "/api/v1/campaigns",
        json={
            "name": name,
            "segment_id": segment_id,
            "message_template": "Hi {{name}}, you spent {{total_spend}}. {{coupon}}",
        },
    )


def test_launch_campaign(test_client: TestClient, db_session):
    seed_three_customers(db_session)
    segment_id = _segment_id(test_client)

    response = _launch(test_client, segment_id)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == 'Campaign "Black Friday" created successfully with 1 targeted customers'
    assert body["data"]["total_customers"] == 1
    assert body["data"]["segment_name"] == "High Spenders"
    assert body["data"]["campaign_id"].startswith("cmp_")


def test_launch_campaign_missing_fields(test_client: TestClient):
    response = test_client.post("/api/v1/campaigns", json={"name": "No segment"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: name, segment_id, message_template"


def test_launch_campaign_unknown_segment(test_client: TestClient):
    response = _launch(test_client, "seg_missing")

    assert response.status_code == 404
    assert response.json()["error"] == "Segment not found"


def test_get_campaign_and_communications(test_client: TestClient, db_session):
    seed_three_customers(db_session)
    campaign_id = _launch(test_client, _segment_id(test_client)).json()["data"]["campaign_id"]

    campaign = test_client.get(f"/api/v1/campaigns/{campaign_id}").json()["data"]
    logs = test_client.get(f"/api/v1/campaigns/{campaign_id}/communications").json()["data"]

    assert campaign["segment_name"] == "High Spenders"
    assert campaign["launch_state"] == "FINALIZED"
    assert campaign["target_audience_count"] == 1
    assert campaign["created_by"] == "anonymous"
    assert len(logs) == 1
    assert logs[0]["message_text"] == "Hi Ravi, you spent ₹1,500. {{coupon}}"


def test_list_campaigns_with_pagination(test_client: TestClient):
    segment_id = _segment_id(test_client)
    for i in range(3):
        _launch(test_client, segment_id, name=f"Campaign {i}")

    response = test_client.get("/api/v1/campaigns", params={"page": 2, "limit": 2})

    body = response.json()
    assert response.status_code == 200
    assert len(body["data"]) == 1
    assert body["pagination"] == {
        "currentPage": 2,
        "limit": 2,
        "totalRecords": 3,
        "totalPage": 2,
        "hasNext": False,
        "hasPrevious": True,
    }


def test_resume_finalized_campaign(test_client: TestClient, db_session):
    seed_three_customers(db_session)
    campaign_id = _launch(test_client, _segment_id(test_client)).json()["data"]["campaign_id"]

    response = test_client.post(f"/api/v1/campaigns/{campaign_id}/resume")

    assert response.status_code == 200
    assert response.json()["data"]["total_customers"] == 1


def test_get_missing_campaign(test_client: TestClient):
    response = test_client.get("/api/v1/campaigns/cmp_missing")

    assert response.status_code == 404
    assert response.json()["success"] is False
