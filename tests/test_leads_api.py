from conftest import AGENT_ID, OTHER_AGENT_ID


def listing_form(**overrides):
    form = {
        "name": "Sam Seller",
        "email": "Sam@Example.com",
        "phone": "555-0100",
        "propertyType": "house",
        "purpose": "sale",
        "city": "Austin",
        "price": 100000,
        "area": 1000,
        "bedrooms": 3,
        "bathrooms": 2,
    }
    form.update(overrides)
    return form


def create_lead(client, headers, **fields):
    body = {"name": "Ann Alpha", "email": "ann@example.com"}
    body.update(fields)
    response = client.post("/api/leads", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_lead_routes_require_token(client):
    assert client.get("/api/leads").status_code == 401
    assert client.post("/api/leads", json={}).status_code == 401
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/api/leads", headers=bad).status_code == 401


def test_public_inquiry(client, store):
    response = client.post("/api/leads/public", json={
        "name": "Pat", "email": "PAT@example.com", "message": "Is it still available?",
        "propertyId": "65f0000000000000000000aa",
    })
    assert response.status_code == 201
    lead_id = response.json()["data"]["id"]

    lead = store.collection("leads").get(lead_id)
    assert lead["email"] == "pat@example.com"
    assert lead["source"] == "website"
    assert lead["status"] == "new"
    assert lead["interestedIn"] == "general"
    assert lead["property"] == "65f0000000000000000000aa"


def test_public_inquiry_message_limit(client):
    ok = client.post("/api/leads/public", json={"name": "Pat", "email": "pat@example.com", "message": "m" * 2000})
    assert ok.status_code == 201
    too_long = client.post("/api/leads/public",
                           json={"name": "Pat", "email": "pat@example.com", "message": "m" * 2001})
    assert too_long.status_code == 400
    assert too_long.json()["errors"][0]["field"] == "message"


def test_listing_submission_creates_pending_property_and_lead(client, store):
    response = client.post("/api/leads/listing", json=listing_form())
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Your listing has been submitted for review!"
    property_id = body["data"]["propertyId"]

    properties = store.collection("properties").find({})
    leads = store.collection("leads").find({})
    assert len(properties) == 1
    assert len(leads) == 1

    prop = properties[0]
    assert prop["_id"] == property_id
    assert prop["status"] == "pending"
    assert prop["listingType"] == "sale"
    assert prop["title"] == "house in Austin"
    assert prop["address"]["city"] == "Austin"
    assert prop["slug"].endswith(property_id)

    lead = leads[0]
    assert lead["property"] == property_id
    assert lead["interestedIn"] == "selling"
    assert lead["email"] == "sam@example.com"
    assert lead["message"] == "Submitted sale listing: house in Austin. Price: $100000. Area: 1000 sqft."


def test_minimal_listing_form(client, store):
    response = client.post("/api/leads/listing", json={
        "name": "A", "email": "a@x.com", "phone": "1", "propertyType": "house", "purpose": "sale",
        "city": "X", "price": 100000, "area": 1000, "bedrooms": 2, "bathrooms": 1,
    })
    assert response.status_code == 201
    property_id = response.json()["data"]["propertyId"]
    assert store.collection("properties").count() == 1
    assert store.collection("leads").count({"property": property_id}) == 1
    assert store.collection("properties").get(property_id)["status"] == "pending"


def test_rent_listing_marks_lead_as_renting(client, store):
    response = client.post("/api/leads/listing", json=listing_form(purpose="rent", title="Garden flat"))
    assert response.status_code == 201
    prop = store.collection("properties").find_one({})
    assert prop["listingType"] == "rent"
    assert prop["title"] == "Garden flat"
    assert store.collection("leads").find_one({})["interestedIn"] == "renting"


def test_invalid_listing_writes_nothing(client, store):
    response = client.post("/api/leads/listing", json=listing_form(email="nope"))
    assert response.status_code == 400
    assert store.collection("properties").count() == 0
    assert store.collection("leads").count() == 0


def test_create_lead_assigns_caller_and_logs_creation(client, agent_headers):
    lead = create_lead(client, agent_headers)
    assert lead["assignedTo"] == AGENT_ID
    assert lead["createdBy"] == AGENT_ID
    assert [a["type"] for a in lead["activities"]] == ["created"]


def test_status_change_appends_activity(client, agent_headers):
    lead = create_lead(client, agent_headers)
    response = client.patch(f"/api/leads/{lead['id']}/status", json={"status": "contacted"}, headers=agent_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Status changed from new to contacted"
    activities = body["data"]["activities"]
    assert activities[-1]["type"] == "status_change"
    assert activities[-1]["description"] == "Status changed from new to contacted"
    assert activities[-1]["performedBy"] == AGENT_ID

    missing = client.patch(f"/api/leads/{lead['id']}/status", json={}, headers=agent_headers)
    assert missing.status_code == 400


def test_update_lead_with_put_or_patch(client, agent_headers):
    lead = create_lead(client, agent_headers)
    put = client.put(f"/api/leads/{lead['id']}", json={"priority": "high"}, headers=agent_headers)
    assert put.json()["data"]["priority"] == "high"

    patch = client.patch(f"/api/leads/{lead['id']}", json={"status": "qualified"}, headers=agent_headers)
    data = patch.json()["data"]
    assert data["status"] == "qualified"
    assert data["activities"][-1]["type"] == "status_change"

    invalid = client.put(f"/api/leads/{lead['id']}", json={"status": "won"}, headers=agent_headers)
    assert invalid.status_code == 400


def test_add_activity(client, agent_headers):
    lead = create_lead(client, agent_headers)
    response = client.post(f"/api/leads/{lead['id']}/activity",
                           json={"type": "call", "description": "Left voicemail"}, headers=agent_headers)
    assert response.status_code == 200
    assert response.json()["data"]["activities"][-1]["description"] == "Left voicemail"

    bad = client.post(f"/api/leads/{lead['id']}/activity", json={"type": "telepathy"}, headers=agent_headers)
    assert bad.status_code == 400


def test_agents_only_see_their_leads(client, agent_headers, other_agent_headers, admin_headers):
    create_lead(client, agent_headers, name="Ann Alpha")
    create_lead(client, other_agent_headers, name="Ann Beta", email="beta@example.com")
    create_lead(client, agent_headers, name="Bob Gamma", email="bob@example.com")

    mine = client.get("/api/leads", params={"search": "ann"}, headers=agent_headers).json()
    assert [lead["name"] for lead in mine["data"]] == ["Ann Alpha"]

    # Filtering on another agent's id cannot widen the scope
    sneaky = client.get("/api/leads", params={"createdBy": OTHER_AGENT_ID}, headers=agent_headers).json()
    assert sneaky["total"] == 0

    everyone = client.get("/api/leads", params={"search": "ann"}, headers=admin_headers).json()
    assert everyone["total"] == 2


def test_lead_outside_scope_is_forbidden(client, agent_headers, other_agent_headers):
    lead = create_lead(client, agent_headers)
    response = client.get(f"/api/leads/{lead['id']}", headers=other_agent_headers)
    assert response.status_code == 403
    assert client.get(f"/api/leads/{lead['id']}", headers=agent_headers).status_code == 200


def test_lead_stats(client, agent_headers, other_agent_headers):
    lead = create_lead(client, agent_headers)
    create_lead(client, agent_headers, email="second@example.com")
    create_lead(client, other_agent_headers, email="other@example.com")
    client.patch(f"/api/leads/{lead['id']}/status", json={"status": "closed"}, headers=agent_headers)

    stats = client.get("/api/leads/stats", headers=agent_headers).json()["data"]
    assert stats["total"] == 2
    assert stats["thisMonth"] == 2
    assert sorted((row["_id"], row["count"]) for row in stats["byStatus"]) == [("closed", 1), ("new", 1)]


def test_delete_lead_is_admin_only(client, agent_headers, admin_headers):
    lead = create_lead(client, agent_headers)
    assert client.delete(f"/api/leads/{lead['id']}", headers=agent_headers).status_code == 403
    assert client.delete(f"/api/leads/{lead['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/leads/{lead['id']}", headers=admin_headers).status_code == 404
