from app.api.deps import Actor
from app.services.message_service import MessageService

from conftest import AGENT_ID, OTHER_AGENT_ID


def open_conversation(client, headers, **fields):
    body = {"client": {"name": "Cara Client", "email": "cara@example.com"}}
    body.update(fields)
    response = client.post("/api/messages/conversations", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def post(client, headers, conversation_id, content, sender=None):
    body = {"content": content}
    if sender:
        body["sender"] = sender
    return client.post(f"/api/messages/conversations/{conversation_id}/messages", json=body, headers=headers)


def test_open_conversation_defaults(client, agent_headers):
    conversation = open_conversation(client, agent_headers)
    assert conversation["agent"] == AGENT_ID
    assert conversation["status"] == "active"
    assert conversation["unreadCount"] == 0
    assert conversation["lastMessage"] is None


def test_open_conversation_requires_client(client, agent_headers):
    response = client.post("/api/messages/conversations", json={}, headers=agent_headers)
    assert response.status_code == 400


def test_conversation_copies_property_title(client, agent_headers, property_payload):
    prop = client.post("/api/properties", json=property_payload(title="Lake House"), headers=agent_headers)
    conversation = open_conversation(client, agent_headers, property=prop.json()["data"]["id"])
    assert conversation["propertyTitle"] == "Lake House"


def test_client_message_increments_unread_and_sets_last_message(client, agent_headers):
    conversation = open_conversation(client, agent_headers)
    response = post(client, agent_headers, conversation["id"], "Hello, is it available?", sender="client")
    assert response.status_code == 201
    message = response.json()["data"]
    assert message["read"] is False

    current = client.get("/api/messages/conversations", headers=agent_headers).json()["data"][0]
    assert current["unreadCount"] == 1
    assert current["lastMessage"]["content"] == "Hello, is it available?"
    assert current["lastMessage"]["sender"] == "client"


def test_agent_message_replaces_last_message_only(client, agent_headers):
    conversation = open_conversation(client, agent_headers)
    post(client, agent_headers, conversation["id"], "Hi", sender="client")
    post(client, agent_headers, conversation["id"], "Yes it is")

    current = client.get("/api/messages/conversations", headers=agent_headers).json()["data"][0]
    assert current["unreadCount"] == 1
    assert current["lastMessage"]["content"] == "Yes it is"
    assert current["lastMessage"]["sender"] == "agent"


def test_first_message_on_open(client, agent_headers):
    conversation = open_conversation(client, agent_headers, message="Welcome!", sender="agent")
    assert conversation["lastMessage"]["content"] == "Welcome!"
    assert conversation["unreadCount"] == 0


def test_viewing_marks_messages_read(client, store, agent_headers):
    conversation = open_conversation(client, agent_headers)
    for text in ("one", "two", "three"):
        post(client, agent_headers, conversation["id"], text, sender="client")

    data = client.get(f"/api/messages/conversations/{conversation['id']}", headers=agent_headers).json()["data"]
    assert data["conversation"]["unreadCount"] == 0
    assert [m["content"] for m in data["messages"]] == ["one", "two", "three"]
    assert store.collection("messages").count({"read": False}) == 0

    unread = client.get("/api/messages/unread-count", headers=agent_headers).json()
    assert unread["data"]["unreadCount"] == 0


def test_message_pages_newest_first(client, agent_headers):
    conversation = open_conversation(client, agent_headers)
    for i in range(5):
        post(client, agent_headers, conversation["id"], f"m{i}")

    url = f"/api/messages/conversations/{conversation['id']}"
    page1 = client.get(url, params={"limit": 2}, headers=agent_headers).json()["data"]["messages"]
    page3 = client.get(url, params={"limit": 2, "page": 3}, headers=agent_headers).json()["data"]["messages"]
    assert [m["content"] for m in page1] == ["m3", "m4"]
    assert [m["content"] for m in page3] == ["m0"]


def test_unread_count_sums_conversations(client, agent_headers, other_agent_headers):
    first = open_conversation(client, agent_headers)
    second = open_conversation(client, agent_headers)
    theirs = open_conversation(client, other_agent_headers)
    post(client, agent_headers, first["id"], "a", sender="client")
    post(client, agent_headers, second["id"], "b", sender="client")
    post(client, agent_headers, second["id"], "c", sender="client")
    post(client, other_agent_headers, theirs["id"], "d", sender="client")

    unread = client.get("/api/messages/unread-count", headers=agent_headers).json()
    assert unread["data"]["unreadCount"] == 3


def test_message_content_limit(client, agent_headers):
    conversation = open_conversation(client, agent_headers)
    assert post(client, agent_headers, conversation["id"], "x" * 5000).status_code == 201
    too_long = post(client, agent_headers, conversation["id"], "x" * 5001)
    assert too_long.status_code == 400
    assert post(client, agent_headers, conversation["id"], "").status_code == 400


def test_other_agent_cannot_read_or_post(client, agent_headers, other_agent_headers):
    conversation = open_conversation(client, agent_headers)
    url = f"/api/messages/conversations/{conversation['id']}"
    assert client.get(url, headers=other_agent_headers).status_code == 403
    assert post(client, other_agent_headers, conversation["id"], "hi").status_code == 403


def test_delete_archives_conversation(client, store, agent_headers):
    conversation = open_conversation(client, agent_headers)
    response = client.delete(f"/api/messages/conversations/{conversation['id']}", headers=agent_headers)
    assert response.status_code == 200
    assert store.collection("conversations").get(conversation["id"])["status"] == "archived"
    assert client.get("/api/messages/conversations", headers=agent_headers).json()["count"] == 0
    archived = client.get("/api/messages/conversations", params={"status": "archived"}, headers=agent_headers)
    assert archived.json()["count"] == 1


def test_record_last_message_on_missing_conversation(store):
    service = MessageService(store)
    message = store.collection("messages").insert_one(
        {"conversation": "gone", "sender": "client", "content": "hi"}
    )
    assert service.record_last_message("gone", message) is None


def test_client_role_writes_as_client(store):
    service = MessageService(store)
    agent = Actor(id=AGENT_ID, role="agent")
    conversation = service.create_conversation(
        {"client": {"name": "Cara", "email": "cara@example.com"}}, agent
    )
    message = service.add_message(conversation["id"], {"content": "hello"}, Actor(id=AGENT_ID, role="user"))
    assert message["sender"] == "client"
    assert store.collection("conversations").get(conversation["id"])["unreadCount"] == 1


def test_open_for_another_agent_writes_nothing(client, store, agent_headers):
    body = {"client": {"name": "Cara", "email": "cara@example.com"}, "agent": OTHER_AGENT_ID, "message": "hi"}
    response = client.post("/api/messages/conversations", json=body, headers=agent_headers)
    assert response.status_code == 403
    assert store.collection("conversations").count() == 0
    assert store.collection("messages").count() == 0


def test_invalid_first_message_writes_nothing(client, store, agent_headers):
    body = {"client": {"name": "Cara", "email": "cara@example.com"}, "message": "x" * 5001}
    response = client.post("/api/messages/conversations", json=body, headers=agent_headers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "content"
    assert store.collection("conversations").count() == 0
    assert store.collection("messages").count() == 0


def test_admin_opens_conversation_for_an_agent(client, store, admin_headers):
    body = {"client": {"name": "Cara", "email": "cara@example.com"}, "agent": OTHER_AGENT_ID,
            "message": "Hello", "sender": "client"}
    response = client.post("/api/messages/conversations", json=body, headers=admin_headers)
    assert response.status_code == 201
    conversation = response.json()["data"]
    assert conversation["agent"] == OTHER_AGENT_ID
    assert conversation["unreadCount"] == 1
    assert store.collection("messages").count({"conversation": conversation["id"]}) == 1
