from datetime import datetime, timedelta, timezone

from conftest import AGENT_ID


def midnight(offset: int) -> datetime:
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return today + timedelta(days=offset)


def day(offset: int) -> str:
    return midnight(offset).isoformat()


def book(client, headers, **fields):
    body = {"title": "Viewing at Lake House", "date": day(1), "startTime": "10:00"}
    body.update(fields)
    response = client.post("/api/appointments", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_appointments_require_token(client):
    assert client.get("/api/appointments").status_code == 401


def test_book_appointment_defaults(client, agent_headers):
    appointment = book(client, agent_headers)
    assert appointment["agent"] == AGENT_ID
    assert appointment["type"] == "viewing"
    assert appointment["status"] == "scheduled"
    assert appointment["duration"] == 60
    assert appointment["reminderTime"] == 60


def test_booking_validation(client, agent_headers):
    response = client.post("/api/appointments", json={"title": "No time", "date": day(1)}, headers=agent_headers)
    assert response.status_code == 400
    assert response.json()["errors"] == [{"field": "startTime", "message": "Please provide start time"}]

    virtual = client.post("/api/appointments",
                          json={"title": "Call", "date": day(1), "startTime": "09:00", "isVirtual": True},
                          headers=agent_headers)
    assert virtual.status_code == 400


def test_list_is_ordered_and_filtered(client, agent_headers):
    book(client, agent_headers, title="Later", date=day(3), startTime="09:00")
    book(client, agent_headers, title="Second", date=day(2), startTime="15:00")
    book(client, agent_headers, title="First", date=day(2), startTime="08:30", type="meeting")

    listed = client.get("/api/appointments", headers=agent_headers).json()
    assert [a["title"] for a in listed["data"]] == ["First", "Second", "Later"]

    meetings = client.get("/api/appointments", params={"type": "meeting"}, headers=agent_headers).json()
    assert meetings["count"] == 1

    ranged = client.get("/api/appointments", headers=agent_headers, params={
        "startDate": day(2),
        "endDate": (midnight(2) + timedelta(hours=23)).isoformat(),
    }).json()
    assert {a["title"] for a in ranged["data"]} == {"First", "Second"}


def test_today_and_upcoming(client, agent_headers):
    book(client, agent_headers, title="Yesterday", date=day(-1))
    book(client, agent_headers, title="Today", date=day(0))
    book(client, agent_headers, title="Tomorrow", date=day(1))
    cancelled = book(client, agent_headers, title="Cancelled", date=day(2))
    client.put(f"/api/appointments/{cancelled['id']}/status", json={"status": "cancelled"}, headers=agent_headers)

    today = client.get("/api/appointments/today", headers=agent_headers).json()
    assert [a["title"] for a in today["data"]] == ["Today"]

    upcoming = client.get("/api/appointments/upcoming", headers=agent_headers).json()
    assert [a["title"] for a in upcoming["data"]] == ["Today", "Tomorrow"]


def test_status_update(client, agent_headers):
    appointment = book(client, agent_headers)
    url = f"/api/appointments/{appointment['id']}/status"

    response = client.put(url, json={"status": "confirmed"}, headers=agent_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "confirmed"

    invalid = client.put(url, json={"status": "postponed"}, headers=agent_headers)
    assert invalid.status_code == 400
    assert invalid.json()["message"] == "Invalid status"


def test_update_and_delete(client, agent_headers):
    appointment = book(client, agent_headers)
    url = f"/api/appointments/{appointment['id']}"

    updated = client.put(url, json={"notes": "Bring keys", "startTime": "11:00"}, headers=agent_headers)
    assert updated.json()["data"]["startTime"] == "11:00"
    assert updated.json()["data"]["notes"] == "Bring keys"

    assert client.delete(url, headers=agent_headers).status_code == 200
    assert client.get(url, headers=agent_headers).status_code == 404


def test_agents_are_isolated(client, agent_headers, other_agent_headers, admin_headers):
    appointment = book(client, agent_headers)
    url = f"/api/appointments/{appointment['id']}"

    assert client.get(url, headers=other_agent_headers).status_code == 403
    assert client.delete(url, headers=other_agent_headers).status_code == 403
    assert client.get("/api/appointments", headers=other_agent_headers).json()["count"] == 0

    assert client.get(url, headers=admin_headers).status_code == 200
    assert client.get("/api/appointments", headers=admin_headers).json()["count"] == 1
