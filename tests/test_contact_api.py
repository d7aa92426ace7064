import email

from app.core.config import Settings
from app.services import notification_service
from app.services.notification_service import NotificationService


def contact_form(**overrides):
    form = {
        "name": " Dana ",
        "email": "Dana@Example.com",
        "phone": "555-0199",
        "inquiryType": "Buying",
        "message": "Looking for a three bedroom house.",
    }
    form.update(overrides)
    return form


def submit(client, **overrides):
    response = client.post("/api/contact", json=contact_form(**overrides),
                           headers={"user-agent": "pytest-browser", "referer": "https://example.com/contact"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_submit_is_public_and_records_source(client):
    contact = submit(client)
    assert contact["name"] == "Dana"
    assert contact["email"] == "dana@example.com"
    assert contact["subject"] == "buying"
    assert contact["status"] == "new"
    assert contact["source"]["page"] == "https://example.com/contact"
    assert contact["source"]["userAgent"] == "pytest-browser"


def test_explicit_page_wins_over_referer(client):
    contact = submit(client, page="/properties/lake-house", propertyId="65f0000000000000000000aa")
    assert contact["source"]["page"] == "/properties/lake-house"
    assert contact["property"] == "65f0000000000000000000aa"
    assert "page" not in contact


def test_forwarded_ip_is_recorded(client):
    response = client.post("/api/contact", json=contact_form(), headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"})
    assert response.json()["data"]["source"]["ip"] == "203.0.113.9"


def test_submit_validation(client):
    missing = client.post("/api/contact", json=contact_form(phone=""))
    assert missing.status_code == 400
    assert missing.json()["errors"] == [{"field": "phone", "message": "Phone is required"}]

    assert client.post("/api/contact", json=contact_form(message="m" * 2000)).status_code == 201
    assert client.post("/api/contact", json=contact_form(message="m" * 2001)).status_code == 400
    assert client.post("/api/contact", json=contact_form(inquiryType="complaint")).status_code == 400


def test_notification_failure_does_not_fail_submission(client, store, monkeypatch):
    def explode(self, contact):
        raise RuntimeError("mail server on fire")

    monkeypatch.setattr(NotificationService, "notify_contact_submission", explode)
    submit(client)
    assert store.collection("contactsubmissions").count() == 1


def test_listing_submissions_is_admin_only(client, agent_headers, admin_headers):
    submit(client)
    assert client.get("/api/contact").status_code == 401
    assert client.get("/api/contact", headers=agent_headers).status_code == 403

    body = client.get("/api/contact", headers=admin_headers).json()
    assert body["success"] is True
    assert len(body["data"]) == 1
    assert body["pagination"] == {"total": 1, "page": 1, "pages": 1}


def test_list_filters_and_paginates(client, admin_headers):
    for i in range(3):
        submit(client, name=f"Person {i}")
    first = submit(client, name="Replied person")
    client.put(f"/api/contact/{first['id']}", json={"status": "replied"}, headers=admin_headers)

    replied = client.get("/api/contact", params={"status": "replied"}, headers=admin_headers).json()
    assert [c["name"] for c in replied["data"]] == ["Replied person"]

    paged = client.get("/api/contact", params={"limit": 3, "page": 2}, headers=admin_headers).json()
    assert paged["pagination"] == {"total": 4, "page": 2, "pages": 2}
    assert len(paged["data"]) == 1


def test_update_stamps_reply_and_archive_times(client, admin_headers):
    contact = submit(client)
    url = f"/api/contact/{contact['id']}"

    replied = client.put(url, json={"status": "replied", "notes": "Called back"}, headers=admin_headers).json()["data"]
    assert replied["repliedAt"]
    assert replied["notes"] == "Called back"

    archived = client.put(url, json={"status": "archived"}, headers=admin_headers).json()["data"]
    assert archived["archivedAt"]

    invalid = client.put(url, json={"status": "spam"}, headers=admin_headers)
    assert invalid.status_code == 400


def test_get_and_delete(client, admin_headers):
    contact = submit(client)
    url = f"/api/contact/{contact['id']}"
    assert client.get(url, headers=admin_headers).json()["data"]["id"] == contact["id"]
    assert client.delete(url, headers=admin_headers).status_code == 200
    missing = client.get(url, headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "Contact submission not found"


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, body):
        FakeSMTP.sent.append((sender, recipients, body))


def test_notification_email_is_escaped(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(notification_service.smtplib, "SMTP", FakeSMTP)
    config = Settings(smtp_host="smtp.example.com", smtp_user="ops@example.com", smtp_pass="secret")
    notifier = NotificationService(config)

    assert notifier.notify_contact_submission({
        "name": "<b>Eve</b>", "email": "eve@example.com", "phone": "1", "subject": "general", "message": "hi",
    }) is True
    sender, recipients, raw = FakeSMTP.sent[0]
    assert recipients == ["ops@example.com"]
    message = email.message_from_string(raw)
    assert message["Subject"] == "New Contact Form Submission - general"
    html = message.get_payload(decode=True).decode("utf-8")
    assert "&lt;b&gt;Eve&lt;/b&gt;" in html


def test_notifications_skipped_without_credentials():
    notifier = NotificationService(Settings(smtp_user=None, smtp_pass=None))
    assert notifier.enabled is False
    assert notifier.send_email("a@example.com", "Hi", "<p>Hi</p>") is False
