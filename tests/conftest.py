import os
import tempfile

# Configure the app before it is imported anywhere
os.environ["STORE_BACKEND"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="realestate-uploads-")
for var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS"):
    os.environ.pop(var, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import create_access_token  # noqa: E402
from app.db.memory import MemoryStore  # noqa: E402
from app.main import create_app  # noqa: E402

AGENT_ID = "65f000000000000000000001"
OTHER_AGENT_ID = "65f000000000000000000002"
ADMIN_ID = "65f000000000000000000003"
USER_ID = "65f000000000000000000004"


def bearer(actor_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(actor_id, role)}"}


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    with TestClient(create_app(store=store)) as c:
        yield c


@pytest.fixture
def agent_headers():
    return bearer(AGENT_ID, "agent")


@pytest.fixture
def other_agent_headers():
    return bearer(OTHER_AGENT_ID, "agent")


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_ID, "admin")


@pytest.fixture
def user_headers():
    return bearer(USER_ID, "user")


@pytest.fixture
def property_payload():
    """Factory for a valid property body; keyword arguments override fields."""
    def make(**overrides):
        body = {
            "title": "Modern Apartment A",
            "description": "Bright two-bedroom apartment",
            "price": 250000,
            "propertyType": "apartment",
            "address": {"street": "1 Main St", "city": "Austin", "state": "TX", "zipCode": "73301"},
            "bedrooms": 2,
            "bathrooms": 1,
            "area": 1000,
        }
        body.update(overrides)
        return body
    return make
