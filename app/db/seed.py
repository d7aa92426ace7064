"""
Sample data for development databases.

Documents go through the regular services, so they are validated and get
slugs, defaults and activity logs exactly like API-created ones.
"""

from typing import Dict, List
import logging

from app.api.deps import Actor
from app.db.models import Role
from app.db.store import ALL_COLLECTIONS, DocumentStore
from app.services.lead_service import LeadService
from app.services.property_service import PropertyService

logger = logging.getLogger(__name__)

# Fixed identities so issued dev tokens survive a re-seed
SEED_AGENT = Actor(id="64b000000000000000000001", role=Role.AGENT.value, name="John Agent",
                   email="agent@realestate.com")
SEED_ADMIN = Actor(id="64b000000000000000000002", role=Role.ADMIN.value, name="Admin User",
                   email="admin@realestate.com")

SAMPLE_PROPERTIES: List[Dict] = [
    {
        "title": "Modern Luxury Villa with Pool",
        "description": "Five-bedroom modern villa with an infinity pool, smart home technology "
                       "and mountain views.",
        "price": 1250000,
        "propertyType": "villa",
        "status": "for-sale",
        "listingType": "sale",
        "address": {"street": "123 Luxury Lane", "city": "Beverly Hills", "state": "California",
                    "zipCode": "90210", "country": "USA"},
        "bedrooms": 5, "bathrooms": 4, "area": 4500, "yearBuilt": 2022, "parking": 3,
        "amenities": ["pool", "gym", "smart_home", "security", "garden", "garage"],
        "images": ["https://images.unsplash.com/photo-1613490493576-7fde63acd811?w=800"],
        "featured": True,
    },
    {
        "title": "Downtown Penthouse Apartment",
        "description": "Top-floor penthouse with floor-to-ceiling windows and a private terrace.",
        "price": 850000,
        "propertyType": "penthouse",
        "status": "for-sale",
        "listingType": "sale",
        "address": {"street": "456 Skyline Ave", "city": "New York", "state": "New York",
                    "zipCode": "10001", "country": "USA"},
        "bedrooms": 3, "bathrooms": 2, "area": 2200, "yearBuilt": 2019, "parking": 1,
        "amenities": ["concierge", "gym", "rooftop"],
        "featured": True,
    },
    {
        "title": "Cozy Family Home",
        "description": "Three-bedroom home in a quiet neighborhood close to schools and parks.",
        "price": 425000,
        "propertyType": "house",
        "status": "for-sale",
        "listingType": "sale",
        "address": {"street": "789 Maple Street", "city": "Austin", "state": "Texas",
                    "zipCode": "73301", "country": "USA"},
        "bedrooms": 3, "bathrooms": 2, "area": 1800, "yearBuilt": 2008, "parking": 2,
        "features": ["fireplace", "backyard"],
    },
    {
        "title": "Studio Near Campus",
        "description": "Furnished studio, utilities included, five minutes from the university.",
        "price": 1200,
        "propertyType": "studio",
        "status": "for-rent",
        "listingType": "rent",
        "address": {"street": "12 College Road", "city": "Boston", "state": "Massachusetts",
                    "zipCode": "02115", "country": "USA"},
        "bedrooms": 0, "bathrooms": 1, "area": 450, "yearBuilt": 1995,
    },
]

SAMPLE_LEADS: List[Dict] = [
    {"name": "Emily Johnson", "email": "emily.johnson@example.com", "phone": "+1 (555) 111-2222",
     "source": "website", "status": "new", "priority": "high", "interestedIn": "buying",
     "budget": {"min": 800000, "max": 1300000}, "timeline": "1-3_months"},
    {"name": "Michael Brown", "email": "michael.brown@example.com", "phone": "+1 (555) 333-4444",
     "source": "referral", "status": "contacted", "priority": "medium", "interestedIn": "buying",
     "budget": {"min": 350000, "max": 450000}, "timeline": "3-6_months"},
    {"name": "Sophia Davis", "email": "sophia.davis@example.com", "phone": "+1 (555) 555-6666",
     "source": "zillow", "status": "qualified", "priority": "urgent", "interestedIn": "renting",
     "timeline": "immediate"},
]


def clear(store: DocumentStore) -> None:
    for name in ALL_COLLECTIONS:
        removed = store.collection(name).delete_many({})
        if removed:
            logger.info(f"Cleared {removed} document(s) from {name}")


def seed(store: DocumentStore, wipe: bool = False) -> Dict[str, int]:
    """
    Load the sample properties and leads.

    Args:
        store: target document store
        wipe: empty every collection first

    Returns:
        Number of documents created per collection
    """
    if wipe:
        clear(store)

    properties = PropertyService(store)
    leads = LeadService(store)

    created = [properties.create_property(dict(p), SEED_AGENT) for p in SAMPLE_PROPERTIES]
    for index, lead in enumerate(SAMPLE_LEADS):
        data = dict(lead)
        data["property"] = created[index % len(created)]["_id"]
        leads.create_lead(data, SEED_AGENT)

    logger.info(f"Seeded {len(created)} properties and {len(SAMPLE_LEADS)} leads")
    return {"properties": len(created), "leads": len(SAMPLE_LEADS)}
