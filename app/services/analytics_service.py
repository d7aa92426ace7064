"""
Analytics service - read-only dashboard aggregations.

Non-admin actors only see their own data: properties by agent, leads by
assignedTo/createdBy, appointments and conversations by agent. Every ratio
is guarded so an empty store yields zeros.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging

from app.api.deps import Actor
from app.db.models import (
    ActivityType,
    AppointmentStatus,
    ConversationStatus,
    LeadStatus,
    PropertyStatus,
    serialize_property,
)
from app.db.store import APPOINTMENTS, CONVERSATIONS, LEADS, PROPERTIES, Document, DocumentStore, utcnow
from app.services.lead_service import lead_scope

logger = logging.getLogger(__name__)

PRICE_BOUNDARIES = [0, 100000, 250000, 500000, 750000, 1000000, 2000000, float("inf")]
MONTHS_SHOWN = 12
TOP_VIEWED = 5


def percent_change(current: int, previous: int) -> float:
    """Month-over-month growth in percent (0 when both are 0, 100 when only previous is)."""
    if previous == 0:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


def ratio_percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _previous_month_start(month_start: datetime) -> datetime:
    return _month_start(month_start - timedelta(days=1))


def _with(scope: Document, **conditions: Any) -> Document:
    if not scope:
        return dict(conditions)
    return {"$and": [scope, conditions]} if conditions else scope


def _monthly(date_field: str, **accumulators: Document) -> List[Document]:
    return [
        {"$group": {
            "_id": {"year": {"$year": f"${date_field}"}, "month": {"$month": f"${date_field}"}},
            **accumulators,
        }},
        {"$sort": {"_id.year": -1, "_id.month": -1}},
        {"$limit": MONTHS_SHOWN},
    ]


def _count_by(field: str, sort_by_count: bool = False) -> List[Document]:
    stages: List[Document] = [{"$group": {"_id": f"${field}", "count": {"$sum": 1}}}]
    if sort_by_count:
        stages.append({"$sort": {"count": -1, "_id": 1}})
    return stages


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AnalyticsService:
    """Dashboard numbers computed straight from the store."""

    def __init__(self, db: DocumentStore):
        self.db = db
        self.properties = db.collection(PROPERTIES)
        self.leads = db.collection(LEADS)
        self.appointments = db.collection(APPOINTMENTS)
        self.conversations = db.collection(CONVERSATIONS)

    @staticmethod
    def _owned(actor: Actor) -> Document:
        return {} if actor.is_admin else {"agent": actor.id}

    def dashboard(self, actor: Actor) -> Dict[str, Any]:
        """
        Headline numbers for the dashboard.

        Returns:
            {"properties": {...}, "leads": {...}, "appointments": {...}, "engagement": {...}}
        """
        owned = self._owned(actor)
        leads_scope = lead_scope(actor) or {}
        now = utcnow()
        this_month = _month_start(now)
        last_month = _previous_month_start(this_month)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        available = [PropertyStatus.FOR_SALE.value, PropertyStatus.FOR_RENT.value]
        properties = {
            "total": self.properties.count(owned),
            "available": self.properties.count(_with(owned, status={"$in": available})),
            "sold": self.properties.count(_with(owned, status=PropertyStatus.SOLD.value)),
            "pending": self.properties.count(_with(owned, status=PropertyStatus.PENDING.value)),
        }

        total_leads = self.leads.count(leads_scope)
        new_leads = self.leads.count(_with(leads_scope, createdAt={"$gte": this_month}))
        last_month_leads = self.leads.count(
            _with(leads_scope, createdAt={"$gte": last_month, "$lt": this_month})
        )
        closed_leads = self.leads.count(_with(leads_scope, status=LeadStatus.CLOSED.value))
        leads = {
            "total": total_leads,
            "new": new_leads,
            "qualified": self.leads.count(_with(leads_scope, status=LeadStatus.QUALIFIED.value)),
            "conversionRate": ratio_percent(closed_leads, total_leads),
            "growth": percent_change(new_leads, last_month_leads),
        }

        appointments = {
            "today": self.appointments.count(
                _with(owned, date={"$gte": today, "$lt": today + timedelta(days=1)})
            ),
            "upcoming": self.appointments.count(
                _with(owned, date={"$gte": now}, status=AppointmentStatus.SCHEDULED.value)
            ),
        }

        views = self.properties.aggregate([
            {"$match": owned},
            {"$group": {"_id": None, "totalViews": {"$sum": "$views"}}},
        ])
        unread = self.conversations.aggregate([
            {"$match": _with(owned, status=ConversationStatus.ACTIVE.value)},
            {"$group": {"_id": None, "total": {"$sum": "$unreadCount"}}},
        ])
        engagement = {
            "totalViews": views[0]["totalViews"] if views else 0,
            "unreadMessages": unread[0]["total"] if unread else 0,
        }

        logger.debug(f"Dashboard computed for {actor.id}: {total_leads} lead(s)")
        return {
            "properties": properties,
            "leads": leads,
            "appointments": appointments,
            "engagement": engagement,
        }

    def property_stats(self, actor: Actor) -> Dict[str, Any]:
        owned = self._owned(actor)
        match = [{"$match": owned}]
        top_viewed = self.properties.find(
            owned,
            sort=[("views", -1), ("_id", 1)],
            limit=TOP_VIEWED,
            projection={"title": 1, "slug": 1, "views": 1, "images": 1, "price": 1, "address": 1},
        )
        return {
            "byType": self.properties.aggregate(match + _count_by("propertyType", sort_by_count=True)),
            "byStatus": self.properties.aggregate(match + _count_by("status")),
            "byListingType": self.properties.aggregate(match + _count_by("listingType")),
            "priceRanges": self.properties.aggregate(match + [{
                "$bucket": {
                    "groupBy": "$price",
                    "boundaries": PRICE_BOUNDARIES,
                    "default": "Other",
                    "output": {"count": {"$sum": 1}},
                },
            }]),
            "topViewed": [serialize_property(doc) for doc in top_viewed],
            "monthlyListings": self.properties.aggregate(match + _monthly("createdAt", count={"$sum": 1})),
        }

    def lead_stats(self, actor: Actor) -> Dict[str, Any]:
        scope = lead_scope(actor) or {}
        match = [{"$match": scope}]
        return {
            "byStatus": self.leads.aggregate(match + _count_by("status")),
            "bySource": self.leads.aggregate(match + _count_by("source", sort_by_count=True)),
            "monthlyLeads": self.leads.aggregate(match + _monthly("createdAt", count={"$sum": 1})),
            "avgResponseTime": self.average_response_hours(scope),
        }

    def average_response_hours(self, scope: Optional[Document] = None) -> int:
        """
        Mean hours from lead creation to its first logged call.

        Leads without a call activity are left out; 0 when none qualify.
        """
        called = self.leads.find(
            _with(scope or {}, **{"activities.type": ActivityType.CALL.value}),
            projection={"createdAt": 1, "activities": 1},
        )
        total_seconds = 0.0
        counted = 0
        for lead in called:
            first_call = next(
                (a for a in lead.get("activities") or [] if a.get("type") == ActivityType.CALL.value),
                None,
            )
            if not first_call or not first_call.get("createdAt") or not lead.get("createdAt"):
                continue
            elapsed = _as_utc(first_call["createdAt"]) - _as_utc(lead["createdAt"])
            total_seconds += elapsed.total_seconds()
            counted += 1
        return round(total_seconds / counted / 3600) if counted else 0

    def revenue(self) -> Dict[str, Any]:
        """Revenue of sold properties (admin view, no scoping)."""
        sold = [{"$match": {"status": PropertyStatus.SOLD.value}}]
        total = self.properties.aggregate(sold + [{"$group": {"_id": None, "total": {"$sum": "$price"}}}])
        return {
            "monthlyRevenue": self.properties.aggregate(
                sold + _monthly("updatedAt", revenue={"$sum": "$price"}, count={"$sum": 1})
            ),
            "totalRevenue": total[0]["total"] if total else 0,
            "byType": self.properties.aggregate(sold + [
                {"$group": {"_id": "$propertyType", "revenue": {"$sum": "$price"}, "count": {"$sum": 1}}},
                {"$sort": {"revenue": -1}},
            ]),
        }
