"""
Analytics endpoints (read-only aggregations for the dashboard).
"""

from fastapi import APIRouter, Depends

from app.api.deps import Actor, get_current_actor, require_roles
from app.db.database import get_db
from app.db.models import Role
from app.db.store import DocumentStore
from app.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def get_analytics_service(db: DocumentStore = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/dashboard")
def dashboard(actor: Actor = Depends(get_current_actor), service: AnalyticsService = Depends(get_analytics_service)):
    return {"success": True, "data": service.dashboard(actor)}


@router.get("/properties")
def property_analytics(
    actor: Actor = Depends(get_current_actor),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return {"success": True, "data": service.property_stats(actor)}


@router.get("/leads")
def lead_analytics(
    actor: Actor = Depends(get_current_actor),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return {"success": True, "data": service.lead_stats(actor)}


@router.get("/revenue", dependencies=[Depends(require_roles(Role.ADMIN.value))])
def revenue_analytics(service: AnalyticsService = Depends(get_analytics_service)):
    return {"success": True, "data": service.revenue()}
