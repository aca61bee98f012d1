"""
Founder Routes (founder accounts only)

GET /founder/profile - Get own profile
PUT /founder/profile - Update profile
POST /founder/startup - Create startup (one per founder)
GET /founder/startup - Get own startup
PUT /founder/startup/{id} - Update startup
POST /founder/roles - Post a role
GET /founder/roles - List own roles
PUT /founder/roles/{id} - Update role
DELETE /founder/roles/{id} - Delete role (and its applications)
GET /founder/applications - Applications received
PUT /founder/applications/{id}/interview - Move to interview
PUT /founder/applications/{id}/accept - Accept (member gets a WhatsApp message)
PUT /founder/applications/{id}/reject - Reject
GET /founder/dashboard - Stats for the dashboard
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from startupteam.api.deps import get_application_service, get_profile_service, get_startup_service
from startupteam.core.auth import get_current_founder
from startupteam.services.application_service import ApplicationService
from startupteam.services.profile_service import ProfileService
from startupteam.services.startup_service import StartupService
from startupteam.schemas.schemas import (
    FounderProfileUpdate, FounderProfileResponse, StartupCreate, StartupUpdate, StartupResponse,
    RoleCreate, RoleUpdate, RoleResponse, ApplicationDecision, ApplicationResponse,
    ApplicationStatus, RoleStatus, FounderDashboardResponse, MessageResponse
)

router = APIRouter(prefix="/founder", tags=["Founder"])


@router.get("/profile", response_model=FounderProfileResponse)
async def get_profile(
    founder: dict = Depends(get_current_founder),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Get current founder's profile."""
    return FounderProfileResponse(**profiles.get_profile(founder["id"], "founder"))


@router.put("/profile", response_model=FounderProfileResponse)
async def update_profile(
    data: FounderProfileUpdate,
    founder: dict = Depends(get_current_founder),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Update profile. Only provided fields change; completion is recomputed."""
    updated = profiles.update_profile(founder["id"], "founder", data.model_dump(exclude_unset=True))
    return FounderProfileResponse(**updated)


@router.post("/startup", response_model=StartupResponse, status_code=201)
async def create_startup(
    data: StartupCreate,
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Create the founder's startup. A founder can own only one."""
    return StartupResponse(**startups.create_startup(founder["id"], data.model_dump(mode="json")))


@router.get("/startup", response_model=StartupResponse)
async def get_startup(
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Get the founder's startup."""
    return StartupResponse(**startups.get_startup_for_founder(founder["id"]))


@router.put("/startup/{startup_id}", response_model=StartupResponse)
async def update_startup(
    startup_id: str,
    data: StartupUpdate,
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Update the founder's startup."""
    changes = data.model_dump(exclude_unset=True, mode="json")
    return StartupResponse(**startups.update_startup(startup_id, founder["id"], changes))


@router.post("/roles", response_model=RoleResponse, status_code=201)
async def create_role(
    data: RoleCreate,
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Post a new open role. Members with matching skills get an alert."""
    return RoleResponse(**startups.create_role(founder["id"], data.model_dump(mode="json")))


@router.get("/roles", response_model=List[RoleResponse])
async def get_roles(
    status: Optional[RoleStatus] = Query(None),
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """List roles of the founder's startup, newest first."""
    roles = startups.list_roles_for_founder(founder["id"], status.value if status else None)
    return [RoleResponse(**r) for r in roles]


@router.put("/roles/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    data: RoleUpdate,
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Update a role (title, description, status, ...)."""
    changes = data.model_dump(exclude_unset=True, mode="json")
    return RoleResponse(**startups.update_role(role_id, founder["id"], changes))


@router.delete("/roles/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: str,
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Delete a role. Cascades to its applications."""
    startups.delete_role(role_id, founder["id"])
    return MessageResponse(message="Role deleted successfully")


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_applications(
    role_id: Optional[str] = Query(None),
    status: Optional[ApplicationStatus] = Query(None),
    founder: dict = Depends(get_current_founder),
    applications: ApplicationService = Depends(get_application_service),
):
    """Applications received, newest first."""
    results = applications.list_for_founder(founder["id"], role_id, status.value if status else None)
    return [ApplicationResponse(**a) for a in results]


@router.put("/applications/{application_id}/interview", response_model=ApplicationResponse)
async def interview_application(
    application_id: str,
    decision: ApplicationDecision,
    founder: dict = Depends(get_current_founder),
    applications: ApplicationService = Depends(get_application_service),
):
    """Move a pending application to the interview stage."""
    return ApplicationResponse(**applications.move_to_interview(application_id, founder["id"], decision.notes))


@router.put("/applications/{application_id}/accept", response_model=ApplicationResponse)
async def accept_application(
    application_id: str,
    decision: ApplicationDecision,
    founder: dict = Depends(get_current_founder),
    applications: ApplicationService = Depends(get_application_service),
):
    """Accept an application. The WhatsApp notification is best-effort."""
    return ApplicationResponse(**applications.accept(application_id, founder["id"], decision.notes))


@router.put("/applications/{application_id}/reject", response_model=ApplicationResponse)
async def reject_application(
    application_id: str,
    decision: ApplicationDecision,
    founder: dict = Depends(get_current_founder),
    applications: ApplicationService = Depends(get_application_service),
):
    """Reject an application."""
    return ApplicationResponse(**applications.reject(application_id, founder["id"], decision.notes))


@router.get("/dashboard", response_model=FounderDashboardResponse)
async def get_dashboard(
    founder: dict = Depends(get_current_founder),
    startups: StartupService = Depends(get_startup_service),
):
    """Startup views, roles and applications by status."""
    return FounderDashboardResponse(**startups.founder_dashboard(founder["id"]))
