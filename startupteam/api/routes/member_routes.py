"""
Member Routes (member accounts only)

GET /member/profile - Get own profile
PUT /member/profile - Update profile
GET /member/startups - Explore startups (filter + search + paging)
GET /member/startups/saved - Saved startups
GET /member/startups/{id} - Startup details with open roles
POST /member/startups/{id}/save - Save startup
DELETE /member/startups/{id}/save - Unsave startup
POST /member/applications - Apply to an open role
GET /member/applications - My applications
DELETE /member/applications/{id} - Cancel a pending application
GET /member/dashboard - Stats for the dashboard
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from startupteam.api.deps import get_application_service, get_profile_service, get_startup_service
from startupteam.core.auth import get_current_member
from startupteam.services.application_service import ApplicationService
from startupteam.services.profile_service import ProfileService
from startupteam.services.startup_service import StartupService
from startupteam.schemas.schemas import (
    MemberProfileUpdate, MemberProfileResponse, StartupResponse, StartupListResponse,
    StartupDetailResponse, ApplicationCreate, ApplicationResponse, ApplicationStatus,
    Industry, FundingStage, MemberDashboardResponse, MessageResponse
)

router = APIRouter(prefix="/member", tags=["Member"])


@router.get("/profile", response_model=MemberProfileResponse)
async def get_profile(
    member: dict = Depends(get_current_member),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Get current member's profile."""
    return MemberProfileResponse(**profiles.get_profile(member["id"], "member"))


@router.put("/profile", response_model=MemberProfileResponse)
async def update_profile(
    data: MemberProfileUpdate,
    member: dict = Depends(get_current_member),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Update profile. Only provided fields change; completion is recomputed."""
    updated = profiles.update_profile(member["id"], "member", data.model_dump(exclude_unset=True))
    return MemberProfileResponse(**updated)


@router.get("/startups", response_model=StartupListResponse)
async def explore_startups(
    industry: Optional[Industry] = Query(None),
    stage: Optional[FundingStage] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    """Browse active startups, newest first."""
    items, total = startups.explore_startups(
        industry=industry.value if industry else None,
        stage=stage.value if stage else None,
        search=search,
        page=page,
        page_size=page_size,
    )
    return StartupListResponse(
        startups=[StartupResponse(**s) for s in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/startups/saved", response_model=List[StartupResponse])
async def get_saved_startups(
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    """Saved startups, most recently saved first."""
    return [StartupResponse(**s) for s in startups.list_saved(member["id"])]


@router.get("/startups/{startup_id}", response_model=StartupDetailResponse)
async def get_startup_details(
    startup_id: str,
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    """Startup details with its open roles. Counts as a view."""
    return StartupDetailResponse(**startups.get_startup_details(startup_id, member["id"]))


@router.post("/startups/{startup_id}/save", response_model=MessageResponse, status_code=201)
async def save_startup(
    startup_id: str,
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    startups.save_startup(member["id"], startup_id)
    return MessageResponse(message="Startup saved")


@router.delete("/startups/{startup_id}/save", response_model=MessageResponse)
async def unsave_startup(
    startup_id: str,
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    startups.unsave_startup(member["id"], startup_id)
    return MessageResponse(message="Startup removed from saved")


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
async def apply_to_role(
    data: ApplicationCreate,
    member: dict = Depends(get_current_member),
    applications: ApplicationService = Depends(get_application_service),
):
    """Apply to an open role. A member can apply to the same role only once."""
    return ApplicationResponse(**applications.apply(member["id"], data.role_id, data.cover_letter))


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_my_applications(
    status: Optional[ApplicationStatus] = Query(None),
    member: dict = Depends(get_current_member),
    applications: ApplicationService = Depends(get_application_service),
):
    """My applications, newest first."""
    results = applications.list_for_member(member["id"], status.value if status else None)
    return [ApplicationResponse(**a) for a in results]


@router.delete("/applications/{application_id}", response_model=MessageResponse)
async def cancel_application(
    application_id: str,
    member: dict = Depends(get_current_member),
    applications: ApplicationService = Depends(get_application_service),
):
    """Cancel an application while it is still pending."""
    applications.cancel(application_id, member["id"])
    return MessageResponse(message="Application cancelled")


@router.get("/dashboard", response_model=MemberDashboardResponse)
async def get_dashboard(
    member: dict = Depends(get_current_member),
    startups: StartupService = Depends(get_startup_service),
):
    return MemberDashboardResponse(**startups.member_dashboard(member["id"]))
