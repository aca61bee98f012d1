"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Field validation lives here; the services receive already-typed values.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    founder = "founder"
    member = "member"


class AuthProvider(str, Enum):
    local = "local"
    google = "google"
    linkedin = "linkedin"


class ApplicationStatus(str, Enum):
    pending = "pending"
    interview = "interview"
    accepted = "accepted"
    rejected = "rejected"


class RoleStatus(str, Enum):
    open = "open"
    closed = "closed"
    filled = "filled"


class Industry(str, Enum):
    saas = "SaaS"
    ai_ml = "AI/ML"
    fintech = "Fintech"
    edtech = "EdTech"
    healthtech = "HealthTech"
    ecommerce = "E-commerce"
    gaming = "Gaming"
    blockchain = "Blockchain"
    iot = "IoT"
    cybersecurity = "Cybersecurity"
    marketing = "Marketing"
    social_media = "Social Media"
    real_estate = "Real Estate"
    travel = "Travel"
    food_beverage = "Food & Beverage"
    enterprise = "Enterprise"
    developer_tools = "Developer Tools"
    other = "Other"


class FundingStage(str, Enum):
    idea = "Idea Phase"
    pre_seed = "MVP/Pre-seed"
    seed = "Seed"
    series_a = "Series A+"
    growth = "Growth Stage"


class TeamSize(str, Enum):
    xs = "1-5"
    s = "6-10"
    m = "11-20"
    l = "21-50"
    xl = "51-100"
    xxl = "100+"


class ExperienceLevel(str, Enum):
    fresher = "Fresher (0-1 Years)"
    junior = "Junior (1-2 Years)"
    mid = "Mid-Level (3-5 Years)"
    senior = "Senior (5+ Years)"
    lead = "Lead/Principal (8+ Years)"
    any = "Any"


class EmploymentType(str, Enum):
    full_time = "Full-Time"
    part_time = "Part-Time"
    remote = "Remote"
    contract = "Contract"
    internship = "Internship"


LINKEDIN_PATTERN = r"^(https?://)?(www\.)?linkedin\.com/.*$"
GITHUB_PATTERN = r"^(https?://)?(www\.)?github\.com/.*$"
URL_PATTERN = r"^https?://.*"
PHONE_PATTERN = r"^[\d\s\+\-\(\)]+$"


def _clean_skills(skills: Optional[List[str]]) -> Optional[List[str]]:
    if skills is None:
        return None
    return [s.strip() for s in skills if s and s.strip()]


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole
    phone: Optional[str] = Field(None, min_length=10, max_length=15, pattern=PHONE_PATTERN)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RefreshRequest(BaseModel):
    refresh_token: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=64, max_length=64)
    password: str = Field(..., min_length=8)

class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    auth_provider: AuthProvider = AuthProvider.local
    email_verified: bool = False
    avatar: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: Optional[UserResponse] = None

class ForgotPasswordResponse(BaseModel):
    message: str
    success: bool = True
    reset_token: Optional[str] = None  # only returned when expose_reset_token is set


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class FounderProfileUpdate(BaseModel):
    experience: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=1000)
    skills: Optional[List[str]] = None
    linkedin: Optional[str] = Field(None, pattern=LINKEDIN_PATTERN)
    portfolio: Optional[str] = Field(None, pattern=URL_PATTERN)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _clean_skills(v)

class MemberProfileUpdate(BaseModel):
    current_role: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=100)
    years_experience: Optional[int] = Field(None, ge=0, le=50)
    linkedin: Optional[str] = Field(None, pattern=LINKEDIN_PATTERN)
    github: Optional[str] = Field(None, pattern=GITHUB_PATTERN)
    skills: Optional[List[str]] = None
    bio: Optional[str] = Field(None, max_length=1000)
    portfolio: Optional[str] = Field(None, pattern=URL_PATTERN)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _clean_skills(v)

class FounderProfileResponse(BaseModel):
    id: str
    user_id: str
    experience: Optional[str] = None
    bio: Optional[str] = None
    skills: List[str] = []
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None
    completion_status: bool = False

class MemberProfileResponse(BaseModel):
    id: str
    user_id: str
    current_role: Optional[str] = None
    company: Optional[str] = None
    years_experience: Optional[int] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    skills: List[str] = []
    bio: Optional[str] = None
    portfolio: Optional[str] = None
    completion_status: bool = False


# ============================================================
# STARTUP SCHEMAS
# ============================================================

class StartupCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    industry: Industry
    stage: FundingStage
    team_size: TeamSize
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    location: Optional[str] = Field(None, max_length=100)
    tagline: Optional[str] = Field(None, max_length=150)
    description: Optional[str] = Field(None, max_length=2000)
    linkedin: Optional[str] = Field(None, pattern=LINKEDIN_PATTERN)

class StartupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    industry: Optional[Industry] = None
    stage: Optional[FundingStage] = None
    team_size: Optional[TeamSize] = None
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    location: Optional[str] = Field(None, max_length=100)
    tagline: Optional[str] = Field(None, max_length=150)
    description: Optional[str] = Field(None, max_length=2000)
    linkedin: Optional[str] = Field(None, pattern=LINKEDIN_PATTERN)
    is_active: Optional[bool] = None

class StartupResponse(BaseModel):
    id: str
    founder_id: str
    name: str
    logo: Optional[str] = None
    industry: Industry
    stage: FundingStage
    team_size: TeamSize
    website: Optional[str] = None
    location: Optional[str] = None
    tagline: Optional[str] = None
    description: Optional[str] = None
    linkedin: Optional[str] = None
    is_active: bool = True
    view_count: int = 0
    created_at: Optional[datetime] = None

class StartupListResponse(BaseModel):
    startups: List[StartupResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# ROLE SCHEMAS
# ============================================================

class RoleCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=100)
    experience_level: ExperienceLevel
    employment_type: EmploymentType
    description: str = Field(..., min_length=10, max_length=2000)
    salary_range: Optional[str] = Field(None, max_length=100)
    skills: List[str] = []

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _clean_skills(v)

class RoleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    experience_level: Optional[ExperienceLevel] = None
    employment_type: Optional[EmploymentType] = None
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    salary_range: Optional[str] = Field(None, max_length=100)
    skills: Optional[List[str]] = None
    status: Optional[RoleStatus] = None

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v):
        return _clean_skills(v)

class RoleResponse(BaseModel):
    id: str
    startup_id: str
    title: str
    experience_level: ExperienceLevel
    employment_type: EmploymentType
    description: str
    salary_range: Optional[str] = None
    skills: List[str] = []
    status: RoleStatus
    posted_date: datetime
    applications_count: int = 0

class StartupDetailResponse(BaseModel):
    startup: StartupResponse
    roles: List[RoleResponse] = []
    is_saved: bool = False


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    role_id: str
    cover_letter: Optional[str] = Field(None, max_length=1000)

class ApplicationDecision(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)

class ApplicationResponse(BaseModel):
    id: str
    member_id: str
    startup_id: str
    role_id: str
    status: ApplicationStatus
    applied_date: datetime
    updated_date: datetime
    cover_letter: Optional[str] = None
    notes: Optional[str] = None
    role_title: Optional[str] = None
    startup_name: Optional[str] = None
    # Filled in on the founder's list only
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    applicant_avatar: Optional[str] = None
    applicant_skills: List[str] = []
    applicant_current_role: Optional[str] = None
    applicant_years_experience: Optional[int] = None


# ============================================================
# DASHBOARD SCHEMAS
# ============================================================

class FounderDashboardResponse(BaseModel):
    has_startup: bool
    startup_name: Optional[str] = None
    view_count: int = 0
    total_roles: int = 0
    open_roles: int = 0
    total_applications: int = 0
    applications_by_status: Dict[str, int] = {}
    profile_complete: bool = False

class MemberDashboardResponse(BaseModel):
    total_applications: int = 0
    applications_by_status: Dict[str, int] = {}
    saved_startups: int = 0
    profile_complete: bool = False


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class UploadResponse(BaseModel):
    url: str
    message: str
    success: bool = True

class MessageResponse(BaseModel):
    message: str
    success: bool = True

