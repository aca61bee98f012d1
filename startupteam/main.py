"""
StartupTeam - Main Application

FastAPI backend with:
- MongoDB for all marketplace data
- JWT access + refresh tokens, Google / LinkedIn OAuth
- Twilio WhatsApp notifications, Cloudinary image uploads
- Static frontend served from /frontend

Run: uvicorn startupteam.main:app --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, JSONResponse

from startupteam.api.routes import api_router
from startupteam.core.config import get_settings
from startupteam.core.exceptions import StartupTeamError
from startupteam.db.mongodb import init_mongo_indexes, test_mongo_connection

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "public")

# Create FastAPI app
app = FastAPI(
    title="StartupTeam",
    description="""
    Marketplace connecting startup founders with people who want to join them.

    ## Features
    - **Authentication**: email/password with access + refresh tokens, Google / LinkedIn login
    - **Founders**: Profile, startup, open roles and the applications they receive
    - **Members**: Profile, explore and save startups, apply to roles
    - **Notifications**: WhatsApp message when an application is accepted
    - **Uploads**: Avatars and startup logos on Cloudinary
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StartupTeamError)
async def startupteam_error_handler(request: Request, exc: StartupTeamError):
    """Render every service-layer error as {success, error_code, message, details}."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routes
app.include_router(api_router, prefix="/api")

# Serve static files (for any additional assets)
if os.path.exists(FRONTEND_DIR):
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.error("MongoDB index initialization failed: %s", e)


# Serve frontend for root path
@app.get("/", tags=["Frontend"])
async def serve_frontend():
    """Serve the frontend."""
    index_path = os.path.join(FRONTEND_DIR, "index.html")
    if os.path.exists(index_path):
        return FileResponse(index_path)
    return {"status": "healthy", "app": "StartupTeam", "message": "Frontend not found. API is running."}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "oauth_providers": [p for p, on in (("google", settings.google_enabled),
                                            ("linkedin", settings.linkedin_enabled)) if on],
        "whatsapp": "enabled" if settings.twilio_enabled else "disabled",
    }
