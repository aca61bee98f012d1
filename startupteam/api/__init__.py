"""
API module - FastAPI routers, endpoint definitions and service dependencies.

Usage:
    from startupteam.api.routes import api_router
    app.include_router(api_router, prefix="/api")
"""
