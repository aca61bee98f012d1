"""
Service dependencies for the routers.

Every service is built per request on top of get_db(), so tests can swap
the database (or the notifier / image store) with app.dependency_overrides.
"""

from fastapi import BackgroundTasks, Depends
from pymongo.database import Database

from startupteam.core.config import get_settings
from startupteam.core.tokens import TokenService, get_token_service
from startupteam.db.mongodb import get_db
from startupteam.services.application_service import ApplicationService
from startupteam.services.identity_service import IdentityService
from startupteam.services.notification_service import WhatsAppNotifier, get_notifier
from startupteam.services.oauth_service import OAuthLinker, build_providers
from startupteam.services.profile_service import ProfileService
from startupteam.services.startup_service import StartupService

_providers = None


def get_oauth_providers() -> list:
    """Configured OAuth providers, built once from Settings."""
    global _providers
    if _providers is None:
        _providers = build_providers(get_settings())
    return _providers


def get_identity_service(db: Database = Depends(get_db)) -> IdentityService:
    return IdentityService(db)


def get_profile_service(db: Database = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_oauth_linker(
    identity: IdentityService = Depends(get_identity_service),
    providers: list = Depends(get_oauth_providers),
    tokens: TokenService = Depends(get_token_service),
) -> OAuthLinker:
    return OAuthLinker(identity, providers, tokens)


def get_application_service(
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_db),
    notifier: WhatsAppNotifier = Depends(get_notifier),
) -> ApplicationService:
    return ApplicationService(db, notifier, schedule=background_tasks.add_task)


def get_startup_service(
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_db),
    notifier: WhatsAppNotifier = Depends(get_notifier),
) -> StartupService:
    return StartupService(db, notifier, schedule=background_tasks.add_task)

