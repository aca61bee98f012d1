"""
OAuth Service - Google / LinkedIn login and account linking.

Flow:
1. /auth/oauth/{provider} redirects to provider.authorization_url(state)
2. the provider calls back with ?code=...
3. provider.exchange_assertion(code) -> ExternalIdentity
4. OAuthLinker.link(identity) -> existing or new user
5. TokenService mints the access/refresh pair

Linking policy (keep exactly as is, the first provider "wins" the slot):
- look up by (provider, provider_id) FIRST, then by email
- found: attach provider only if the user has no provider_id yet,
  mark email verified, update last_login
- not found: create a member account plus its MemberProfile

Providers are passed in explicitly; build_providers() assembles the list
from Settings once at startup.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable
from urllib.parse import urlencode

import requests
from pymongo.errors import PyMongoError

from startupteam.core.config import Settings
from startupteam.core.exceptions import AuthProviderError, NotFound
from startupteam.core.tokens import TokenPair, TokenService
from startupteam.services.identity_service import IdentityService, public_user

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class ExternalIdentity:
    """Identity asserted by an OAuth provider after a successful exchange."""
    provider: str
    provider_id: str
    email: str
    name: str
    avatar: Optional[str] = None


@runtime_checkable
class OAuthProvider(Protocol):
    """What the linker needs from a provider."""

    name: str

    def authorization_url(self, state: str) -> str:
        ...

    def exchange_assertion(self, code: str) -> ExternalIdentity:
        ...


# ============================================================
# OPENID CONNECT PROVIDERS
# ============================================================

class OpenIDConnectProvider:
    """
    Authorization-code flow against an OpenID Connect userinfo endpoint.
    Subclasses only set the endpoints and scope.
    """

    name: str = ""
    authorize_endpoint: str = ""
    token_endpoint: str = ""
    userinfo_endpoint: str = ""
    scope: str = "openid profile email"

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str, session: requests.Session = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.session = session or requests.Session()

    def authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_endpoint}?{urlencode(params)}"

    def exchange_assertion(self, code: str) -> ExternalIdentity:
        """Trade the callback code for the user's identity."""
        try:
            token_response = self.session.post(
                self.token_endpoint,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                },
                headers={"Accept": "application/json"},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            token_response.raise_for_status()
            access_token = token_response.json()["access_token"]

            info_response = self.session.get(
                self.userinfo_endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            info_response.raise_for_status()
            info = info_response.json()
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("%s token exchange failed: %s", self.name, e)
            raise AuthProviderError(f"{self.name} authentication failed")

        return self._identity_from_userinfo(info)

    def _identity_from_userinfo(self, info: dict) -> ExternalIdentity:
        if not info.get("sub") or not info.get("email"):
            raise AuthProviderError(f"{self.name} did not return an email address")
        return ExternalIdentity(
            provider=self.name,
            provider_id=str(info["sub"]),
            email=info["email"],
            name=info.get("name") or info["email"].split("@")[0],
            avatar=info.get("picture"),
        )


class GoogleProvider(OpenIDConnectProvider):
    name = "google"
    authorize_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    userinfo_endpoint = "https://openidconnect.googleapis.com/v1/userinfo"


class LinkedInProvider(OpenIDConnectProvider):
    name = "linkedin"
    authorize_endpoint = "https://www.linkedin.com/oauth/v2/authorization"
    token_endpoint = "https://www.linkedin.com/oauth/v2/accessToken"
    userinfo_endpoint = "https://api.linkedin.com/v2/userinfo"


def build_providers(settings: Settings) -> List[OAuthProvider]:
    """Providers whose credentials are configured."""
    providers: List[OAuthProvider] = []
    if settings.google_enabled:
        providers.append(GoogleProvider(
            settings.google_client_id, settings.google_client_secret, settings.google_callback_url
        ))
    if settings.linkedin_enabled:
        providers.append(LinkedInProvider(
            settings.linkedin_client_id, settings.linkedin_client_secret, settings.linkedin_callback_url
        ))
    return providers


# ============================================================
# ACCOUNT LINKING
# ============================================================

class OAuthLinker:
    """
    Reconciles an ExternalIdentity against the users collection.
    """

    def __init__(self, identity_store: IdentityService, providers: Iterable[OAuthProvider], tokens: TokenService):
        self.identity_store = identity_store
        self.providers: Dict[str, OAuthProvider] = {p.name: p for p in providers}
        self.tokens = tokens

    def get_provider(self, name: str) -> OAuthProvider:
        provider = self.providers.get(name)
        if provider is None:
            raise NotFound(f"OAuth provider '{name}' is not configured")
        return provider

    def link(self, identity: ExternalIdentity) -> dict:
        """
        Find-or-create the user for this identity.

        Any storage failure aborts the whole flow as AuthProviderError.
        Nothing is retried: a retry would need a fresh provider assertion.
        """
        try:
            user = self.identity_store.find_by_provider(identity.provider, identity.provider_id)
            if user is None:
                user = self.identity_store.find_by_email(identity.email)

            if user is not None:
                changes = {"email_verified": True, "last_login": datetime.utcnow()}
                if not user.get("provider_id"):
                    changes["provider_id"] = identity.provider_id
                    changes["auth_provider"] = identity.provider
                self.identity_store.save(user["_id"], changes)
                user.update(changes)
                logger.info(
                    "OAuth login linked user_id=%s provider=%s",
                    user["_id"], identity.provider
                )
                return public_user(user)

            doc = self.identity_store.create_user({
                "name": identity.name,
                "email": identity.email,
                "avatar": identity.avatar,
                "auth_provider": identity.provider,
                "provider_id": identity.provider_id,
                "email_verified": True,
                "role": "member",
                "last_login": datetime.utcnow(),
            })
        except PyMongoError as e:
            logger.error("OAuth account reconciliation failed for %s: %s", identity.provider, e)
            raise AuthProviderError("Could not sign in with this account, please try again")

        logger.info("OAuth user created user_id=%s provider=%s", doc["_id"], identity.provider)
        return public_user(doc)

    def login(self, provider_name: str, code: str) -> Tuple[dict, TokenPair]:
        """Callback handler: exchange code, link account, mint tokens."""
        provider = self.get_provider(provider_name)
        identity = provider.exchange_assertion(code)
        user = self.link(identity)
        return user, self.tokens.issue_token_pair(user["id"])
