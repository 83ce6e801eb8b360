"""
OAuth Provider Client

Code-for-profile exchange with Google's OAuth 2.0 endpoints over httpx.
The provider is a collaborator of the session login flow: the application
only generates and verifies the ``state`` value and turns the returned
profile into a session.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from shortener.core.exceptions import OAuthError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
)


@dataclass(frozen=True)
class OAuthUserInfo:
    email: str
    name: str
    picture: Optional[str] = None


class OAuthProvider(ABC):

    @abstractmethod
    def authorization_url(self, state: str) -> str:
        """URL the browser is sent to for consent."""

    @abstractmethod
    async def fetch_user_info(self, code: str) -> OAuthUserInfo:
        """
        Exchange an authorization code for the user's profile.

        Raises:
            OAuthError: If the exchange or the profile request fails
        """


class GoogleOAuthProvider(OAuthProvider):

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "access_type": "offline",
        })
        return f"{GOOGLE_AUTH_URL}?{query}"

    async def fetch_user_info(self, code: str) -> OAuthUserInfo:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                token_response = await client.post(GOOGLE_TOKEN_URL, data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                })
                token_response.raise_for_status()
                access_token = token_response.json()["access_token"]

                profile_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                profile_response.raise_for_status()
                profile = profile_response.json()
            except (httpx.HTTPError, KeyError, ValueError) as e:
                logger.warning(f"OAuth code exchange failed: {e}")
                raise OAuthError("Failed to exchange code for token") from e

        if not profile.get("email"):
            raise OAuthError("OAuth profile has no email address")

        return OAuthUserInfo(
            email=profile["email"],
            name=profile.get("name") or profile["email"],
            picture=profile.get("picture"),
        )
