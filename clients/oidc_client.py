"""
OpenID Connect client for the authorization code flow.

Builds authorization URLs, exchanges codes at the token endpoint and
verifies ID tokens against the provider's published keys. Calls are
blocking (requests); async callers run them in a thread pool.

Provider failures leave this module as api.errors internal errors:
- transport / rejection at the token endpoint -> OIDCRequestError
- an ID token that does not verify -> TamperedOIDCLogin
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import jwt
import requests
from pydantic import BaseModel, ValidationError

from api import errors

logger = logging.getLogger(__name__)

DISCOVERY_PATH = "/.well-known/openid-configuration"


class OIDCDiscoveryError(Exception):
    """Provider metadata could not be fetched. Fatal at startup."""


class ProviderMetadata(BaseModel):
    """The parts of the provider's discovery document we use."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str

    model_config = {"extra": "ignore"}

    @classmethod
    def discover(cls, issuer_url: str, timeout: float = 10) -> "ProviderMetadata":
        """
        Fetch and parse the provider's discovery document.

        Raises:
            OIDCDiscoveryError: On any failure
        """
        url = issuer_url.rstrip("/") + DISCOVERY_PATH
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            metadata = cls.model_validate(response.json())
        except (requests.exceptions.RequestException, ValueError, ValidationError) as e:
            logger.error(f"OIDC discovery failed for {url}: {e}")
            raise OIDCDiscoveryError(f"Discovery failed for {url}: {e}") from e

        logger.info(f"Discovered OIDC provider {metadata.issuer}")
        return metadata


@dataclass
class AuthorizationRequest:
    """A freshly built authorization URL with the secrets bound into it."""

    url: str
    state: str
    nonce: str


class OIDCClient:
    """Confidential OIDC client (authorization code flow)."""

    def __init__(
        self,
        metadata: ProviderMetadata,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: list[str] | None = None,
        timeout: float = 10,
        algorithms: tuple[str, ...] = ("RS256",),
        jwks_client: jwt.PyJWKClient | None = None,
    ):
        """
        Initialize with client credentials.

        Raises:
            ValueError: If any credential is empty
        """
        if not client_id:
            raise ValueError("client_id is required")
        if not client_secret:
            raise ValueError("client_secret is required")
        if not redirect_uri:
            raise ValueError("redirect_uri is required")

        self.metadata = metadata
        self.client_id = client_id
        self._client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes or ["openid", "email"]
        self._timeout = timeout
        self._algorithms = list(algorithms)
        self._jwks_client = jwks_client or jwt.PyJWKClient(metadata.jwks_uri)

    def authorization_url(self) -> AuthorizationRequest:
        """Build an authorization URL with a new random state and nonce."""
        state = secrets.token_urlsafe(32)
        nonce = secrets.token_urlsafe(32)
        scopes = self.scopes if "openid" in self.scopes else ["openid", *self.scopes]
        query = urlencode({
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(scopes),
            "state": state,
            "nonce": nonce,
        })
        separator = "&" if "?" in self.metadata.authorization_endpoint else "?"
        url = f"{self.metadata.authorization_endpoint}{separator}{query}"
        return AuthorizationRequest(url=url, state=state, nonce=nonce)

    def exchange_code(self, code: str) -> dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns:
            The token endpoint's JSON reply.

        Raises:
            OIDCRequestError: On transport failure, rejection or bad reply
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "client_secret": self._client_secret,
        }
        try:
            response = requests.post(
                self.metadata.token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            raise errors.token_exchange_fault(e) from e

        if response.status_code != 200:
            raise errors.token_exchange_fault(
                f"Token endpoint returned {response.status_code}: {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise errors.token_exchange_fault(e) from e
        if not isinstance(payload, dict):
            raise errors.token_exchange_fault(f"Unexpected token response: {payload!r}")
        return payload

    def verify_id_token(self, id_token: str, nonce: str) -> dict[str, Any]:
        """
        Verify signature, audience, issuer, expiry and nonce of an ID token.

        Returns:
            The verified claims.

        Raises:
            OIDCRequestError: If the provider's keys could not be fetched
            TamperedOIDCLogin: If any check fails
        """
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=self._algorithms,
                audience=self.client_id,
                issuer=self.metadata.issuer,
                options={"require": ["exp", "iat", "iss", "aud", "sub"]},
            )
        except jwt.exceptions.PyJWKClientConnectionError as e:
            raise errors.token_exchange_fault(e) from e
        except jwt.PyJWTError as e:
            raise errors.tampered_login(e) from e

        token_nonce = claims.get("nonce")
        if not isinstance(token_nonce, str) or not hmac.compare_digest(token_nonce, nonce):
            raise errors.tampered_login("ID token nonce does not match the login process")
        return claims
