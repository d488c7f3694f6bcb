"""Authentication service for identity provider login and JWT token management.

This module resolves identity provider access tokens to OpenID Connect
profiles over HTTP, and creates and validates the JWT access tokens this API
issues, with security logging.
"""

from datetime import datetime, timedelta, timezone

import httpx
from jose import jwt
from pydantic import ValidationError

from ..config import Settings
from ..logging_config import SecurityLoggingMixin, get_logger, log_external_api_call
from ..schemas.auth_schemas import IdentityProfile, JWTPayload

logger = get_logger("auth_service")


class AuthenticationError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class IdentityProviderError(AuthenticationError):
    """Exception for identity provider rejections and outages."""

    pass


class JWTError(AuthenticationError):
    """Exception for JWT token errors."""

    pass


class AuthService(SecurityLoggingMixin):
    """Authentication service for provider login and JWT management.

    The identity provider is only contacted at login; every later request is
    authenticated by the JWT we issue plus its server-side session.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize authentication service with configuration.

        Args:
            settings: Application settings containing provider and JWT configuration
        """
        super().__init__()
        self.userinfo_url = settings.oidc_userinfo_url
        self.provider_timeout = settings.oidc_timeout_seconds
        self.jwt_secret = settings.jwt_secret
        self.jwt_algorithm = settings.jwt_algorithm
        self.jwt_expire_minutes = settings.jwt_expire_minutes

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.jwt_expire_minutes)

    async def fetch_identity_profile(self, access_token: str) -> IdentityProfile:
        """Resolve a provider access token to the user's profile.

        Args:
            access_token: Access token issued by the identity provider

        Returns:
            IdentityProfile: Standard claims of the authenticated user

        Raises:
            IdentityProviderError: 401 if the provider rejects the token or
                returns an unusable profile, 503 if it cannot be reached
        """
        start_time = datetime.utcnow()

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    self.userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=self.provider_timeout,
                )
        except httpx.RequestError as e:
            duration = (datetime.utcnow() - start_time).total_seconds()
            log_external_api_call(
                service="identity_provider",
                endpoint=self.userinfo_url,
                method="GET",
                duration=duration,
                success=False,
                error=str(e),
            )
            raise IdentityProviderError(
                "Identity provider is unavailable", status_code=503
            ) from e

        duration = (datetime.utcnow() - start_time).total_seconds()
        log_external_api_call(
            service="identity_provider",
            endpoint=self.userinfo_url,
            method="GET",
            status_code=response.status_code,
            duration=duration,
            success=response.status_code == 200,
        )

        if response.status_code != 200:
            self.log_authentication_attempt(
                success=False, reason=f"provider returned {response.status_code}"
            )
            raise IdentityProviderError(
                "Access token was rejected by the identity provider", status_code=401
            )

        try:
            return IdentityProfile.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.log_authentication_attempt(success=False, reason="invalid profile")
            raise IdentityProviderError(
                "Identity provider returned an invalid profile", status_code=401
            ) from e

    def create_jwt_token(self, user_id: int, session_id: str, issued_at: datetime | None = None) -> str:
        """Create JWT token for an authenticated user.

        Args:
            user_id: Internal user ID
            session_id: Identifier of the backing login session
            issued_at: Issue time (aware UTC), defaults to now

        Returns:
            str: Encoded JWT token
        """
        now = issued_at or datetime.now(timezone.utc)
        expire = now + self.token_lifetime

        payload = JWTPayload(
            sub=str(user_id),
            sid=session_id,
            exp=int(expire.timestamp()),
            iat=int(now.timestamp()),
        )

        token = jwt.encode(
            payload.model_dump(), self.jwt_secret, algorithm=self.jwt_algorithm
        )

        logger.info(
            f"JWT token created for user {user_id}",
            extra={"user_id": user_id, "expires_at": expire.isoformat()},
        )

        return token

    def verify_jwt_token(self, token: str) -> JWTPayload:
        """Verify and decode JWT token.

        Args:
            token: JWT token to verify

        Returns:
            JWTPayload: Decoded token payload

        Raises:
            JWTError: If the signature, expiry or claims are invalid
        """
        try:
            payload = jwt.decode(
                token, self.jwt_secret, algorithms=[self.jwt_algorithm]
            )
            return JWTPayload(**payload)

        except jwt.ExpiredSignatureError:
            raise JWTError("Token has expired", status_code=401)
        except jwt.JWTError as e:
            raise JWTError(f"Invalid token: {str(e)}", status_code=401)
        except ValidationError as e:
            raise JWTError("Invalid token claims", status_code=401) from e

    def extract_token_from_header(self, authorization: str | None) -> str:
        """Extract JWT token from Authorization header.

        Args:
            authorization: Authorization header value

        Returns:
            str: Extracted JWT token

        Raises:
            JWTError: If the header is missing or not a Bearer credential
        """
        if not authorization:
            raise JWTError("Authorization header is missing", status_code=401)

        try:
            scheme, token = authorization.split()
        except ValueError:
            raise JWTError("Invalid authorization header format", status_code=401)

        if scheme.lower() != "bearer":
            raise JWTError(
                "Invalid authorization scheme. Expected 'Bearer'", status_code=401
            )
        return token

    def decode_authorization(self, authorization: str | None) -> tuple[int, str]:
        """Get the user ID and session ID carried by an Authorization header.

        Raises:
            JWTError: If the header or token is invalid
        """
        payload = self.verify_jwt_token(self.extract_token_from_header(authorization))

        try:
            return int(payload.sub), payload.sid
        except ValueError:
            raise JWTError("Invalid user ID in token", status_code=401)
