"""Authentication schemas for identity provider login and JWT token handling.

This module defines Pydantic schemas for the login exchange: the provider
access token sent by the client, the OpenID Connect profile returned by the
provider, the JWT payload we issue, and the login response.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.user import UserResponse


class LoginRequest(BaseModel):
    """Schema for the login request.

    The client obtains an access token from the identity provider and hands
    it to us; we resolve it to a profile through the provider's userinfo
    endpoint.
    """

    access_token: str = Field(
        ...,
        min_length=1,
        max_length=4096,
        description="Access token issued by the identity provider",
    )

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, v: str) -> str:
        """Validate access token is not blank."""
        if not v or v.isspace():
            raise ValueError("Access token cannot be empty or whitespace")
        return v.strip()


class IdentityProfile(BaseModel):
    """OpenID Connect standard claims returned by the userinfo endpoint."""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., min_length=1, max_length=255, description="Provider subject")
    email: Optional[str] = Field(default=None, max_length=255)
    given_name: Optional[str] = Field(default=None, max_length=100)
    family_name: Optional[str] = Field(default=None, max_length=100)
    picture: Optional[str] = Field(default=None, max_length=500)

    @field_validator("sub")
    @classmethod
    def validate_subject(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("Subject cannot be empty")
        return v.strip()

    @field_validator("picture")
    @classmethod
    def validate_picture_url(cls, v: Optional[str]) -> Optional[str]:
        """Drop picture URLs that are not HTTP/HTTPS."""
        if v is not None:
            v = v.strip()
            if not v.startswith(("http://", "https://")):
                return None
        return v


class JWTPayload(BaseModel):
    """Schema for JWT token payload."""

    sub: str = Field(..., description="Subject (user ID)", examples=["123"])
    sid: str = Field(..., description="Login session identifier")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")


class TokenType(str, Enum):
    """Enumeration for token types."""
    BEARER = "bearer"


class TokenResponse(BaseModel):
    """Schema for JWT token response."""

    access_token: str = Field(..., min_length=1, description="JWT access token")
    token_type: TokenType = Field(default=TokenType.BEARER, description="Token type (always 'bearer')")
    expires_in: int = Field(..., gt=0, description="Token expiration time in seconds", examples=[86400])
    user: UserResponse = Field(..., description="Authenticated user information")


class LoginStatus(str, Enum):
    """Enumeration for login status."""
    SUCCESS = "success"
    FAILED = "failed"


class LoginResponse(BaseModel):
    """Schema for login operation response."""

    status: LoginStatus = Field(..., description="Login operation status")
    message: str = Field(..., min_length=1, description="Status message", examples=["Login successful"])
    data: Optional[TokenResponse] = Field(
        default=None,
        description="Token data (only present on successful login)"
    )
