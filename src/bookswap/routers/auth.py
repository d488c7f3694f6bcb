"""Authentication router for identity provider login and JWT sessions.

This module provides endpoints to exchange an identity provider access token
for an API token, read the current user, and log out.
"""

from fastapi import APIRouter, HTTPException, Response, status

from ..dependencies import AuthServiceDep, CurrentSession, CurrentUser, UserServiceDep
from ..exceptions import ExternalServiceException
from ..models.user import UserResponse
from ..schemas.auth_schemas import LoginRequest, LoginResponse, LoginStatus, TokenResponse
from ..services.auth_service import IdentityProviderError
from ..services.user_service import UserServiceError

router = APIRouter(
    prefix="/api/auth",
    tags=["authentication"],
    responses={
        401: {"description": "Unauthorized"},
        503: {"description": "Identity provider unavailable"},
    },
)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Log in with an identity provider token",
    description="Verify the provider access token, create or refresh the user and issue an API token",
)
async def login(
    request: LoginRequest,
    auth_service: AuthServiceDep,
    user_service: UserServiceDep,
) -> LoginResponse:
    """Log a user in.

    The provider token is resolved to a profile through the OpenID Connect
    userinfo endpoint. The user is upserted by subject, a login session is
    opened and a JWT bound to that session is returned.

    Example:
        POST /api/auth/login
        {"access_token": "provider-access-token"}

        Response:
        {
            "status": "success",
            "message": "Login successful",
            "data": {
                "access_token": "jwt_token_here",
                "token_type": "bearer",
                "expires_in": 86400,
                "user": {"id": 1, "subject": "abc", "email": "reader@example.com", ...}
            }
        }
    """
    try:
        profile = await auth_service.fetch_identity_profile(request.access_token)
    except IdentityProviderError as e:
        if e.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
            raise ExternalServiceException(e.message, service="identity_provider") from e
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    try:
        user = await user_service.upsert_from_profile(profile)
        session_id = user_service.open_session(user.id, auth_service.token_lifetime)
    except UserServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    token = auth_service.create_jwt_token(user.id, session_id)
    auth_service.log_authentication_attempt(user_id=user.id, subject=user.subject)

    return LoginResponse(
        status=LoginStatus.SUCCESS,
        message="Login successful",
        data=TokenResponse(
            access_token=token,
            expires_in=int(auth_service.token_lifetime.total_seconds()),
            user=user,
        ),
    )


@router.get(
    "/user",
    response_model=UserResponse,
    summary="Current user",
)
async def get_authenticated_user(current_user: CurrentUser) -> UserResponse:
    return current_user


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
    description="End the login session behind the presented token",
)
async def logout(current_session: CurrentSession, user_service: UserServiceDep) -> Response:
    _, session_id = current_session
    try:
        user_service.end_session(session_id)
    except UserServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
