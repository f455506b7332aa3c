"""
Campus Tasker Backend - Auth Route Handlers
===========================================

What:  Sign-up, sign-in, sign-out and "who am I".
How:   Thin wrappers around AuthService; tokens travel as
       `Authorization: Bearer <access_token>`.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasker.database import get_db_session
from tasker.dependencies import get_bearer_token, get_current_user
from tasker.models.user import UserProfile
from tasker.schemas.auth import SessionResponse, SignInRequest, SignUpRequest
from tasker.schemas.common import ErrorResponse
from tasker.schemas.user import ProfileResponse
from tasker.services.auth_service import auth_service
from tasker.services.profile_service import profile_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])

_NO_STORE = "no-store"


@router.post(
    "/signup",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Password too short", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account and start a session",
)
async def sign_up(
    body: SignUpRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    result = await auth_service.sign_up(
        db=db,
        email=body.email,
        password=body.password,
        name=body.name,
        phone=body.phone,
    )
    response.headers["Cache-Control"] = _NO_STORE
    return result


@router.post(
    "/signin",
    response_model=SessionResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange email and password for a session token",
)
async def sign_in(
    body: SignInRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    result = await auth_service.sign_in(db=db, email=body.email, password=body.password)
    response.headers["Cache-Control"] = _NO_STORE
    return result


@router.post(
    "/signout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke the current session token",
)
async def sign_out(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await auth_service.sign_out(db=db, token=token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={401: {"description": "Not signed in", "model": ErrorResponse}},
    summary="The signed-in user's own profile, including email",
)
async def me(
    caller: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await profile_service.to_response(db, caller, caller=caller)
