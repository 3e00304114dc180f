"""
API v1 routes.

Defines REST endpoints for API tokens, switch-site tokens and account removal.
Domain errors are translated into HTTP responses here.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.api.dependencies import get_auth_service, get_current_account
from src.api.models import AccountResponse, ErrorResponse, TokenRequest, TokenResponse
from src.domain.account import Account
from src.domain.auth import AccountAuthService
from src.domain.exceptions import (
    InvalidCredentialsError,
    InvalidRequestError,
    InvalidTokenError,
    NotFoundError,
)

router = APIRouter(tags=["v1"])


@router.post(
    "/tokens",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing email or password"},
        401: {"model": ErrorResponse, "description": "Invalid email or password"},
    },
    summary="Create an API token",
    description="Exchange account credentials for the account's API token. "
    "The same token is returned until it is invalidated.",
)
async def create_token(
    request_data: TokenRequest,
    service: AccountAuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create (or fetch) the API token of an account.

    - **email**: Account email
    - **password**: Account password
    """
    try:
        token = service.create_api_token(request_data.email, request_data.password)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    except InvalidCredentialsError:
        # Same response for unknown email and wrong password
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        ) from None
    return TokenResponse(token=token)


@router.delete(
    "/tokens/{token}",
    response_model=TokenResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown token"}},
    summary="Invalidate an API token",
)
async def invalidate_token(
    token: str,
    service: AccountAuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Invalidate the token; the response echoes the invalidated value."""
    try:
        invalidated = service.invalidate_api_token(token)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid token") from None
    return TokenResponse(token=invalidated)


@router.post(
    "/switch-site-token",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={401: {"model": ErrorResponse, "description": "Invalid token"}},
    summary="Issue a switch-site token",
    description="Issue a short-lived token authorizing a session hand-off to another site.",
)
async def issue_switch_site_token(
    account: Account = Depends(get_current_account),
    service: AccountAuthService = Depends(get_auth_service),
) -> TokenResponse:
    return TokenResponse(token=service.reset_switch_site_token(account))


@router.get(
    "/switch-site-token/{token}",
    response_model=AccountResponse,
    responses={404: {"model": ErrorResponse, "description": "Unknown or stale token"}},
    summary="Resolve a switch-site token",
)
async def resolve_switch_site_token(
    token: str,
    service: AccountAuthService = Depends(get_auth_service),
) -> AccountResponse:
    try:
        account = service.find_account_by_switch_site_token_or_fail(token)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid token") from None
    return AccountResponse.from_account(account)


@router.delete(
    "/accounts/me",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid token"},
        409: {"model": ErrorResponse, "description": "Last administrator of a site"},
    },
    summary="Delete the current account",
    description="Remove the account and its site memberships. Refused while the "
    "account is the only administrator of any site.",
)
async def delete_account(
    account: Account = Depends(get_current_account),
    service: AccountAuthService = Depends(get_auth_service),
) -> Response:
    result = service.destroy_account(account)
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(result.error))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
