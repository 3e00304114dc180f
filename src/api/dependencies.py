"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, PostgresMembershipRepository
from src.adapters.security.bcrypt_verifier import BcryptPasswordVerifier
from src.config.settings import get_settings
from src.domain.account import Account
from src.domain.auth import AccountAuthService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


@lru_cache
def get_password_verifier() -> BcryptPasswordVerifier:
    """Get bcrypt password verifier (singleton) at the configured cost factor."""
    return BcryptPasswordVerifier(cost=get_settings().bcrypt_cost)


def get_auth_service(request: Request) -> AccountAuthService:
    """
    Create account auth service with injected dependencies.

    Wires the Postgres repositories, the password verifier and the
    domain configuration derived from settings.
    """
    pool = get_pool(request)
    return AccountAuthService(
        accounts=PostgresAccountRepository(pool),
        memberships=PostgresMembershipRepository(pool),
        password_verifier=get_password_verifier(),
        config=get_settings().auth_config(),
    )


# API token header security scheme for OpenAPI documentation
api_token_header = APIKeyHeader(name="X-Api-Token", auto_error=False)


def get_current_account(
    token: str | None = Depends(api_token_header),
    service: AccountAuthService = Depends(get_auth_service),
) -> Account:
    """
    Resolve the account presenting the ``X-Api-Token`` header.

    Raises:
        HTTPException: 401 when the header is missing or the token unknown
    """
    account = service.directory.find_by_api_token(token) if token else None
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return account
