"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core logic for account authentication: API
token issuance and invalidation, switch-site token hand-off, and the
last-administrator invariant on site memberships. It defines its own
port interfaces for infrastructure abstraction.
"""

from .account import Account, AuthConfig, Membership, Site, build_account
from .auth import AccountAuthService
from .directory import AccountDirectory
from .exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidRequestError,
    InvalidTokenError,
    InvariantViolationError,
    NotFoundError,
    PersistenceError,
)
from .memberships import RemovalResult, SiteMembershipRegistry
from .ports import (
    AccountRepository,
    Authenticatable,
    Confirmable,
    MembershipRepository,
    PasswordVerifier,
    SiteMembershipSession,
)
from .tokens import TokenGenerator

__all__ = [
    "Account",
    "AccountAuthService",
    "AccountDirectory",
    "AccountRepository",
    "AuthConfig",
    "AuthError",
    "Authenticatable",
    "Confirmable",
    "InvalidCredentialsError",
    "InvalidRequestError",
    "InvalidTokenError",
    "InvariantViolationError",
    "Membership",
    "MembershipRepository",
    "NotFoundError",
    "PasswordVerifier",
    "PersistenceError",
    "RemovalResult",
    "Site",
    "SiteMembershipRegistry",
    "SiteMembershipSession",
    "TokenGenerator",
    "build_account",
]
