"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory repositories seeded with accounts and sites
- A wired AccountAuthService
"""

from datetime import datetime, timedelta, timezone

import bcrypt
import pytest

from src.adapters.repository.memory import InMemoryAccountRepository, InMemoryMembershipRepository
from src.adapters.security.bcrypt_verifier import BcryptPasswordVerifier
from src.domain.account import Account, AuthConfig, Membership, build_account
from src.domain.auth import AccountAuthService

PASSWORD = "correct-horse"

# Low cost keeps the suite fast; verification behaves the same at any cost
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(4)).decode()


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig(default_locale="en")


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def memberships() -> InMemoryMembershipRepository:
    return InMemoryMembershipRepository()


@pytest.fixture
def service(
    accounts: InMemoryAccountRepository,
    memberships: InMemoryMembershipRepository,
    config: AuthConfig,
    clock: FakeClock,
) -> AccountAuthService:
    return AccountAuthService(
        accounts=accounts,
        memberships=memberships,
        password_verifier=BcryptPasswordVerifier(),
        config=config,
        clock=clock,
    )


@pytest.fixture
def make_account(accounts: InMemoryAccountRepository, config: AuthConfig):
    """Factory storing an account with the shared test password."""

    def _make(account_id: str, email: str | None = None, name: str = "Jane Doe") -> Account:
        account = build_account(
            account_id,
            email or f"{account_id}@example.com",
            name,
            config,
            encrypted_password=PASSWORD_HASH,
        )
        return accounts.add(account)

    return _make


@pytest.fixture
def add_membership(memberships: InMemoryMembershipRepository):
    """Factory adding a membership to the in-memory store."""

    def _add(site_id: str, account_id: str, is_admin: bool = False) -> Membership:
        return memberships.add(Membership(site_id, account_id, is_admin))

    return _add


@pytest.fixture
def password() -> str:
    """Plaintext password of accounts built by make_account."""
    return PASSWORD
