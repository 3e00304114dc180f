"""
Shared fixtures for adversarial tests.

Provides a service wired with production-cost bcrypt hashes so timing
measurements reflect real verification cost.
"""

import bcrypt
import pytest

from src.adapters.repository.memory import InMemoryAccountRepository, InMemoryMembershipRepository
from src.adapters.security.bcrypt_verifier import BcryptPasswordVerifier
from src.domain.account import Account
from src.domain.auth import AccountAuthService

ADVERSARIAL_PASSWORD = "password123"


@pytest.fixture(scope="module")
def production_hash() -> str:
    """bcrypt hash at the production cost factor (10)."""
    return bcrypt.hashpw(ADVERSARIAL_PASSWORD.encode(), bcrypt.gensalt(10)).decode()


@pytest.fixture
def production_service(production_hash: str) -> AccountAuthService:
    """Service over in-memory stores seeded with one production-hashed account."""
    accounts = InMemoryAccountRepository()
    accounts.add(
        Account(
            account_id="victim",
            email="victim@example.com",
            name="Victim",
            encrypted_password=production_hash,
        )
    )
    return AccountAuthService(
        accounts=accounts,
        memberships=InMemoryMembershipRepository(),
        password_verifier=BcryptPasswordVerifier(),
    )
