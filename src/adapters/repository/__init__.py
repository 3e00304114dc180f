"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountRepository, InMemoryMembershipRepository
from .postgres import PostgresAccountRepository, PostgresMembershipRepository, run_migrations

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryMembershipRepository",
    "PostgresAccountRepository",
    "PostgresMembershipRepository",
    "run_migrations",
]
