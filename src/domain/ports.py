"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Callable
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol

from .account import Account, Membership, Site

Clock = Callable[[], datetime]


class Authenticatable(Protocol):
    """Capability of an identity that can be checked against a password."""

    @property
    def email(self) -> str: ...

    @property
    def encrypted_password(self) -> str | None: ...


class Confirmable(Protocol):
    """Capability of an identity whose email address can be confirmed."""

    @property
    def confirmed_at(self) -> datetime | None: ...

    @property
    def is_confirmed(self) -> bool: ...


class PasswordVerifier(Protocol):
    """Port interface for credential verification."""

    def verify(self, account: Authenticatable, password: str) -> bool:
        """
        Check a plaintext password against the account's stored credential.

        Implementations must compare in constant time with respect to the
        password content, including when the account has no credential.
        """
        ...


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def find_by_email(self, email: str) -> Account | None:
        """Return the account whose (lowercase) email matches exactly."""
        ...

    def find_by_api_token(self, token: str) -> Account | None:
        """Return the account currently holding ``token`` as API token."""
        ...

    def find_by_switch_site_token(self, token: str, updated_after: datetime) -> Account | None:
        """
        Return the account holding ``token`` as switch-site token.

        Only matches when the token was stamped strictly after ``updated_after``.
        """
        ...

    def ensure_api_token(self, account_id: str, candidate: str) -> str:
        """
        Atomically set the API token if the account has none.

        Compare-and-set semantics: concurrent callers all observe the single
        stored value, whichever candidate won.

        Returns:
            The API token stored after the operation
        """
        ...

    def replace_api_token(self, account_id: str, current: str, new: str) -> bool:
        """
        Atomically replace the API token while it still equals ``current``.

        Returns:
            True if replaced, False if the token was no longer current
        """
        ...

    def update_switch_site_token(self, account_id: str, token: str, updated_at: datetime) -> None:
        """Store a new switch-site token and its issue time."""
        ...

    def delete(self, account_id: str) -> None:
        """Remove the account record."""
        ...


class SiteMembershipSession(Protocol):
    """
    Locked view over the sites of one account.

    Valid only inside ``MembershipRepository.lock_sites_for_account``.
    """

    def sites(self) -> list[Site]:
        """Return the locked sites with all their memberships, ordered by site_id."""
        ...

    def delete(self, membership: Membership) -> None:
        """Delete a membership within the locked unit of work."""
        ...


class MembershipRepository(Protocol):
    """Port interface for site membership persistence."""

    def sites_for_account(self, account_id: str) -> list[Site]:
        """Return every site where the account has a membership, ordered by site_id."""
        ...

    def lock_sites_for_account(self, account_id: str) -> AbstractContextManager[SiteMembershipSession]:
        """
        Lock every site the account belongs to for a check-then-delete.

        Leaving the context normally commits deletes; an exception discards them.
        """
        ...
