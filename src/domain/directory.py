"""
Account directory - Lookups by email, API token and switch-site token.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .account import Account
from .exceptions import NotFoundError
from .ports import AccountRepository, Clock

DEFAULT_SWITCH_SITE_TOKEN_AGE = timedelta(minutes=1)

# Storage queries use a strict "updated after" bound; widen by one tick so the
# inclusive boundary (age == max_age) is decided here.
_EPSILON = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountDirectory:
    """Read-side queries over the account repository."""

    repository: AccountRepository
    clock: Clock = utc_now

    def find_by_email(self, email: str) -> Account | None:
        return self.repository.find_by_email(email.strip().lower())

    def find_by_api_token(self, token: str) -> Account | None:
        if not token:
            return None
        return self.repository.find_by_api_token(token)

    def find_by_switch_site_token(
        self, token: str | None, max_age: timedelta = DEFAULT_SWITCH_SITE_TOKEN_AGE
    ) -> Account | None:
        """
        Find the account holding a fresh switch-site token.

        Freshness is evaluated lazily here: a token stamped at T matches
        while ``now - T <= max_age``.
        """
        if not token:
            return None

        not_before = self.clock() - max_age
        account = self.repository.find_by_switch_site_token(token, not_before - _EPSILON)
        if account is None or account.switch_site_token_updated_at is None:
            return None
        if account.switch_site_token_updated_at < not_before:
            return None
        return account

    def find_by_switch_site_token_or_fail(
        self, token: str | None, max_age: timedelta = DEFAULT_SWITCH_SITE_TOKEN_AGE
    ) -> Account:
        """
        Same as find_by_switch_site_token, raising when nothing matches.

        Raises:
            NotFoundError: With the token as context
        """
        account = self.find_by_switch_site_token(token, max_age)
        if account is None:
            raise NotFoundError(token or "")
        return account

