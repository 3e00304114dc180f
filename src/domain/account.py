"""
Account aggregate and related records.

Accounts are created by an external registration flow; this core only
mutates their token fields and removes their memberships.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .exceptions import InvalidRequestError


@dataclass(frozen=True)
class AuthConfig:
    """
    Explicit configuration handed to the domain services at construction.

    Built from application settings by the wiring layer; the domain never
    reads process-wide configuration.
    """

    default_locale: str = "en"
    switch_site_token_max_age: timedelta = timedelta(minutes=1)
    token_bytes: int = 8

    def __post_init__(self) -> None:
        if self.token_bytes < 8:
            raise ValueError("token_bytes must be at least 8")


@dataclass
class Account:
    """
    Identity record satisfying the Authenticatable and Confirmable ports.

    ``encrypted_password`` is opaque to this core and only handed to the
    PasswordVerifier.
    """

    account_id: str
    email: str
    name: str
    locale: str = "en"
    encrypted_password: str | None = None
    confirmed_at: datetime | None = None
    api_token: str | None = None
    switch_site_token: str | None = None
    switch_site_token_updated_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None


@dataclass(frozen=True)
class Membership:
    """Join record linking an account to a site."""

    site_id: str
    account_id: str
    is_admin: bool = False


@dataclass
class Site:
    """A site and the memberships it owns."""

    site_id: str
    memberships: list[Membership] = field(default_factory=list)

    def admin_memberships(self) -> list[Membership]:
        return [m for m in self.memberships if m.is_admin]

    def membership_for(self, account_id: str) -> Membership | None:
        for membership in self.memberships:
            if membership.account_id == account_id:
                return membership
        return None


def build_account(
    account_id: str,
    email: str,
    name: str,
    config: AuthConfig,
    *,
    locale: str | None = None,
    encrypted_password: str | None = None,
    confirmed_at: datetime | None = None,
) -> Account:
    """
    Build a valid Account: email normalized, name required, locale defaulted.

    Raises:
        InvalidRequestError: If email or name is blank
    """
    if not email or not email.strip():
        raise InvalidRequestError("An account requires an email.")
    if not name or not name.strip():
        raise InvalidRequestError("An account requires a name.")

    return Account(
        account_id=account_id,
        email=email.strip().lower(),
        name=name,
        locale=locale or config.default_locale,
        encrypted_password=encrypted_password,
        confirmed_at=confirmed_at,
    )
