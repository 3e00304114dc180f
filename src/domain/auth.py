"""
Account authentication service - API tokens and switch-site tokens.

Token lifecycles
================

API token (one per account):
    absent -> active             (first create_api_token)
    active -> active (new value) (invalidate_api_token)

There is no way back to "absent": invalidation replaces the value with a
fresh unguessable one in a single atomic step, so there is never a window
without an active token.

Switch-site token:
    absent/stale -> fresh        (reset_switch_site_token)
    fresh -> stale               (implicitly, once older than max_age)

Staleness is evaluated lazily at lookup time; nothing expires tokens in
the background.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from .account import Account, AuthConfig
from .directory import AccountDirectory, utc_now
from .exceptions import InvalidCredentialsError, InvalidRequestError, InvalidTokenError
from .memberships import RemovalResult, SiteMembershipRegistry
from .ports import AccountRepository, Clock, MembershipRepository, PasswordVerifier
from .tokens import TokenGenerator

logger = logging.getLogger(__name__)


@dataclass
class AccountAuthService:
    """
    Domain service for account authentication.

    Orchestrates token issuance and invalidation, switch-site token
    hand-off, and invariant-protected account removal.
    """

    accounts: AccountRepository
    memberships: MembershipRepository
    password_verifier: PasswordVerifier
    config: AuthConfig = field(default_factory=AuthConfig)
    clock: Clock = utc_now
    token_generator: TokenGenerator | None = None

    def __post_init__(self) -> None:
        if self.token_generator is None:
            self.token_generator = TokenGenerator(self.config.token_bytes)
        self.directory = AccountDirectory(self.accounts, clock=self.clock)
        self.registry = SiteMembershipRegistry(self.memberships)

    def create_api_token(self, email: str, password: str) -> str:
        """
        Return the API token of the account matching the credentials.

        The token is created on first use and reused afterwards. Whether an
        administrator role should be required here is undecided.

        Args:
            email: Account email (normalized before lookup)
            password: Plaintext password

        Returns:
            The account's API token

        Raises:
            InvalidRequestError: If email or password is blank
            InvalidCredentialsError: If the email is unknown or the password wrong
        """
        if not email or not email.strip() or not password:
            raise InvalidRequestError("The request must contain the user email and password.")

        account = self.directory.find_by_email(email)
        if account is None:
            # Run the verifier anyway so unknown emails cost the same as wrong passwords
            self.password_verifier.verify(_UnknownAccount(), password)
            logger.warning("API token refused: unknown email")
            raise InvalidCredentialsError()

        token = self._ensure_api_token(account)

        if not self.password_verifier.verify(account, password):
            logger.warning("API token refused: bad password for account %s", account.account_id)
            raise InvalidCredentialsError()

        return token

    def invalidate_api_token(self, token: str) -> str:
        """
        Replace the API token with a fresh one, logging the caller out.

        Returns:
            The token that was passed in, not the replacement

        Raises:
            InvalidTokenError: If no account holds the token
        """
        account = self.directory.find_by_api_token(token)
        if account is None:
            raise InvalidTokenError(token)

        replaced = self.accounts.replace_api_token(
            account.account_id, token, self.token_generator.generate()
        )
        if not replaced:
            # Another caller invalidated it first
            raise InvalidTokenError(token)

        logger.info("API token invalidated for account %s", account.account_id)
        return token

    def reset_switch_site_token(self, account: Account) -> str:
        """Issue a fresh switch-site token for ``account`` and persist it."""
        token = self.token_generator.generate()
        now = self.clock()
        self.accounts.update_switch_site_token(account.account_id, token, now)

        account.switch_site_token = token
        account.switch_site_token_updated_at = now
        logger.info("Switch site token reset for account %s", account.account_id)
        return token

    def find_account_by_switch_site_token(
        self, token: str | None, max_age: timedelta | None = None
    ) -> Account | None:
        return self.directory.find_by_switch_site_token(token, self._max_age(max_age))

    def find_account_by_switch_site_token_or_fail(
        self, token: str | None, max_age: timedelta | None = None
    ) -> Account:
        return self.directory.find_by_switch_site_token_or_fail(token, self._max_age(max_age))

    def remove_account(self, account: Account) -> RemovalResult:
        """Remove the account's memberships; must succeed before the account is destroyed."""
        return self.registry.remove_account(account)

    def destroy_account(self, account: Account) -> RemovalResult:
        """
        Remove memberships, then delete the account itself.

        The account is left untouched when the removal is refused.
        """
        result = self.remove_account(account)
        if result.ok:
            self.accounts.delete(account.account_id)
            logger.info("Account %s destroyed", account.account_id)
        return result

    def _ensure_api_token(self, account: Account) -> str:
        if account.api_token:
            return account.api_token
        token = self.accounts.ensure_api_token(account.account_id, self.token_generator.generate())
        account.api_token = token
        return token

    def _max_age(self, max_age: timedelta | None) -> timedelta:
        return max_age if max_age is not None else self.config.switch_site_token_max_age


@dataclass(frozen=True)
class _UnknownAccount:
    email: str = ""
    encrypted_password: str | None = None
