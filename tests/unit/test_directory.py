"""
Unit tests for AccountDirectory lookups.

Tests verify case-insensitive email lookup and the switch-site token
freshness window evaluated against an injected clock.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import InMemoryAccountRepository
from src.domain.directory import AccountDirectory
from src.domain.exceptions import NotFoundError


@pytest.fixture
def directory(accounts: InMemoryAccountRepository, clock) -> AccountDirectory:
    return AccountDirectory(accounts, clock=clock)


class TestFindByEmail:
    """Tests for find_by_email."""

    def test_lookup_is_case_insensitive(self, directory: AccountDirectory, make_account) -> None:
        """Mixed-case input matches the lowercase stored email."""
        make_account("a1", "jane@example.com")
        account = directory.find_by_email("JANE@Example.com")
        assert account is not None
        assert account.account_id == "a1"

    def test_input_is_normalized_before_repository(self) -> None:
        """The repository receives the stripped, lowercased email."""
        repo = Mock()
        repo.find_by_email.return_value = None
        AccountDirectory(repo).find_by_email("  USER@EXAMPLE.COM ")
        repo.find_by_email.assert_called_once_with("user@example.com")

    def test_unknown_email(self, directory: AccountDirectory) -> None:
        assert directory.find_by_email("nobody@example.com") is None


class TestFindByApiToken:
    """Tests for find_by_api_token."""

    def test_exact_match(self, directory: AccountDirectory, accounts, make_account) -> None:
        make_account("a1")
        accounts.ensure_api_token("a1", "tok-123")
        account = directory.find_by_api_token("tok-123")
        assert account is not None
        assert account.account_id == "a1"

    def test_no_partial_or_case_match(
        self, directory: AccountDirectory, accounts, make_account
    ) -> None:
        make_account("a1")
        accounts.ensure_api_token("a1", "tok-123")
        assert directory.find_by_api_token("TOK-123") is None
        assert directory.find_by_api_token("tok-12") is None

    def test_empty_token(self, directory: AccountDirectory) -> None:
        assert directory.find_by_api_token("") is None


class TestFindBySwitchSiteToken:
    """Tests for the switch-site token freshness window."""

    def test_found_within_window(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        """Token set at T is found at T + 30s with the default one-minute age."""
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        clock.advance(30)

        account = directory.find_by_switch_site_token("switch-1")
        assert account is not None
        assert account.account_id == "a1"

    def test_stale_after_window(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        """Token set at T is no longer found at T + 90s."""
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        clock.advance(90)

        assert directory.find_by_switch_site_token("switch-1", timedelta(minutes=1)) is None

    def test_boundary_is_inclusive(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        """A token exactly max_age old is still valid."""
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        clock.advance(60)

        assert directory.find_by_switch_site_token("switch-1") is not None

    def test_custom_max_age(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        """Callers can widen the window."""
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        clock.advance(90)

        assert directory.find_by_switch_site_token("switch-1", timedelta(minutes=5)) is not None

    @pytest.mark.parametrize("token", ["", None])
    def test_blank_token_never_matches(self, token) -> None:
        """Blank tokens return nothing without querying storage."""
        repo = Mock()
        assert AccountDirectory(repo).find_by_switch_site_token(token) is None
        repo.find_by_switch_site_token.assert_not_called()

    def test_wrong_token(self, directory: AccountDirectory, accounts, make_account, clock) -> None:
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        assert directory.find_by_switch_site_token("switch-2") is None


class TestFindBySwitchSiteTokenOrFail:
    """Tests for the failing variant."""

    def test_returns_account(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        assert directory.find_by_switch_site_token_or_fail("switch-1").account_id == "a1"

    def test_raises_not_found_with_token(
        self, directory: AccountDirectory, accounts, make_account, clock
    ) -> None:
        """Stale token raises NotFoundError carrying the token."""
        make_account("a1")
        accounts.update_switch_site_token("a1", "switch-1", clock())
        clock.advance(90)

        with pytest.raises(NotFoundError) as exc_info:
            directory.find_by_switch_site_token_or_fail("switch-1")
        assert exc_info.value.token == "switch-1"
