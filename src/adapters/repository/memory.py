"""
In-memory repository adapters - Implement the repository protocols.

Thread-safe stores for tests and local wiring without a database. Token
updates are serialized by one store lock; membership removal takes one
lock per site, acquired in site_id order.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import replace
from datetime import datetime

from src.domain.account import Account, Membership, Site
from src.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol over a dict.

    Returned accounts are copies; callers never alias stored records.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._accounts: dict[str, Account] = {}

    def add(self, account: Account) -> Account:
        with self._lock:
            if any(a.email == account.email for a in self._accounts.values()):
                raise ValueError(f"email already taken: {account.email}")
            self._accounts[account.account_id] = replace(account)
        return account

    def get(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return replace(account) if account else None

    def find_by_email(self, email: str) -> Account | None:
        return self._find(lambda a: a.email == email)

    def find_by_api_token(self, token: str) -> Account | None:
        return self._find(lambda a: a.api_token is not None and a.api_token == token)

    def find_by_switch_site_token(self, token: str, updated_after: datetime) -> Account | None:
        return self._find(
            lambda a: a.switch_site_token == token
            and a.switch_site_token_updated_at is not None
            and a.switch_site_token_updated_at > updated_after
        )

    def ensure_api_token(self, account_id: str, candidate: str) -> str:
        with self._lock:
            account = self._stored(account_id)
            if account.api_token is None:
                account.api_token = candidate
            return account.api_token

    def replace_api_token(self, account_id: str, current: str, new: str) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.api_token != current:
                return False
            account.api_token = new
            return True

    def update_switch_site_token(self, account_id: str, token: str, updated_at: datetime) -> None:
        with self._lock:
            account = self._stored(account_id)
            account.switch_site_token = token
            account.switch_site_token_updated_at = updated_at

    def delete(self, account_id: str) -> None:
        with self._lock:
            self._accounts.pop(account_id, None)

    def _stored(self, account_id: str) -> Account:
        """Return the stored record; caller must hold the lock."""
        account = self._accounts.get(account_id)
        if account is None:
            raise PersistenceError(f"Account not found: {account_id}")
        return account

    def _find(self, predicate) -> Account | None:
        with self._lock:
            for account in self._accounts.values():
                if predicate(account):
                    return replace(account)
        return None


class _LockedSites:
    """SiteMembershipSession buffering deletes until the lock is released."""

    def __init__(self, sites: list[Site]) -> None:
        self._sites = sites
        self.deleted: list[Membership] = []

    def sites(self) -> list[Site]:
        return [Site(s.site_id, list(s.memberships)) for s in self._sites]

    def delete(self, membership: Membership) -> None:
        self.deleted.append(membership)


class InMemoryMembershipRepository:
    """Implements MembershipRepository protocol with per-site locks."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._site_locks: dict[str, threading.Lock] = {}
        self._memberships: dict[str, list[Membership]] = {}

    def add(self, membership: Membership) -> Membership:
        with self._guard:
            self._site_locks.setdefault(membership.site_id, threading.Lock())
            self._memberships.setdefault(membership.site_id, []).append(membership)
        return membership

    def memberships_of(self, site_id: str) -> list[Membership]:
        with self._guard:
            return list(self._memberships.get(site_id, []))

    def sites_for_account(self, account_id: str) -> list[Site]:
        with self._guard:
            return self._snapshot(self._site_ids_for(account_id))

    @contextmanager
    def lock_sites_for_account(self, account_id: str) -> Iterator[_LockedSites]:
        with self._guard:
            site_ids = self._site_ids_for(account_id)

        with ExitStack() as stack:
            while True:
                with self._guard:
                    locks = [self._site_locks[site_id] for site_id in site_ids]
                for lock in locks:
                    stack.enter_context(lock)

                with self._guard:
                    current = self._site_ids_for(account_id)
                    if set(current) <= set(site_ids):
                        session = _LockedSites(self._snapshot(current))
                        break
                # Joined a site before its lock was held; relock the wider set
                stack.close()
                logger.debug("Site set of account %s grew while locking, retrying", account_id)
                site_ids = current

            yield session

            with self._guard:
                for membership in session.deleted:
                    self._memberships[membership.site_id].remove(membership)
            logger.debug("Committed %d membership delete(s)", len(session.deleted))

    def _site_ids_for(self, account_id: str) -> list[str]:
        return sorted(
            site_id
            for site_id, memberships in self._memberships.items()
            if any(m.account_id == account_id for m in memberships)
        )

    def _snapshot(self, site_ids: list[str]) -> list[Site]:
        return [Site(site_id, list(self._memberships[site_id])) for site_id in site_ids]
