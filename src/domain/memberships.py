"""
Site membership registry - Last-admin invariant enforcement.

Every site must keep at least one administrator membership. Removing an
account's memberships is all-or-nothing: all sites are locked and checked
before any membership is deleted, and one violation aborts the whole call.
"""

import logging
from dataclasses import dataclass, field

from .account import Account, Membership, Site
from .exceptions import InvariantViolationError
from .ports import MembershipRepository

logger = logging.getLogger(__name__)


@dataclass
class RemovalResult:
    """
    Explicit outcome of removing an account's memberships.

    ``error`` is set when the removal was refused; in that case
    ``removed`` is empty and nothing was deleted.
    """

    removed: list[Membership] = field(default_factory=list)
    error: InvariantViolationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass
class SiteMembershipRegistry:
    """Queries and invariant-protected mutation of site memberships."""

    repository: MembershipRepository

    def sites_for_account(self, account_id: str) -> list[Site]:
        return self.repository.sites_for_account(account_id)

    def membership_for(self, site: Site, account_id: str) -> Membership | None:
        return site.membership_for(account_id)

    def admin_count(self, site: Site) -> int:
        return len(site.admin_memberships())

    def check_removable(self, site: Site, account_id: str) -> InvariantViolationError | None:
        """Return the violation removing ``account_id`` from ``site`` would cause, if any."""
        membership = self.membership_for(site, account_id)
        if membership is None:
            return None
        if membership.is_admin and self.admin_count(site) == 1:
            return InvariantViolationError(site.site_id)
        return None

    def remove_account(self, account: Account) -> RemovalResult:
        """
        Delete every membership of ``account``, unless one is a site's last admin.

        Sites are visited in site_id order under the repository lock.
        """
        with self.repository.lock_sites_for_account(account.account_id) as session:
            sites = sorted(session.sites(), key=lambda s: s.site_id)

            for site in sites:
                error = self.check_removable(site, account.account_id)
                if error is not None:
                    logger.warning(
                        "Refusing to remove account %s: last administrator of site %s",
                        account.account_id,
                        site.site_id,
                    )
                    return RemovalResult(error=error)

            removed: list[Membership] = []
            for site in sites:
                membership = self.membership_for(site, account.account_id)
                if membership is not None:
                    session.delete(membership)
                    removed.append(membership)

        logger.info("Removed %d membership(s) of account %s", len(removed), account.account_id)
        return RemovalResult(removed=removed)
