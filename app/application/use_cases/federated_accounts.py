from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from app.application.dto.auth import FederatedIdentity
from app.application.ports.account_port import AccountPort
from app.domain.entities.account import FEDERATED_NAME_PLACEHOLDER, Account
from app.domain.exceptions import FederatedIdentityConflictError, FederatedIdentityError

from .auth_common import normalize_email, utcnow


logger = logging.getLogger(__name__)


def create_or_get_federated_account(
    *,
    account_port: AccountPort,
    identity: FederatedIdentity,
    now: datetime | None = None,
) -> Account:
    """Map a verified external identity to an account.

    Lookup order is federated id, then verified email (linking an existing account),
    then a new account. Emails typed in at sign-up are unconfirmed and never become
    link targets, so nobody can pre-claim another person's address. The federated id is checked first so repeated logins stay idempotent even
    after linking. The unique constraint on ``google_id`` is what actually settles
    concurrent logins: a lost race is answered by re-reading the winner.
    """
    subject = (identity.subject or "").strip()
    if not subject:
        raise FederatedIdentityError("Federated identity is missing its subject.")

    existing = account_port.get_account_by_google_id(google_id=subject)
    if existing is not None:
        return existing

    email = normalize_email(identity.email)
    if email:
        match = account_port.get_account_by_verified_email(email=email)
        if match is not None:
            return _link(account_port=account_port, account=match, subject=subject, avatar_url=identity.picture)

    display_name = (identity.name or "").strip() or email or FEDERATED_NAME_PLACEHOLDER
    try:
        account = account_port.create_federated_account(
            account_id=str(uuid4()),
            google_id=subject,
            email=email,
            display_name=display_name,
            avatar_url=identity.picture,
            created_at=now or utcnow(),
        )
    except FederatedIdentityConflictError:
        winner = account_port.get_account_by_google_id(google_id=subject)
        if winner is None:
            raise
        return winner

    logger.info("federated_accounts: account_created account_id=%s", account.id)
    return account


def _link(*, account_port: AccountPort, account: Account, subject: str, avatar_url: str | None) -> Account:
    if account.is_federated:
        logger.warning(
            "federated_accounts: link_refused account_id=%s reason=already_linked",
            account.id,
        )
        raise FederatedIdentityConflictError("Account is already linked to another federated identity.")

    linked = account_port.link_google_identity(account_id=account.id, google_id=subject, avatar_url=avatar_url)
    if linked is None:
        winner = account_port.get_account_by_google_id(google_id=subject)
        if winner is not None:
            return winner
        raise FederatedIdentityConflictError("Account was linked concurrently to another federated identity.")

    logger.info("federated_accounts: account_linked account_id=%s", linked.id)
    return linked
