from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fedi_delete.core.errors import PersistenceError
from fedi_delete.core.security import delivery_fingerprint
from fedi_delete.models import AccountRecord, QuoteRecord, StatusRecord, StatusRemoval

from .base import DatabaseSessionManager
from .models import (
    QUOTE_STATE_ACCEPTED,
    QUOTE_STATE_REVOKED,
    Account,
    DeliveryLedger,
    Follow,
    Quote,
    Report,
    Status,
    Tombstone,
)


def _account_record(row: Account) -> AccountRecord:
    return AccountRecord(
        id=row.id,
        username=row.username,
        domain=row.domain,
        uri=row.uri,
        inbox_url=row.inbox_url,
        shared_inbox_url=row.shared_inbox_url,
    )


def _status_record(row: Status) -> StatusRecord:
    return StatusRecord(
        id=row.id,
        uri=row.uri,
        account_id=row.account_id,
        reblog_of_id=row.reblog_of_id,
        text=row.text,
        discarded_at=row.discarded_at,
    )


def _quote_record(row: Quote) -> QuoteRecord:
    return QuoteRecord(
        id=row.id,
        status_id=row.status_id,
        quoted_status_id=row.quoted_status_id,
        quoted_account_id=row.quoted_account_id,
        approval_uri=row.approval_uri,
        state=row.state,
    )


class DeleteRepository:
    """Persistence primitives backed by SQLAlchemy for the Delete activity service.

    Every public method runs in its own transaction and returns immutable
    records. Database failures surface as PersistenceError.
    """

    def __init__(self, db: DatabaseSessionManager) -> None:
        """Initializes the DeleteRepository with a database session manager.

        Args:
            db: The DatabaseSessionManager instance.
        """
        self._db = db

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        try:
            with self._db.session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    # Accounts ---------------------------------------------------------------

    def create_account(
        self,
        *,
        username: str,
        uri: str,
        domain: Optional[str] = None,
        inbox_url: Optional[str] = None,
        shared_inbox_url: Optional[str] = None,
    ) -> AccountRecord:
        with self._transaction() as session:
            row = Account(
                username=username,
                domain=domain,
                uri=uri,
                inbox_url=inbox_url,
                shared_inbox_url=shared_inbox_url,
                created_at=int(time.time()),
            )
            session.add(row)
            session.flush()
            return _account_record(row)

    def find_account(self, account_id: int) -> Optional[AccountRecord]:
        with self._transaction() as session:
            row = session.get(Account, account_id)
            return _account_record(row) if row else None

    def find_account_by_uri(self, uri: str) -> Optional[AccountRecord]:
        with self._transaction() as session:
            row = session.execute(
                select(Account).where(Account.uri == uri)
            ).scalar_one_or_none()
            return _account_record(row) if row else None

    def purge_account(self, account_id: int, *, reserve_username: bool) -> bool:
        """Removes an account's statuses, quotes and follow edges.

        The account row itself is kept when ``reserve_username`` is set so the
        username cannot be claimed again.

        Returns:
            False if the account no longer exists.
        """
        with self._transaction() as session:
            account = session.execute(
                select(Account).where(Account.id == account_id).with_for_update()
            ).scalar_one_or_none()
            if account is None:
                return False
            own_ids = list(
                session.execute(
                    select(Status.id).where(Status.account_id == account_id)
                ).scalars()
            )
            reblog_ids: list[int] = []
            if own_ids:
                reblog_ids = list(
                    session.execute(
                        select(Status.id).where(Status.reblog_of_id.in_(own_ids))
                    ).scalars()
                )
            self._delete_statuses(session, reblog_ids + own_ids)
            session.execute(
                delete(Follow).where(
                    or_(
                        Follow.account_id == account_id,
                        Follow.target_account_id == account_id,
                    )
                )
            )
            if not reserve_username:
                session.execute(
                    update(Quote)
                    .where(Quote.quoted_account_id == account_id)
                    .values(quoted_account_id=None)
                )
                session.delete(account)
            return True

    # Statuses ---------------------------------------------------------------

    def create_status(
        self,
        *,
        account_id: int,
        uri: Optional[str] = None,
        text: str = "",
        reblog_of_id: Optional[int] = None,
    ) -> StatusRecord:
        with self._transaction() as session:
            row = Status(
                account_id=account_id,
                uri=uri,
                text=text,
                reblog_of_id=reblog_of_id,
                created_at=int(time.time()),
            )
            session.add(row)
            session.flush()
            return _status_record(row)

    def find_status(self, status_id: int) -> Optional[StatusRecord]:
        """Finds a status, ignoring soft-deleted ones."""
        with self._transaction() as session:
            row = session.execute(
                select(Status).where(
                    Status.id == status_id, Status.discarded_at.is_(None)
                )
            ).scalar_one_or_none()
            return _status_record(row) if row else None

    def find_status_including_deleted(self, status_id: int) -> Optional[StatusRecord]:
        """Finds a status even if it has been soft-deleted for moderation."""
        with self._transaction() as session:
            row = session.get(Status, status_id)
            return _status_record(row) if row else None

    def find_status_by_uri(self, uri: str) -> Optional[StatusRecord]:
        with self._transaction() as session:
            row = session.execute(
                select(Status).where(Status.uri == uri, Status.discarded_at.is_(None))
            ).scalar_one_or_none()
            return _status_record(row) if row else None

    def discard_status(self, status_id: int) -> Optional[StatusRecord]:
        """Soft-deletes a status, keeping its row and relations for inspection.

        Returns:
            The discarded status, or None if it was already gone or discarded.
        """
        with self._transaction() as session:
            row = session.execute(
                select(Status)
                .where(Status.id == status_id, Status.discarded_at.is_(None))
                .with_for_update()
            ).scalar_one_or_none()
            if row is None:
                return None
            row.discarded_at = int(time.time())
            return _status_record(row)

    def remove_status(self, status_id: int) -> Optional[StatusRemoval]:
        """Hard-deletes a status together with every reblog of it.

        The cascade is one level deep since reblogs have no dependents of
        their own. The returned reblogs exclude soft-deleted ones.

        Returns:
            The removal summary, or None if the status was already gone.
        """
        with self._transaction() as session:
            row = session.execute(
                select(Status)
                .where(Status.id == status_id, Status.discarded_at.is_(None))
                .with_for_update()
            ).scalar_one_or_none()
            if row is None:
                return None
            reblogs: Sequence[Status] = (
                session.execute(
                    select(Status)
                    .where(Status.reblog_of_id == status_id)
                    .order_by(Status.id)
                    .with_for_update()
                )
                .scalars()
                .all()
            )
            removal = StatusRemoval(
                status=_status_record(row),
                reblogs=tuple(
                    _status_record(reblog)
                    for reblog in reblogs
                    if reblog.discarded_at is None
                ),
            )
            self._delete_statuses(session, [r.id for r in reblogs] + [status_id])
            return removal

    def _delete_statuses(self, session: Session, status_ids: Iterable[int]) -> None:
        ids = list(status_ids)
        if not ids:
            return
        session.execute(delete(Quote).where(Quote.status_id.in_(ids)))
        session.execute(
            update(Quote)
            .where(Quote.quoted_status_id.in_(ids))
            .values(quoted_status_id=None)
        )
        session.execute(delete(Status).where(Status.id.in_(ids)))

    # Reports ----------------------------------------------------------------

    def create_report(
        self,
        *,
        account_id: int,
        target_account_id: int,
        status_ids: Sequence[int],
        forwarded: bool = False,
    ) -> int:
        with self._transaction() as session:
            row = Report(
                account_id=account_id,
                target_account_id=target_account_id,
                status_ids=list(status_ids),
                forwarded=forwarded,
                created_at=int(time.time()),
            )
            session.add(row)
            session.flush()
            return row.id

    def resolve_report(self, report_id: int) -> None:
        with self._transaction() as session:
            row = session.get(Report, report_id)
            if row is not None:
                row.action_taken_at = int(time.time())

    def has_active_report(self, status_id: int) -> bool:
        """True if an unresolved report targets the status."""
        with self._transaction() as session:
            status = session.get(Status, status_id)
            if status is None:
                return False
            reports = session.execute(
                select(Report.status_ids).where(
                    Report.target_account_id == status.account_id,
                    Report.action_taken_at.is_(None),
                )
            ).scalars()
            return any(status_id in (ids or ()) for ids in reports)

    # Quotes -----------------------------------------------------------------

    def create_quote(
        self,
        *,
        status_id: int,
        quoted_status_id: Optional[int],
        quoted_account_id: Optional[int],
        approval_uri: Optional[str] = None,
        state: str = QUOTE_STATE_ACCEPTED,
    ) -> QuoteRecord:
        with self._transaction() as session:
            row = Quote(
                status_id=status_id,
                quoted_status_id=quoted_status_id,
                quoted_account_id=quoted_account_id,
                approval_uri=approval_uri,
                state=state,
            )
            session.add(row)
            session.flush()
            return _quote_record(row)

    def find_quote(self, quote_id: int) -> Optional[QuoteRecord]:
        with self._transaction() as session:
            row = session.get(Quote, quote_id)
            return _quote_record(row) if row else None

    def find_quote_by_approval_uri(self, approval_uri: str) -> Optional[QuoteRecord]:
        with self._transaction() as session:
            row = session.execute(
                select(Quote).where(Quote.approval_uri == approval_uri)
            ).scalar_one_or_none()
            return _quote_record(row) if row else None

    def revoke_quote(self, quote_id: int) -> bool:
        """Moves a quote to the revoked state.

        Returns:
            True if the state changed, False if the quote was already revoked
            or no longer exists.
        """
        with self._transaction() as session:
            row = session.execute(
                select(Quote).where(Quote.id == quote_id).with_for_update()
            ).scalar_one_or_none()
            if row is None or row.state == QUOTE_STATE_REVOKED:
                return False
            row.state = QUOTE_STATE_REVOKED
            return True

    # Follow graph -----------------------------------------------------------

    def follow(self, account_id: int, target_account_id: int) -> None:
        with self._transaction() as session:
            existing = session.execute(
                select(Follow).where(
                    Follow.account_id == account_id,
                    Follow.target_account_id == target_account_id,
                )
            ).scalar_one_or_none()
            if existing is None:
                session.add(
                    Follow(
                        account_id=account_id,
                        target_account_id=target_account_id,
                        created_at=int(time.time()),
                    )
                )

    def remote_follower_inboxes(self, account_id: int) -> set[str]:
        """Distinct preferred inboxes of remote accounts following ``account_id``.

        Followers on a server with a shared inbox collapse onto that inbox.
        """
        with self._transaction() as session:
            rows = session.execute(
                select(Account.shared_inbox_url, Account.inbox_url)
                .join(Follow, Follow.account_id == Account.id)
                .where(
                    Follow.target_account_id == account_id,
                    Account.domain.is_not(None),
                )
                .distinct()
            ).all()
            return {shared or inbox for shared, inbox in rows if shared or inbox}

    # Tombstones -------------------------------------------------------------

    def remember_tombstone(self, uri: str, account_id: int) -> bool:
        """Records that ``uri`` was deleted by its owner.

        Returns:
            True if the tombstone is new, False if it already existed.
        """
        with self._transaction() as session:
            existing = session.execute(
                select(Tombstone).where(Tombstone.uri == uri)
            ).scalar_one_or_none()
            if existing:
                return False
            session.add(
                Tombstone(uri=uri, account_id=account_id, created_at=int(time.time()))
            )
            return True

    def is_tombstoned(self, uri: str) -> bool:
        with self._transaction() as session:
            return (
                session.execute(
                    select(Tombstone.id).where(Tombstone.uri == uri)
                ).first()
                is not None
            )

    # Delivery ledger --------------------------------------------------------

    def enqueue_delivery(
        self,
        *,
        inbox_url: str,
        activity_id: str,
        object_uri: str,
        payload: str,
    ) -> bool:
        """Queues a delivery unless the same activity is already queued for the inbox.

        Returns:
            True if a new ledger row was created.
        """
        delivery_id = delivery_fingerprint(
            (activity_id.encode("utf-8"), inbox_url.encode("utf-8"))
        )
        with self._transaction() as session:
            if session.get(DeliveryLedger, delivery_id) is not None:
                return False
            session.add(
                DeliveryLedger(
                    id=delivery_id,
                    inbox_url=inbox_url,
                    activity_id=activity_id,
                    object_uri=object_uri,
                    payload=payload,
                    status="queued",
                    attempts=0,
                    created_at=int(time.time()),
                )
            )
            return True

    def get_queued_deliveries(self, limit: int) -> list[DeliveryLedger]:
        with self._transaction() as session:
            return list(
                session.execute(
                    select(DeliveryLedger)
                    .where(DeliveryLedger.status == "queued")
                    .order_by(DeliveryLedger.created_at)
                    .limit(limit)
                ).scalars()
            )

    def update_delivery_status(self, delivery_id: str, status: str) -> None:
        now = int(time.time())
        with self._transaction() as session:
            row = session.get(DeliveryLedger, delivery_id)
            if row:
                row.status = status
                row.attempts += 1
                row.last_attempt_at = now

    def count_deliveries(
        self, *, object_uri: Optional[str] = None, status: Optional[str] = None
    ) -> int:
        with self._transaction() as session:
            query = select(func.count(DeliveryLedger.id))
            if object_uri is not None:
                query = query.where(DeliveryLedger.object_uri == object_uri)
            if status is not None:
                query = query.where(DeliveryLedger.status == status)
            return session.execute(query).scalar_one()


__all__ = ["DeleteRepository"]
