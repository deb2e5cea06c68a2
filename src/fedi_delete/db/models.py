from __future__ import annotations

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .base import Base


QUOTE_STATE_PENDING = "pending"
QUOTE_STATE_ACCEPTED = "accepted"
QUOTE_STATE_REVOKED = "revoked"


class Account(Base):
    """A local or remote actor. Local accounts have no domain."""

    __tablename__ = "accounts"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    username = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True)
    uri = Column(Text, unique=True, nullable=False)
    inbox_url = Column(Text, nullable=True)
    shared_inbox_url = Column(Text, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class Status(Base):
    """A post. Reblogs carry reblog_of_id and no content of their own."""

    __tablename__ = "statuses"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    uri = Column(Text, unique=True, nullable=True)  # NULL for purely local posts
    account_id = Column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    reblog_of_id = Column(BigInteger, ForeignKey("statuses.id"), nullable=True)
    text = Column(Text, nullable=False, default="")
    discarded_at = Column(BigInteger, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class Report(Base):
    """A moderation report. Unresolved reports (no action taken) are active."""

    __tablename__ = "reports"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    account_id = Column(BigInteger, nullable=False)
    target_account_id = Column(BigInteger, nullable=False)
    status_ids = Column(JSON, nullable=False, default=list)
    forwarded = Column(Boolean, nullable=False, default=False)
    action_taken_at = Column(BigInteger, nullable=True)
    created_at = Column(BigInteger, nullable=False)


class Quote(Base):
    """A quote of one status by another, authorized through approval_uri."""

    __tablename__ = "quotes"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    status_id = Column(BigInteger, ForeignKey("statuses.id"), nullable=False)
    quoted_status_id = Column(BigInteger, ForeignKey("statuses.id"), nullable=True)
    quoted_account_id = Column(BigInteger, ForeignKey("accounts.id"), nullable=True)
    approval_uri = Column(Text, unique=True, nullable=True)
    state = Column(String(16), nullable=False, default=QUOTE_STATE_PENDING)


class Follow(Base):
    """Directed follow edge from account_id to target_account_id."""

    __tablename__ = "follows"
    __table_args__ = (UniqueConstraint("account_id", "target_account_id"),)

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    account_id = Column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    target_account_id = Column(BigInteger, ForeignKey("accounts.id"), nullable=False)
    created_at = Column(BigInteger, nullable=False)


class Tombstone(Base):
    """Remembers object URIs deleted by their owner so they are never re-fetched."""

    __tablename__ = "tombstones"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    uri = Column(Text, unique=True, nullable=False)
    account_id = Column(BigInteger, nullable=False)
    created_at = Column(BigInteger, nullable=False)


class DeliveryLedger(Base):
    """Records outbound Delete deliveries, one row per (activity, inbox)."""

    __tablename__ = "delivery_ledger"

    id = Column(String(64), primary_key=True)  # fingerprint of activity id + inbox
    inbox_url = Column(Text, nullable=False)
    activity_id = Column(Text, nullable=False)
    object_uri = Column(Text, nullable=False)
    payload = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="queued")
    attempts = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(BigInteger, nullable=True)
    created_at = Column(BigInteger, nullable=False)
