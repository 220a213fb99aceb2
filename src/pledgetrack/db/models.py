"""ORM models for campaigns, participants, the progress ledger and pledges.

Table layout matches the Alembic baseline revision. Column types stay portable
(no PostgreSQL-only types) so the same models run on SQLite for local work.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pledgetrack.db.base import Base

PLEDGE_TYPES = ("per_unit_uncapped", "per_unit_capped", "flat_rate")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ChallengeCategory(Base):
    """Top-level grouping of challenge types (running, reading, ...)."""

    __tablename__ = "challenge_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    challenge_types: Mapped[list[ChallengeType]] = relationship("ChallengeType", back_populates="category")


class ChallengeType(Base):
    """A measurable activity with a unit (miles, pages, push-ups)."""

    __tablename__ = "challenge_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("challenge_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)
    suggested_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    suggested_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    category: Mapped[ChallengeCategory] = relationship("ChallengeCategory", back_populates="challenge_types")


# ---------------------------------------------------------------------------
# Campaigns & participants
# ---------------------------------------------------------------------------


class Campaign(Base):
    """Grouping container for participants, with an external donation link."""

    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    donation_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    participants: Mapped[list[Participant]] = relationship("Participant", back_populates="campaign")


class Participant(Base):
    """One person's challenge instance within a campaign.

    ``current_progress`` is a denormalized copy of the ledger sum and is only
    written by ``pledgetrack.participants.progress_service.append_progress``.
    """

    __tablename__ = "participants"
    __table_args__ = (
        CheckConstraint("goal_amount > 0", name="ck_participants_goal_positive"),
        CheckConstraint("current_progress >= 0", name="ck_participants_progress_nonneg"),
        Index("ix_participants_active_created", "is_active", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    campaign_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    challenge_type_id: Mapped[int] = mapped_column(Integer, ForeignKey("challenge_types.id"), nullable=False)
    goal_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    current_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participant_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_unit: Mapped[str | None] = mapped_column(String(32), nullable=True)
    custom_challenge_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    campaign: Mapped[Campaign] = relationship("Campaign", back_populates="participants", lazy="joined")
    challenge_type: Mapped[ChallengeType] = relationship("ChallengeType", lazy="joined")
    donors: Mapped[list[Donor]] = relationship("Donor", back_populates="participant")

    @property
    def display_name(self) -> str:
        """Participant name, or ``Challenger #<id>`` when none was given."""
        if self.participant_name and self.participant_name.strip():
            return self.participant_name
        return f"Challenger #{self.id}"


class ProgressLog(Base):
    """One immutable ledger entry of units completed on a date."""

    __tablename__ = "progress_logs"
    __table_args__ = (
        CheckConstraint("units_completed > 0", name="ck_progress_logs_units_positive"),
        Index("ix_progress_logs_participant_created", "participant_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    participant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    units_completed: Mapped[int] = mapped_column(Integer, nullable=False)
    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ParticipantPost(Base):
    """Short update shown on the participant page."""

    __tablename__ = "participant_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    participant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    post_type: Mapped[str] = mapped_column(String(32), nullable=False, default="update")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Donors & pledges
# ---------------------------------------------------------------------------


class Donor(Base):
    """A supporter identity, unique per (participant, email)."""

    __tablename__ = "donors"
    __table_args__ = (UniqueConstraint("participant_id", "email", name="uq_donors_participant_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    participant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    participant: Mapped[Participant] = relationship("Participant", back_populates="donors")
    pledges: Mapped[list[Pledge]] = relationship("Pledge", back_populates="donor")


class Pledge(Base):
    """Immutable donor commitment; the populated amount columns depend on ``pledge_type``."""

    __tablename__ = "pledges"
    __table_args__ = (
        CheckConstraint(
            "pledge_type IN ('per_unit_uncapped', 'per_unit_capped', 'flat_rate')",
            name="ck_pledges_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    donor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("donors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    pledge_type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    max_total_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    flat_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    is_fulfilled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    donor: Mapped[Donor] = relationship("Donor", back_populates="pledges")


# ---------------------------------------------------------------------------
# Activity feed & preferences
# ---------------------------------------------------------------------------


class ActivityEvent(Base):
    """Public activity feed entry (pledge, progress, milestone, donation)."""

    __tablename__ = "activity_events"
    __table_args__ = (Index("ix_activity_events_created", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    units: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    participant_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    campaign_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class NotificationPreferences(Base):
    """Per-user email opt-ins and reminder banner state."""

    __tablename__ = "user_notification_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email_challenge_reminders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_donor_updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_banner_dismissed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Follow(Base):
    """A signed-in user following a participant's updates."""

    __tablename__ = "follows"
    __table_args__ = (UniqueConstraint("user_id", "participant_id", name="uq_follows_user_participant"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    participant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
