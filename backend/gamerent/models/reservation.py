"""
Reservation model and the per-slot concurrency token.

Key design decisions:
- Status field allows cancellation without deleting records
- reservation_date is a plain DATE; comparisons happen at day granularity
- total_price is copied from the game at creation and never recomputed
- ReservationSlot rows carry a `version` counter used for optimistic
  compare-and-commit when claiming one unit of stock on a date
"""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from gamerent.db.base import Base, TimestampMixin


class ReservationStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    reservation_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=ReservationStatus.ACTIVE.value)
    total_price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)

    user = relationship("User", back_populates="reservations")
    game = relationship("Game", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="check_reservation_status",
        ),
        CheckConstraint(
            "return_date IS NULL OR return_date >= reservation_date",
            name="check_return_after_reservation",
        ),
        CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
        # Availability count: WHERE game_id = ? AND reservation_date = ? AND status = 'active'
        Index("ix_reservations_game_date_status", "game_id", "reservation_date", "status"),
        # Listing: WHERE user_id = ? ORDER BY reservation_date DESC
        Index("ix_reservations_user_date", "user_id", "reservation_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, user={self.user_id}, game={self.game_id}, "
            f"date={self.reservation_date}, status={self.status})>"
        )


class ReservationSlot(Base):
    __tablename__ = "reservation_slots"

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    slot_date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("game_id", "slot_date", name="uq_reservation_slot_game_date"),
    )

    def __repr__(self) -> str:
        return f"<ReservationSlot(game={self.game_id}, date={self.slot_date}, version={self.version})>"
