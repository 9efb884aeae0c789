"""
Game catalog models.

A game is rented per day; `stock` is how many copies can be out on the
same calendar date. Images and rules are ordered child rows so the catalog
can render them in a stable sequence.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from gamerent.db.base import Base, TimestampMixin


class Game(Base, TimestampMixin):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    category = Column(String(100), nullable=False)
    summary = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    how_to_play = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # per-day rate
    players = Column(String(100), nullable=True)
    duration = Column(String(100), nullable=True)
    stock = Column(Integer, nullable=False, default=1)
    available = Column(Boolean, nullable=False, default=True)

    images = relationship(
        "GameImage",
        back_populates="game",
        order_by="GameImage.display_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    rules = relationship(
        "GameRule",
        back_populates="game",
        order_by="GameRule.rule_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("price > 0", name="check_game_price_positive"),
        CheckConstraint("stock >= 0", name="check_game_stock_non_negative"),
        # Catalog listing: sellable games sorted by name
        Index("ix_games_available_name", "available", "name"),
    )

    def __repr__(self) -> str:
        return f"<Game(id={self.id}, name={self.name}, stock={self.stock})>"


class GameImage(Base):
    __tablename__ = "game_images"

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)

    game = relationship("Game", back_populates="images")


class GameRule(Base):
    __tablename__ = "game_rules"

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    rule_text = Column(Text, nullable=False)
    rule_order = Column(Integer, nullable=False, default=0)

    game = relationship("Game", back_populates="rules")
