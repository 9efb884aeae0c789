"""Initial schema: users, games with images and rules, reservations and slot tokens.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # Games catalog
    op.create_table(
        "games",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("summary", sa.String(500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("how_to_play", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("players", sa.String(100), nullable=True),
        sa.Column("duration", sa.String(100), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("price > 0", name="check_game_price_positive"),
        sa.CheckConstraint("stock >= 0", name="check_game_stock_non_negative"),
    )
    op.create_index("ix_games_id", "games", ["id"])
    op.create_index("ix_games_available_name", "games", ["available", "name"])

    op.create_table(
        "game_images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id", ondelete="CASCADE"), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_game_images_game_id", "game_images", ["game_id"])

    op.create_table(
        "game_rules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rule_text", sa.Text(), nullable=False),
        sa.Column("rule_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_game_rules_game_id", "game_rules", ["game_id"])

    # Reservations
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'active'")),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="check_reservation_status",
        ),
        sa.CheckConstraint(
            "return_date IS NULL OR return_date >= reservation_date",
            name="check_return_after_reservation",
        ),
        sa.CheckConstraint("total_price >= 0", name="check_reservation_price_non_negative"),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_game_id", "reservations", ["game_id"])
    # Covers the availability count:
    # WHERE game_id = ? AND reservation_date = ? AND status = 'active'
    op.create_index(
        "ix_reservations_game_date_status",
        "reservations",
        ["game_id", "reservation_date", "status"],
    )
    # Covers "my reservations": WHERE user_id = ? ORDER BY reservation_date DESC
    op.create_index("ix_reservations_user_date", "reservations", ["user_id", "reservation_date"])

    # One compare-and-commit token per (game, date) ever booked
    op.create_table(
        "reservation_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.UniqueConstraint("game_id", "slot_date", name="uq_reservation_slot_game_date"),
    )


def downgrade() -> None:
    op.drop_table("reservation_slots")
    op.drop_table("reservations")
    op.drop_table("game_rules")
    op.drop_table("game_images")
    op.drop_table("games")
    op.drop_table("users")
