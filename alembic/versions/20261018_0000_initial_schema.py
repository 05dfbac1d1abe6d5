"""Initial schema for events, wallets, settings and the notification ledger.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000+00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Admitted market events
    op.create_table(
        "polymarket_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("asset_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("market_slug", sa.String(255), nullable=False, server_default=""),
        sa.Column("market_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("market_image", sa.Text(), nullable=False, server_default=""),
        sa.Column("market_link", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.String(64), nullable=False, server_default=""),
        sa.Column("size", sa.String(64), nullable=False, server_default=""),
        sa.Column("side", sa.String(4), nullable=True),
        sa.Column("best_bid", sa.String(64), nullable=False, server_default=""),
        sa.Column("best_ask", sa.String(64), nullable=False, server_default=""),
        sa.Column("trade_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("wallet_address", sa.String(42), nullable=False, server_default=""),
        sa.Column("outcome", sa.String(255), nullable=False, server_default=""),
        sa.Column("outcome_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("event_slug", sa.String(255), nullable=False, server_default=""),
        sa.Column("event_title", sa.Text(), nullable=False, server_default=""),
        sa.Column("trader_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("condition_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("is_fresh_wallet", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wallet_bet_count", sa.Integer(), nullable=True),
        sa.Column("wallet_join_date", sa.String(64), nullable=True),
        sa.Column("freshness_level", sa.String(16), nullable=True),
        sa.Column("risk_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("risk_signals_json", sa.Text(), nullable=True),
        sa.Column("fresh_wallet_signal_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_polymarket_events_timestamp", "polymarket_events", ["timestamp"])
    op.create_index("idx_polymarket_events_wallet", "polymarket_events", ["wallet_address"])
    op.create_index("idx_polymarket_events_type", "polymarket_events", ["event_type"])
    op.create_index("idx_polymarket_events_fresh", "polymarket_events", ["is_fresh_wallet"])

    # Tracked wallets
    op.create_table(
        "polymarket_wallets",
        sa.Column("address", sa.String(42), nullable=False),
        sa.Column("bet_count", sa.Integer(), nullable=False, server_default="-1"),
        sa.Column("join_date", sa.String(64), nullable=False, server_default=""),
        sa.Column("freshness_level", sa.String(16), nullable=False, server_default="none"),
        sa.Column("is_fresh", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fresh_threshold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_analyzed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_attempted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("address"),
    )
    op.create_index("idx_polymarket_wallets_bet_count", "polymarket_wallets", ["bet_count"])
    op.create_index("idx_polymarket_wallets_is_fresh", "polymarket_wallets", ["is_fresh"])
    op.create_index("idx_polymarket_wallets_last_analyzed", "polymarket_wallets", ["last_analyzed_at"])
    op.create_index("idx_polymarket_wallets_last_attempted", "polymarket_wallets", ["last_attempted_at"])

    # Runtime settings blobs
    op.create_table(
        "polymarket_settings",
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )

    # Notification dedup ledger
    op.create_table(
        "notified_items",
        sa.Column("item_type", sa.String(32), nullable=False),
        sa.Column("item_id", sa.String(255), nullable=False),
        sa.Column("notified_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("item_type", "item_id"),
    )


def downgrade() -> None:
    op.drop_table("notified_items")
    op.drop_table("polymarket_settings")

    op.drop_index("idx_polymarket_wallets_last_attempted", table_name="polymarket_wallets")
    op.drop_index("idx_polymarket_wallets_last_analyzed", table_name="polymarket_wallets")
    op.drop_index("idx_polymarket_wallets_is_fresh", table_name="polymarket_wallets")
    op.drop_index("idx_polymarket_wallets_bet_count", table_name="polymarket_wallets")
    op.drop_table("polymarket_wallets")

    op.drop_index("idx_polymarket_events_fresh", table_name="polymarket_events")
    op.drop_index("idx_polymarket_events_type", table_name="polymarket_events")
    op.drop_index("idx_polymarket_events_wallet", table_name="polymarket_events")
    op.drop_index("idx_polymarket_events_timestamp", table_name="polymarket_events")
    op.drop_table("polymarket_events")
