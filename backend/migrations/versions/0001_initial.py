"""Initial schema – users, entries, shares, share links, activity log

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Creates the five tables of the share service with their foreign keys and
the indexes the owner-scoped queries rely on.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "user", name="user_role"),
            nullable=False,
            server_default="admin",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # -- password_entries -----------------------------------------------
    op.create_table(
        "password_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_name", sa.String(255), nullable=False),
        sa.Column("service_url", sa.String(2048), nullable=True),
        sa.Column("username", sa.String(255), nullable=False),
        # base64( ciphertext || 16-byte GCM tag ) – never plaintext
        sa.Column("encrypted_secret", sa.Text(), nullable=False),
        # base64( 12-byte AES-GCM nonce )
        sa.Column("iv", sa.String(64), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_password_entries_owner_id", "password_entries", ["owner_id"])

    # -- password_shares ------------------------------------------------
    op.create_table(
        "password_shares",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("recipient_label", sa.String(255), nullable=True),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("viewed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opened_once", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("deactivated_reason", sa.String(16), nullable=True),
    )
    op.create_index("idx_password_shares_owner_id", "password_shares", ["owner_id"])

    # -- share_entries --------------------------------------------------
    op.create_table(
        "share_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "share_id",
            sa.Integer(),
            sa.ForeignKey("password_shares.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "entry_id",
            sa.Integer(),
            sa.ForeignKey("password_entries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("share_id", "entry_id", name="uq_share_entries_pair"),
    )
    op.create_index("idx_share_entries_share_id", "share_entries", ["share_id"])

    # -- activity_logs (append-only) --------------------------------------
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("service_name", sa.String(255), nullable=True),
        sa.Column("recipient_label", sa.String(255), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_activity_logs_owner_id", "activity_logs", ["owner_id"])
    op.create_index("idx_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_index("idx_activity_logs_action", table_name="activity_logs")
    op.drop_index("idx_activity_logs_owner_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("idx_share_entries_share_id", table_name="share_entries")
    op.drop_table("share_entries")
    op.drop_index("idx_password_shares_owner_id", table_name="password_shares")
    op.drop_table("password_shares")
    op.drop_index("idx_password_entries_owner_id", table_name="password_entries")
    op.drop_table("password_entries")
    op.drop_table("users")
