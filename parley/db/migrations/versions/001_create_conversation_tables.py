"""Create conversation_contexts and call_records tables.

Revision ID: 001_create_conversation_tables
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_create_conversation_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create context and call record tables."""
    op.create_table(
        "conversation_contexts",
        sa.Column("conversation_id", sa.String(255), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("channel", sa.String(32), nullable=True),
        sa.Column("current_agent", sa.String(255), nullable=True),
        sa.Column("payload", postgresql.JSONB, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "last_activity_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index(
        "ix_conversation_contexts_user",
        "conversation_contexts",
        ["user_id"],
        unique=False,
    )
    op.create_index(
        "ix_conversation_contexts_last_activity",
        "conversation_contexts",
        ["last_activity_at"],
        unique=False,
    )

    op.create_table(
        "call_records",
        sa.Column("record_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("call_id", sa.String(255), nullable=False),
        sa.Column("conversation_id", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("connection_id", sa.String(64), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_reason", sa.String(64), nullable=False),
        sa.Column("turns", sa.Integer, nullable=False, server_default="0"),
        sa.Column("failed_turns", sa.Integer, nullable=False, server_default="0"),
        sa.Column("bytes_received", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("bytes_sent", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("transcript_key", sa.Text, nullable=True),
        sa.Column("recording_key", sa.Text, nullable=True),
    )
    op.create_index(
        "ix_call_records_conversation",
        "call_records",
        ["conversation_id", "started_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop context and call record tables."""
    op.drop_index("ix_call_records_conversation", table_name="call_records")
    op.drop_table("call_records")
    op.drop_index(
        "ix_conversation_contexts_last_activity", table_name="conversation_contexts"
    )
    op.drop_index("ix_conversation_contexts_user", table_name="conversation_contexts")
    op.drop_table("conversation_contexts")
