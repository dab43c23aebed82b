"""create users

Revision ID: 20201130_033330
Revises:
Create Date: 2020-11-30 03:33:30.000000
"""
from alembic import op
import sqlalchemy as sa

revision = "20201130_033330"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # 不使用 IF NOT EXISTS：資料表已存在時必須失敗
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=False),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sqlite_autoincrement=True,
    )


def downgrade() -> None:
    raise NotImplementedError("create users 為不可逆的遷移，未提供 downgrade。")
