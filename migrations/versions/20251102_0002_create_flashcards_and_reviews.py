"""Create flashcards and the append-only review log."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20251102_0002"
down_revision: Union[str, None] = "20251101_0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "flashcards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=False),
        sa.Column("deck_id", sa.Integer(), nullable=True),
        sa.Column("front", sa.Text(), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("difficulty", sa.String(length=16), server_default=sa.text("'MEDIUM'"), nullable=False),
        sa.Column("tags", sa.String(length=255), nullable=True),
        sa.Column("is_public", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("last_reviewed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("created_by",),
            ("users.id",),
            name="fk_flashcards_created_by_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ("deck_id",),
            ("flashcard_decks.id",),
            name="fk_flashcards_deck_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_flashcards_created_by_deck_id", "flashcards", ("created_by", "deck_id"))

    op.create_table(
        "flashcard_reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("flashcard_id", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("time_spent", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("was_correct", sa.Boolean(), nullable=True),
        sa.Column("user_answer", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("interval", sa.Integer(), nullable=False),
        sa.Column("repetitions", sa.Integer(), nullable=False),
        sa.Column("ease_factor", sa.Float(), nullable=False),
        sa.Column("next_review_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "review_date",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ("user_id",),
            ("users.id",),
            name="fk_flashcard_reviews_user_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ("flashcard_id",),
            ("flashcards.id",),
            name="fk_flashcard_reviews_flashcard_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_flashcard_reviews_user_card_date",
        "flashcard_reviews",
        ("user_id", "flashcard_id", "review_date"),
    )


def downgrade() -> None:
    op.drop_index("ix_flashcard_reviews_user_card_date", table_name="flashcard_reviews")
    op.drop_table("flashcard_reviews")
    op.drop_index("ix_flashcards_created_by_deck_id", table_name="flashcards")
    op.drop_table("flashcards")
