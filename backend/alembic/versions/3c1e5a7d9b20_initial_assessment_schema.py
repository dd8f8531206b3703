"""initial assessment schema

Revision ID: 3c1e5a7d9b20
Revises:
Create Date: 2026-10-19 09:12:44.318027

Question bank tables plus per-attempt tables (test instances, frozen
question snapshots, multiple-choice responses and video responses).

Enum columns store member names, so the partial unique indexes on
test_instances compare against upper-case literals.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1e5a7d9b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TEST_TYPE_VALUES = ("PORTUGUESE", "MATH", "PSYCHOLOGY", "VISUAL_RETENTION", "INTERVIEW")
TEST_STATUS_VALUES = ("NOT_STARTED", "IN_PROGRESS", "SUBMITTED")
VIDEO_RESPONSE_TYPE_VALUES = ("READING", "QUESTION_ANSWER")


def upgrade() -> None:
    test_type = sa.Enum(*TEST_TYPE_VALUES, name="testtype")
    test_status = sa.Enum(*TEST_STATUS_VALUES, name="teststatus")
    video_response_type = sa.Enum(*VIDEO_RESPONSE_TYPE_VALUES, name="videoresponsetype")

    op.create_table(
        "question_groups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_type", test_type, nullable=False),
        sa.Column("group_name", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_question_groups_test_type", "question_groups", ["test_type"]
    )

    op.create_table(
        "question_templates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_type", test_type, nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("allow_multiple_answers", sa.Boolean(), nullable=False),
        sa.Column("max_answers_allowed", sa.Integer(), nullable=True),
        sa.Column("point_value", sa.Float(), nullable=False),
        sa.Column("estimated_time_seconds", sa.Integer(), nullable=True),
        sa.Column("difficulty_level", sa.String(length=20), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("group_order", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["group_id"], ["question_groups.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_question_templates_is_active", "question_templates", ["is_active"]
    )
    op.create_index(
        "ix_question_templates_type_difficulty",
        "question_templates",
        ["test_type", "difficulty_level"],
    )

    op.create_table(
        "question_answers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("question_template_id", sa.String(length=36), nullable=False),
        sa.Column("correct_answer", sa.JSON(), nullable=True),
        sa.Column("expected_answer_guide", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(
            ["question_template_id"], ["question_templates.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("question_template_id"),
    )

    op.create_table(
        "portuguese_reading_texts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("difficulty_level", sa.String(length=20), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "test_instances",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("candidate_id", sa.String(length=64), nullable=False),
        sa.Column("test_type", test_type, nullable=False),
        sa.Column("status", test_status, nullable=False),
        sa.Column("difficulty_level", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("raw_score", sa.Float(), nullable=True),
        sa.Column("max_possible_score", sa.Float(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("portuguese_reading_text_id", sa.String(length=36), nullable=True),
        sa.Column("portuguese_reading_text_version", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["portuguese_reading_text_id"], ["portuguese_reading_texts.id"]
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_test_instances_candidate_id", "test_instances", ["candidate_id"]
    )
    op.create_index("ix_test_instances_status", "test_instances", ["status"])
    op.create_index(
        "ix_test_instances_candidate_type",
        "test_instances",
        ["candidate_id", "test_type"],
    )
    # One non-terminal attempt per candidate and test type
    op.create_index(
        "ux_test_instances_candidate_type_active",
        "test_instances",
        ["candidate_id", "test_type"],
        unique=True,
        postgresql_where=sa.text("status IN ('NOT_STARTED', 'IN_PROGRESS')"),
    )
    # At most one submitted attempt per candidate and test type
    op.create_index(
        "ux_test_instances_candidate_type_submitted",
        "test_instances",
        ["candidate_id", "test_type"],
        unique=True,
        postgresql_where=sa.text("status = 'SUBMITTED'"),
    )

    op.create_table(
        "test_question_snapshots",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_instance_id", sa.String(length=36), nullable=False),
        sa.Column("question_template_id", sa.String(length=36), nullable=True),
        sa.Column("question_template_version", sa.Integer(), nullable=True),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("allow_multiple_answers", sa.Boolean(), nullable=False),
        sa.Column("max_answers_allowed", sa.Integer(), nullable=True),
        sa.Column("question_order", sa.Integer(), nullable=False),
        sa.Column("point_value", sa.Float(), nullable=False),
        sa.Column("estimated_time_seconds", sa.Integer(), nullable=True),
        sa.Column("correct_answer_snapshot", sa.JSON(), nullable=True),
        sa.Column("expected_answer_guide_snapshot", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["test_instance_id"], ["test_instances.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "test_instance_id", "question_order", name="uq_snapshot_test_order"
        ),
    )
    op.create_index(
        "ix_test_question_snapshots_test_instance_id",
        "test_question_snapshots",
        ["test_instance_id"],
    )

    op.create_table(
        "test_question_responses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_instance_id", sa.String(length=36), nullable=False),
        sa.Column("candidate_id", sa.String(length=64), nullable=False),
        sa.Column("question_snapshot_id", sa.String(length=36), nullable=False),
        sa.Column("selected_answers", sa.JSON(), nullable=False),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("points_earned", sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(
            ["test_instance_id"], ["test_instances.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["question_snapshot_id"],
            ["test_question_snapshots.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "candidate_id",
            "question_snapshot_id",
            name="uq_response_candidate_snapshot",
        ),
    )
    op.create_index(
        "ix_test_question_responses_test_instance_id",
        "test_question_responses",
        ["test_instance_id"],
    )

    op.create_table(
        "test_video_responses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("test_instance_id", sa.String(length=36), nullable=False),
        sa.Column("candidate_id", sa.String(length=64), nullable=False),
        sa.Column("question_snapshot_id", sa.String(length=36), nullable=True),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.Column("response_type", video_response_type, nullable=True),
        sa.Column("blob_reference", sa.String(length=1024), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=True),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["test_instance_id"], ["test_instances.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["question_snapshot_id"],
            ["test_question_snapshots.id"],
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_test_video_responses_test_instance_id",
        "test_video_responses",
        ["test_instance_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_test_video_responses_test_instance_id", table_name="test_video_responses"
    )
    op.drop_table("test_video_responses")
    op.drop_index(
        "ix_test_question_responses_test_instance_id",
        table_name="test_question_responses",
    )
    op.drop_table("test_question_responses")
    op.drop_index(
        "ix_test_question_snapshots_test_instance_id",
        table_name="test_question_snapshots",
    )
    op.drop_table("test_question_snapshots")
    op.drop_index(
        "ux_test_instances_candidate_type_submitted", table_name="test_instances"
    )
    op.drop_index("ux_test_instances_candidate_type_active", table_name="test_instances")
    op.drop_index("ix_test_instances_candidate_type", table_name="test_instances")
    op.drop_index("ix_test_instances_status", table_name="test_instances")
    op.drop_index("ix_test_instances_candidate_id", table_name="test_instances")
    op.drop_table("test_instances")
    op.drop_table("portuguese_reading_texts")
    op.drop_table("question_answers")
    op.drop_index(
        "ix_question_templates_type_difficulty", table_name="question_templates"
    )
    op.drop_index("ix_question_templates_is_active", table_name="question_templates")
    op.drop_table("question_templates")
    op.drop_index("ix_question_groups_test_type", table_name="question_groups")
    op.drop_table("question_groups")

    sa.Enum(name="videoresponsetype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="teststatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="testtype").drop(op.get_bind(), checkfirst=True)
