"""
Database models for the candidate assessment service.

Two groups of tables live here:

- The question bank (templates, answer keys, curated groups, reading texts).
  Recruiters edit these rows at any time.
- Per-attempt records (test instances, question snapshots, responses).
  Snapshots copy template content at creation time and never point back
  at the bank through a foreign key, so bank edits and deletions cannot
  reach an attempt that already exists.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TestType(str, enum.Enum):
    """Test type enumeration."""

    PORTUGUESE = "portuguese"
    MATH = "math"
    PSYCHOLOGY = "psychology"
    VISUAL_RETENTION = "visual_retention"
    INTERVIEW = "interview"


class TestStatus(str, enum.Enum):
    """Test instance status enumeration.

    not_started -> in_progress -> submitted, never backwards.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class VideoResponseType(str, enum.Enum):
    """Kind of recorded answer (Portuguese tests record a reading video too)."""

    READING = "reading"
    QUESTION_ANSWER = "question_answer"


# Statuses that count as an active attempt for the eligibility rule.
ACTIVE_TEST_STATUSES = (TestStatus.NOT_STARTED, TestStatus.IN_PROGRESS)


# =============================================================================
# Question bank
# =============================================================================


class QuestionGroup(Base):
    """Curated, ordered set of questions used by video-slot test types."""

    __tablename__ = "question_groups"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_type = Column(Enum(TestType), nullable=False, index=True)
    group_name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    questions = relationship(
        "QuestionTemplate",
        back_populates="group",
        order_by="QuestionTemplate.group_order",
    )


class QuestionTemplate(Base):
    """Editable question definition in the bank."""

    __tablename__ = "question_templates"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_type = Column(Enum(TestType), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)  # Opaque; structure depends on question type
    allow_multiple_answers = Column(Boolean, default=False, nullable=False)
    max_answers_allowed = Column(Integer, nullable=True)
    point_value = Column(Float, default=1.0, nullable=False)
    estimated_time_seconds = Column(Integer, nullable=True)
    difficulty_level = Column(String(20), nullable=True)
    category = Column(String(100), nullable=True)
    # Canonical order for fixed-order instruments (Psychology)
    display_order = Column(Integer, nullable=True)
    version = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    group_id = Column(
        String(36), ForeignKey("question_groups.id", ondelete="SET NULL"), nullable=True
    )
    group_order = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    answer = relationship(
        "QuestionAnswer",
        back_populates="question_template",
        uselist=False,
        cascade="all, delete-orphan",
    )
    group = relationship("QuestionGroup", back_populates="questions")

    __table_args__ = (
        Index("ix_question_templates_type_difficulty", "test_type", "difficulty_level"),
    )


class QuestionAnswer(Base):
    """Answer key for a template. Never serialized to candidates."""

    __tablename__ = "question_answers"

    id = Column(String(36), primary_key=True, default=_new_id)
    question_template_id = Column(
        String(36),
        ForeignKey("question_templates.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    correct_answer = Column(JSON, nullable=True)  # List of option identifiers
    expected_answer_guide = Column(JSON, nullable=True)  # Reference for manual grading

    question_template = relationship("QuestionTemplate", back_populates="answer")


class PortugueseReadingText(Base):
    """Reading passage assigned to Portuguese tests."""

    __tablename__ = "portuguese_reading_texts"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    difficulty_level = Column(String(20), nullable=True)
    version = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)


# =============================================================================
# Attempts
# =============================================================================


class TestInstance(Base):
    """One candidate's attempt at one test type. Never deleted."""

    __tablename__ = "test_instances"

    id = Column(String(36), primary_key=True, default=_new_id)
    candidate_id = Column(String(64), nullable=False, index=True)
    test_type = Column(Enum(TestType), nullable=False)
    status = Column(
        Enum(TestStatus), default=TestStatus.NOT_STARTED, nullable=False, index=True
    )
    difficulty_level = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    # Set by auto-grading on submission
    raw_score = Column(Float, nullable=True)
    max_possible_score = Column(Float, nullable=True)
    score = Column(Float, nullable=True)  # Percentage 0-100

    # Portuguese tests only
    portuguese_reading_text_id = Column(
        String(36), ForeignKey("portuguese_reading_texts.id"), nullable=True
    )
    portuguese_reading_text_version = Column(Integer, nullable=True)

    question_snapshots = relationship(
        "QuestionSnapshot",
        back_populates="test_instance",
        order_by="QuestionSnapshot.question_order",
        cascade="all, delete-orphan",
    )
    question_responses = relationship(
        "QuestionResponse", back_populates="test_instance", cascade="all, delete-orphan"
    )
    video_responses = relationship(
        "VideoResponse", back_populates="test_instance", cascade="all, delete-orphan"
    )
    portuguese_reading_text = relationship("PortugueseReadingText")

    # Enum columns store member names, hence the upper-case literals.
    __table_args__ = (
        Index("ix_test_instances_candidate_type", "candidate_id", "test_type"),
        # One non-terminal attempt per candidate and test type
        Index(
            "ux_test_instances_candidate_type_active",
            "candidate_id",
            "test_type",
            unique=True,
            postgresql_where=text("status IN ('NOT_STARTED', 'IN_PROGRESS')"),
            sqlite_where=text("status IN ('NOT_STARTED', 'IN_PROGRESS')"),
        ),
        # At most one submitted attempt per candidate and test type
        Index(
            "ux_test_instances_candidate_type_submitted",
            "candidate_id",
            "test_type",
            unique=True,
            postgresql_where=text("status = 'SUBMITTED'"),
            sqlite_where=text("status = 'SUBMITTED'"),
        ),
    )


class QuestionSnapshot(Base):
    """Frozen, attempt-scoped copy of a question template or a synthesized prompt."""

    __tablename__ = "test_question_snapshots"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_instance_id = Column(
        String(36),
        ForeignKey("test_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Plain reference, not a foreign key: the bank row may be edited or removed.
    question_template_id = Column(String(36), nullable=True)
    question_template_version = Column(Integer, nullable=True)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)
    allow_multiple_answers = Column(Boolean, default=False, nullable=False)
    max_answers_allowed = Column(Integer, nullable=True)
    question_order = Column(Integer, nullable=False)  # 1-based
    point_value = Column(Float, default=1.0, nullable=False)
    estimated_time_seconds = Column(Integer, nullable=True)
    correct_answer_snapshot = Column(JSON, nullable=True)
    expected_answer_guide_snapshot = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    test_instance = relationship("TestInstance", back_populates="question_snapshots")

    __table_args__ = (
        UniqueConstraint(
            "test_instance_id", "question_order", name="uq_snapshot_test_order"
        ),
    )


class QuestionResponse(Base):
    """Candidate's multiple-choice answer to one snapshot."""

    __tablename__ = "test_question_responses"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_instance_id = Column(
        String(36),
        ForeignKey("test_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    candidate_id = Column(String(64), nullable=False)
    question_snapshot_id = Column(
        String(36),
        ForeignKey("test_question_snapshots.id", ondelete="CASCADE"),
        nullable=False,
    )
    selected_answers = Column(JSON, nullable=False, default=list)
    response_time_ms = Column(Integer, nullable=True)
    answered_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Set only at grading time
    is_correct = Column(Boolean, nullable=True)
    points_earned = Column(Float, nullable=True)

    test_instance = relationship("TestInstance", back_populates="question_responses")
    question_snapshot = relationship("QuestionSnapshot")

    __table_args__ = (
        UniqueConstraint(
            "candidate_id", "question_snapshot_id", name="uq_response_candidate_snapshot"
        ),
    )


class VideoResponse(Base):
    """Metadata for a recorded answer; bytes live in blob storage."""

    __tablename__ = "test_video_responses"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_instance_id = Column(
        String(36),
        ForeignKey("test_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    candidate_id = Column(String(64), nullable=False)
    question_snapshot_id = Column(
        String(36),
        ForeignKey("test_question_snapshots.id", ondelete="SET NULL"),
        nullable=True,
    )
    question_number = Column(Integer, nullable=False)  # 1-based
    response_type = Column(Enum(VideoResponseType), nullable=True)
    blob_reference = Column(String(1024), nullable=False)
    content_type = Column(String(100), nullable=True)
    file_size_bytes = Column(BigInteger, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    test_instance = relationship("TestInstance", back_populates="video_responses")
