"""
Question bank reader.

Queries the editable bank (templates, answer keys, curated groups, reading
texts). The engine never writes through this class.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.models import (
    PortugueseReadingText,
    QuestionGroup,
    QuestionTemplate,
    TestType,
)


@dataclass
class OrderedQuestionGroup:
    """A curated group with its active members in group order."""

    id: str
    group_name: str
    questions: List[QuestionTemplate] = field(default_factory=list)


class SqlQuestionBank:
    """Question bank backed by the application database."""

    def __init__(self, db: Session):
        self.db = db

    def _active_templates(self, test_type: TestType):
        return (
            self.db.query(QuestionTemplate)
            .options(selectinload(QuestionTemplate.answer))
            .filter(
                QuestionTemplate.test_type == test_type,
                QuestionTemplate.is_active.is_(True),
            )
        )

    def get_all_ordered(self, test_type: TestType) -> List[QuestionTemplate]:
        """
        Every active template of a type in canonical order.

        Templates without a display_order sort last, by creation time.
        """
        return (
            self._active_templates(test_type)
            .order_by(
                QuestionTemplate.display_order.is_(None),
                QuestionTemplate.display_order,
                QuestionTemplate.created_at,
                QuestionTemplate.id,
            )
            .all()
        )

    def get_random(
        self,
        test_type: TestType,
        count: int,
        difficulty: Optional[str] = None,
    ) -> List[QuestionTemplate]:
        """
        Up to ``count`` random active templates, filtered by difficulty when given.

        May return fewer than requested; the caller decides whether that is enough.
        """
        query = self._active_templates(test_type)
        if difficulty:
            query = query.filter(QuestionTemplate.difficulty_level == difficulty)
        return query.order_by(func.random()).limit(count).all()

    def get_question_group(self, test_type: TestType) -> Optional[OrderedQuestionGroup]:
        """The most recent active group for a type, or None if none is configured."""
        group = (
            self.db.query(QuestionGroup)
            .filter(
                QuestionGroup.test_type == test_type,
                QuestionGroup.is_active.is_(True),
            )
            .order_by(QuestionGroup.created_at.desc())
            .first()
        )
        if group is None:
            return None

        members = (
            self.db.query(QuestionTemplate)
            .options(selectinload(QuestionTemplate.answer))
            .filter(
                QuestionTemplate.group_id == group.id,
                QuestionTemplate.is_active.is_(True),
            )
            .order_by(
                QuestionTemplate.group_order.is_(None),
                QuestionTemplate.group_order,
                QuestionTemplate.created_at,
            )
            .all()
        )
        return OrderedQuestionGroup(
            id=group.id, group_name=group.group_name, questions=members
        )

    def get_random_reading_text(
        self, difficulty: Optional[str] = None
    ) -> Optional[PortugueseReadingText]:
        query = self.db.query(PortugueseReadingText).filter(
            PortugueseReadingText.is_active.is_(True)
        )
        if difficulty:
            query = query.filter(PortugueseReadingText.difficulty_level == difficulty)
        return query.order_by(func.random()).first()
