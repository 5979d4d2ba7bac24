"""
Skills service.
Aggregates completion XP per attribute and converts it with the attribute curve.
"""
from typing import Dict, List
from sqlalchemy.orm import Session

from levelup.auth import UserContext
from levelup.constants import ATTRIBUTES
from levelup.repositories.habit_repository import CompletionRepository, HabitRepository
from levelup.schemas import AttributeProgressResponse
from levelup.services.progression import summarize_attribute


class SkillsService:
    """Service for per-attribute sub-progression"""

    def __init__(self, db: Session):
        self.db = db

    def attribute_xp(self, user: UserContext) -> Dict[str, int]:
        """Summed xp_earned per attribute (every attribute present)"""
        totals = CompletionRepository.sum_xp_by_attribute(self.db, user.user_id)
        return {attribute: totals.get(attribute, 0) for attribute in ATTRIBUTES}

    def get_skills(self, user: UserContext) -> List[AttributeProgressResponse]:
        xp_by_attribute = self.attribute_xp(user)
        habit_counts = HabitRepository.count_active_by_attribute(self.db, user.user_id)

        skills = []
        for attribute in ATTRIBUTES:
            snapshot = summarize_attribute(attribute, xp_by_attribute[attribute])
            skills.append(AttributeProgressResponse(
                attribute=attribute,
                xp=snapshot.xp,
                level=snapshot.level,
                next_level_xp=snapshot.next_level_xp,
                progress=snapshot.progress,
                habits_count=habit_counts.get(attribute, 0),
            ))
        return skills
