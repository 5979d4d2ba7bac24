"""
Habit repository - Data access layer for Habit and HabitCompletion models.
"""
from datetime import date
from typing import Dict, List, Optional
from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from levelup.models import Habit, HabitCompletion


class HabitRepository:
    """Repository for Habit data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: str, habit_id: int) -> Optional[Habit]:
        """Get a user's habit by ID"""
        return db.query(Habit).filter(
            and_(
                Habit.id == habit_id,
                Habit.user_id == user_id
            )
        ).first()

    @staticmethod
    def get_for_user(db: Session, user_id: str, active_only: bool = True) -> List[Habit]:
        """Get a user's habits, oldest first"""
        query = db.query(Habit).filter(Habit.user_id == user_id)
        if active_only:
            query = query.filter(Habit.is_active == True)
        return query.order_by(Habit.created_at, Habit.id).all()

    @staticmethod
    def count_active_by_attribute(db: Session, user_id: str) -> Dict[str, int]:
        """Count active habits per attribute"""
        rows = db.query(Habit.attribute, func.count(Habit.id)).filter(
            and_(
                Habit.user_id == user_id,
                Habit.is_active == True
            )
        ).group_by(Habit.attribute).all()
        return {attribute: count for attribute, count in rows}

    @staticmethod
    def create(db: Session, habit: Habit) -> Habit:
        db.add(habit)
        db.flush()
        return habit

    @staticmethod
    def delete(db: Session, habit: Habit) -> None:
        db.delete(habit)
        db.flush()

    @staticmethod
    def delete_for_user(db: Session, user_id: str) -> int:
        return db.query(Habit).filter(Habit.user_id == user_id).delete(
            synchronize_session=False
        )


class CompletionRepository:
    """Repository for HabitCompletion data access"""

    @staticmethod
    def get(db: Session, user_id: str, habit_id: int, completed_date: date) -> Optional[HabitCompletion]:
        """Get the completion record of a habit for one day"""
        return db.query(HabitCompletion).filter(
            and_(
                HabitCompletion.habit_id == habit_id,
                HabitCompletion.user_id == user_id,
                HabitCompletion.completed_date == completed_date
            )
        ).first()

    @staticmethod
    def get_for_date(db: Session, user_id: str, completed_date: date) -> List[HabitCompletion]:
        return db.query(HabitCompletion).filter(
            and_(
                HabitCompletion.user_id == user_id,
                HabitCompletion.completed_date == completed_date
            )
        ).all()

    @staticmethod
    def get_all(db: Session, user_id: str) -> List[HabitCompletion]:
        return db.query(HabitCompletion).filter(
            HabitCompletion.user_id == user_id
        ).order_by(HabitCompletion.completed_date.desc()).all()

    @staticmethod
    def get_completion_dates(db: Session, user_id: str) -> List[date]:
        """Get distinct days on which the user completed anything"""
        rows = db.query(HabitCompletion.completed_date).filter(
            HabitCompletion.user_id == user_id
        ).distinct().all()
        return [row[0] for row in rows]

    @staticmethod
    def get_totals(db: Session, user_id: str) -> tuple[int, int]:
        """Get (completion count, summed xp_earned) for a user"""
        count, total_xp = db.query(
            func.count(HabitCompletion.id),
            func.coalesce(func.sum(HabitCompletion.xp_earned), 0)
        ).filter(HabitCompletion.user_id == user_id).one()
        return int(count), int(total_xp)

    @staticmethod
    def sum_xp_by_attribute(db: Session, user_id: str) -> Dict[str, int]:
        """Sum xp_earned per habit attribute"""
        rows = db.query(
            Habit.attribute,
            func.sum(HabitCompletion.xp_earned)
        ).join(
            Habit, Habit.id == HabitCompletion.habit_id
        ).filter(
            HabitCompletion.user_id == user_id
        ).group_by(Habit.attribute).all()
        return {attribute: int(total or 0) for attribute, total in rows}

    @staticmethod
    def create(db: Session, completion: HabitCompletion) -> HabitCompletion:
        db.add(completion)
        db.flush()
        return completion

    @staticmethod
    def delete(db: Session, completion: HabitCompletion) -> None:
        db.delete(completion)
        db.flush()

    @staticmethod
    def delete_for_habit(db: Session, habit_id: int) -> int:
        return db.query(HabitCompletion).filter(
            HabitCompletion.habit_id == habit_id
        ).delete(synchronize_session=False)

    @staticmethod
    def delete_for_user(db: Session, user_id: str) -> int:
        return db.query(HabitCompletion).filter(
            HabitCompletion.user_id == user_id
        ).delete(synchronize_session=False)
