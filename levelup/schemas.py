from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import List, Literal, Optional

AttributeType = Literal["brain", "health", "skill", "discipline", "focus"]
DifficultyLevel = Literal["trivial", "easy", "medium", "hard"]
RoleType = Literal["admin", "user"]


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Habit schemas
class HabitBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    attribute: AttributeType
    difficulty: DifficultyLevel

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _strip_required(value)


class HabitCreate(HabitBase):
    pass


class HabitUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    attribute: Optional[AttributeType] = None
    difficulty: Optional[DifficultyLevel] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _strip_required(value) if value is not None else value


class HabitResponse(HabitBase):
    id: int
    xp_value: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class DashboardHabit(HabitResponse):
    completed_today: bool = False


# Completion schemas
class CompletionResponse(BaseModel):
    id: int
    habit_id: int
    completed_date: date
    xp_earned: int
    completed_at: datetime

    class Config:
        from_attributes = True


# Profile schemas
class OnboardingRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    habits: List[HabitCreate] = Field(..., min_length=1, max_length=20)

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, value: str) -> str:
        return _strip_required(value)


class ProfileResponse(BaseModel):
    user_id: str
    full_name: str
    email: str
    current_xp: int
    current_level: int
    streak_count: int
    rank: str
    next_level_xp: float
    progress: float  # 0..1


class ToggleResponse(BaseModel):
    habit_id: int
    completed: bool
    xp_delta: int
    completed_date: date
    profile: ProfileResponse


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    habits: List[DashboardHabit]
    completed_count: int
    total_count: int
    effective_date: date


# Skills schemas
class AttributeProgressResponse(BaseModel):
    attribute: AttributeType
    xp: int
    level: int
    next_level_xp: int
    progress: float  # 0..1
    habits_count: int


class LevelInfoResponse(BaseModel):
    level: int
    rank: str
    required_xp: float


# Admin schemas
class AdminUserResponse(BaseModel):
    user_id: str
    full_name: str
    email: str
    current_level: int
    current_xp: int
    role: RoleType
    total_habits_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    created_at: Optional[datetime] = None
