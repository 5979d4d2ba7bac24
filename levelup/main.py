from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import List
import logging
import os
from pathlib import Path

from levelup.database import engine, get_db, Base
from levelup import models  # Import all models to register them with Base
from levelup.auth import UserContext, get_current_user, require_admin
from levelup.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS,
    AUTO_RESET_ENABLED, MAX_LEVEL
)
from levelup.exceptions import (
    LevelUpException, ProfileNotFoundException, ProfileAlreadyExistsException,
    UserNotFoundException, HabitNotFoundException, HabitInactiveException,
    DuplicateCompletionException, PermissionDeniedException, ValidationException
)
from levelup.schemas import (
    HabitCreate, HabitUpdate, HabitResponse, DashboardHabit, CompletionResponse,
    OnboardingRequest, ProfileResponse, ToggleResponse, DashboardResponse,
    AttributeProgressResponse, LevelInfoResponse, AdminUserResponse
)
from levelup.services.admin_service import AdminService
from levelup.services.completion_service import CompletionService
from levelup.services.date_service import DateService
from levelup.services.events import ChangeEvent, notifier
from levelup.services.habit_service import HabitService
from levelup.services.profile_service import ProfileService, build_profile_response
from levelup.services.progression import rank_for_level, required_xp
from levelup.services.scheduler_service import start_scheduler, stop_scheduler
from levelup.services.skills_service import SkillsService

LOG_DIR = os.getenv("LEVELUP_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("LEVELUP_LOG_FILE", "levelup.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("levelup")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="LevelUp API",
    description="Gamified habit tracker with XP, levels and ranks",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _log_change(event: ChangeEvent):
    logger.debug(f"Change: {event.table} {event.action} for {event.user_id}")


notifier.subscribe(_log_change)


def to_http_error(e: LevelUpException) -> HTTPException:
    """Translate a service exception into an HTTP error"""
    if isinstance(e, ProfileNotFoundException):
        return HTTPException(
            status_code=404,
            detail={"message": str(e), "onboarding_required": True}
        )
    if isinstance(e, (HabitNotFoundException, UserNotFoundException)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (ProfileAlreadyExistsException, DuplicateCompletionException, HabitInactiveException)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PermissionDeniedException):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ValidationException):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Request failed: {e}")
    return HTTPException(status_code=500, detail=str(e))


@app.on_event("startup")
async def startup_event():
    logger.info(f"LevelUp API started. Logging to: {log_path}")
    if AUTO_RESET_ENABLED:
        start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down LevelUp API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "LevelUp API", "status": "active"}


# ===== PROFILE ENDPOINTS =====

@app.get("/api/profile", response_model=ProfileResponse)
def get_profile(user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get the caller's profile with rank and level progress"""
    try:
        return ProfileService(db).get_profile_view(user.user_id)
    except LevelUpException as e:
        raise to_http_error(e)


@app.post("/api/profile", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
    data: OnboardingRequest,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Onboarding: create profile and initial habits"""
    try:
        profile = ProfileService(db).create_profile(user, data)
        return build_profile_response(profile)
    except LevelUpException as e:
        raise to_http_error(e)


@app.get("/api/dashboard", response_model=DashboardResponse)
def get_dashboard(user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Profile, active habits and today's completion state"""
    try:
        date_service = DateService()
        profile = ProfileService(db).get_profile_view(user.user_id)
        habits = HabitService(db, date_service=date_service).list_habits(user)
        completion_service = CompletionService(db, date_service=date_service)
        done_ids = {c.habit_id for c in completion_service.get_today_completions(user)}
    except LevelUpException as e:
        raise to_http_error(e)

    items = [
        DashboardHabit.model_validate(h).model_copy(update={"completed_today": h.id in done_ids})
        for h in habits
    ]
    return DashboardResponse(
        profile=profile,
        habits=items,
        completed_count=sum(1 for item in items if item.completed_today),
        total_count=len(items),
        effective_date=date_service.get_effective_date(),
    )


# ===== HABIT ENDPOINTS =====

@app.get("/api/habits", response_model=List[HabitResponse])
def list_habits(
    include_inactive: bool = False,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's habits"""
    return HabitService(db).list_habits(user, active_only=not include_inactive)


@app.post("/api/habits", response_model=HabitResponse, status_code=status.HTTP_201_CREATED)
def create_habit(data: HabitCreate, user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Create a habit (XP value follows difficulty)"""
    try:
        return HabitService(db).create_habit(user, data)
    except LevelUpException as e:
        raise to_http_error(e)


@app.get("/api/habits/{habit_id}", response_model=HabitResponse)
def get_habit(habit_id: int, user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return HabitService(db).get_habit(user, habit_id)
    except LevelUpException as e:
        raise to_http_error(e)


@app.put("/api/habits/{habit_id}", response_model=HabitResponse)
def update_habit(
    habit_id: int,
    data: HabitUpdate,
    user: UserContext = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update a habit"""
    try:
        return HabitService(db).update_habit(user, habit_id, data)
    except LevelUpException as e:
        raise to_http_error(e)


@app.delete("/api/habits/{habit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_habit(habit_id: int, user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete a habit"""
    try:
        HabitService(db).delete_habit(user, habit_id)
    except LevelUpException as e:
        raise to_http_error(e)


@app.post("/api/habits/{habit_id}/toggle", response_model=ToggleResponse)
def toggle_habit(habit_id: int, user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Complete a habit for today, or undo today's completion"""
    try:
        result = CompletionService(db).toggle_habit(user, habit_id)
    except LevelUpException as e:
        raise to_http_error(e)

    return ToggleResponse(
        habit_id=result.habit_id,
        completed=result.completed,
        xp_delta=result.xp_delta,
        completed_date=result.completed_date,
        profile=build_profile_response(result.profile),
    )


# ===== COMPLETION ENDPOINTS =====

@app.get("/api/completions/today", response_model=List[CompletionResponse])
def get_today_completions(user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    return CompletionService(db).get_today_completions(user)


@app.get("/api/completions", response_model=List[CompletionResponse])
def get_all_completions(user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    return CompletionService(db).get_all_completions(user)


# ===== PROGRESSION ENDPOINTS =====

@app.get("/api/skills", response_model=List[AttributeProgressResponse])
def get_skills(user: UserContext = Depends(get_current_user), db: Session = Depends(get_db)):
    """Per-attribute XP and levels"""
    return SkillsService(db).get_skills(user)


@app.get("/api/progression/level/{level}", response_model=LevelInfoResponse)
def get_level_info(level: int, _: UserContext = Depends(get_current_user)):
    """Rank and next-level XP threshold for a level"""
    if level < 1 or level > MAX_LEVEL:
        raise HTTPException(status_code=400, detail=f"Level must be between 1 and {MAX_LEVEL}")
    return LevelInfoResponse(level=level, rank=rank_for_level(level), required_xp=required_xp(level))


# ===== ADMIN ENDPOINTS =====

@app.get("/api/admin/users", response_model=List[AdminUserResponse])
def admin_list_users(_: UserContext = Depends(require_admin), db: Session = Depends(get_db)):
    return AdminService(db).list_users()


@app.post("/api/admin/users/{user_id}/reset", response_model=ProfileResponse)
def admin_reset_user(user_id: str, admin: UserContext = Depends(require_admin), db: Session = Depends(get_db)):
    """Reset a user's XP, level, streaks and completion logs"""
    try:
        profile = AdminService(db).reset_user_progress(admin, user_id)
        return build_profile_response(profile)
    except LevelUpException as e:
        raise to_http_error(e)


@app.delete("/api/admin/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_user(user_id: str, admin: UserContext = Depends(require_admin), db: Session = Depends(get_db)):
    """Delete a user account and all its data"""
    try:
        AdminService(db).delete_user(admin, user_id)
    except LevelUpException as e:
        raise to_http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("levelup.main:app", host="0.0.0.0", port=8000, reload=False)
