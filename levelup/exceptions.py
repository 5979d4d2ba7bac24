"""
Custom exceptions for the LevelUp application.
Provides specific exception types for better error handling and recovery.
"""


class LevelUpException(Exception):
    """Base exception for LevelUp application"""
    pass


class ProfileNotFoundException(LevelUpException):
    """Raised when a user has a session but no profile yet (onboarding required)"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Profile for user {user_id} not found")


class ProfileAlreadyExistsException(LevelUpException):
    """Raised when onboarding is attempted twice"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Profile for user {user_id} already exists")


class UserNotFoundException(LevelUpException):
    """Raised when an admin targets an unknown user"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class HabitNotFoundException(LevelUpException):
    """Raised when a habit is not found"""
    def __init__(self, habit_id: int):
        self.habit_id = habit_id
        super().__init__(f"Habit with ID {habit_id} not found")


class HabitInactiveException(LevelUpException):
    """Raised when completing a habit that has been deactivated"""
    def __init__(self, habit_id: int):
        self.habit_id = habit_id
        super().__init__(f"Habit with ID {habit_id} is not active")


class DuplicateCompletionException(LevelUpException):
    """Raised when a habit already has a completion record for the day"""
    def __init__(self, habit_id: int, completed_date):
        self.habit_id = habit_id
        self.completed_date = completed_date
        super().__init__(
            f"Habit {habit_id} is already completed for {completed_date}"
        )


class PermissionDeniedException(LevelUpException):
    """Raised when the acting user may not perform an operation"""
    def __init__(self, message: str):
        super().__init__(f"Permission denied: {message}")


class DatabaseException(LevelUpException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class ValidationException(LevelUpException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
