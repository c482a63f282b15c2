"""
Custom exceptions for the goal tracker application.
Provides specific exception types for the store and boundary layers.
The progress engine itself never raises: bad input degrades to zero values.
"""


class GoalTrackerException(Exception):
    """Base exception for goal tracker application"""
    pass


class GoalNotFoundException(GoalTrackerException):
    """Raised when a goal is not found"""
    def __init__(self, goal_id):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class SharedGoalNotFoundException(GoalTrackerException):
    """Raised when a share token matches no shareable goal"""
    def __init__(self, share_token: str):
        self.share_token = share_token
        super().__init__("No shared goal for this link")


class LogNotFoundException(GoalTrackerException):
    """Raised when a log entry is not found"""
    def __init__(self, log_id):
        self.log_id = log_id
        super().__init__(f"Log entry with ID {log_id} not found")


class ValidationException(GoalTrackerException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class DatabaseException(GoalTrackerException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")
