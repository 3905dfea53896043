"""
Standardized exception hierarchy for quest-engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class QuestEngineError(Exception):
    """
    Base exception for all quest-engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise QuestEngineError(
            message="Failed to save progression",
            user_id="alice",
            operation="process_completion",
            context={"task_id": "task-42"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(QuestEngineError):
    """
    Raised when caller input fails validation

    Examples:
    - Level below 1
    - Unknown priority
    - Unknown achievement key

    Example:
        raise ValidationError(
            message="Level must be >= 1",
            field="level",
            value=0
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


class InvalidAmountError(ValidationError):
    """Negative XP award attempted (programming error)"""

    def __init__(self, amount: int, **kwargs):
        self.amount = amount
        super().__init__(
            message=f"XP amount must be non-negative, got {amount}",
            field="amount",
            value=amount,
            **kwargs
        )


# ==========================================
# Task Source Errors
# ==========================================

class TaskNotFoundError(QuestEngineError):
    """Completed task cannot be resolved by the task source"""

    def __init__(
        self,
        task_id: str,
        message: Optional[str] = None,
        **kwargs
    ):
        self.task_id = task_id
        super().__init__(
            message=message or f"Task {task_id} not found",
            user_message="That task could not be found. It may have been deleted.",
            context={"task_id": task_id},
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(QuestEngineError):
    """
    Base class for persistence collaborator errors
    """
    pass


class PersistenceUnavailableError(PersistenceError):
    """Storage collaborator is unreachable"""

    def __init__(self, message: str = "Progression storage unavailable", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble saving your progress. Please try again in a moment.",
            **kwargs
        )


class AggregateFetchError(PersistenceError):
    """Achievement statistics could not be gathered"""

    def __init__(self, message: str = "Failed to fetch history aggregate", **kwargs):
        super().__init__(
            message=message,
            user_message="Achievements could not be checked right now. Your progress was saved.",
            **kwargs
        )


class AchievementUnlockError(PersistenceError):
    """
    Some earned achievements could not be recorded

    unlocked_keys holds the ones that were written before or after the
    failures; they stay unlocked.
    """

    def __init__(
        self,
        unlocked_keys: List[str],
        failed_keys: List[str],
        message: Optional[str] = None,
        **kwargs
    ):
        self.unlocked_keys = list(unlocked_keys)
        self.failed_keys = list(failed_keys)
        super().__init__(
            message=message or f"Failed to record achievement(s): {', '.join(self.failed_keys)}",
            user_message="Some achievements could not be saved right now. Your progress was saved.",
            context={"unlocked_keys": self.unlocked_keys, "failed_keys": self.failed_keys},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(QuestEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> QuestEngineError:
    """
    Wrap collaborator exceptions into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate QuestEngineError subclass

    Example:
        try:
            await store.save_progression(progression)
        except Exception as e:
            raise wrap_external_exception(
                e,
                operation="save_progression",
                user_id=progression.user_id
            )
    """
    if isinstance(error, QuestEngineError):
        return error

    if isinstance(error, (ConnectionError, TimeoutError, OSError)):
        return PersistenceUnavailableError(
            message=f"Storage unavailable during {operation}: {str(error)}",
            operation=operation,
            user_id=user_id,
            context=context,
            cause=error
        )

    return QuestEngineError(
        message=f"Unexpected error in {operation}: {str(error)}",
        operation=operation,
        user_id=user_id,
        context=context,
        cause=error
    )
