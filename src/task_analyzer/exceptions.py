"""Unified exception hierarchy for task-analyzer."""


class TaskAnalyzerError(Exception):
    """Base exception for all task-analyzer errors."""


# Capture
class ValidationError(TaskAnalyzerError):
    """Malformed input event or URL. Discarded silently by the capture path."""


# Analysis run
class ConfigurationError(TaskAnalyzerError):
    """Missing or invalid credential or setting."""


class NoDataError(TaskAnalyzerError):
    """Nothing was recorded for the current day."""


class ServiceError(TaskAnalyzerError):
    """Analysis service failed: transport, non-success status or unparsable result."""


# Storage
class StorageError(TaskAnalyzerError):
    """Failed to read or write persisted state."""


# Scheduling
class SchedulerError(TaskAnalyzerError):
    """Invalid schedule definition."""
