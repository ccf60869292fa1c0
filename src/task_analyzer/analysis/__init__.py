"""Activity summaries and the external analysis service boundary.

The Anthropic backend needs the optional extra. Use explicit imports:
    from task_analyzer.analysis.client import AnthropicAnalysisClient
"""

from task_analyzer.analysis.models import (
    ActivitySummary,
    AnalysisRecord,
    AnalysisResult,
    Level,
    Product,
    Task,
)
from task_analyzer.analysis.summarizer import summarize


def __getattr__(name):
    """Lazy imports for the service clients."""
    if name == "AnalysisClient":
        from task_analyzer.analysis.client import AnalysisClient
        return AnalysisClient
    if name == "AnthropicAnalysisClient":
        from task_analyzer.analysis.client import AnthropicAnalysisClient
        return AnthropicAnalysisClient
    if name == "BaseAnalysisClient":
        from task_analyzer.analysis.client import BaseAnalysisClient
        return BaseAnalysisClient
    raise AttributeError(f"module 'task_analyzer.analysis' has no attribute {name!r}")


__all__ = [
    "ActivitySummary",
    "AnalysisRecord",
    "AnalysisResult",
    "Level",
    "Product",
    "Task",
    "summarize",
    "AnalysisClient",
    "AnthropicAnalysisClient",
    "BaseAnalysisClient",
]
