"""
Planboard - project planning document engine

Keeps one JSON project document consistent across timeline, board,
backlog, time log, retrospective and milestone views.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from planboard.core.config.models import PlanboardConfig
from planboard.core.document.models import Document, Sprint, Task

__all__ = ["Document", "PlanboardConfig", "Sprint", "Task", "__version__"]
