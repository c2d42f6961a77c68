"""
Read-only analytics derived from the project document.

Nothing here is stored; every figure is recomputed on request.
"""

from .burndown import BurndownData, get_burndown
from .milestones import calculate_milestone_progress, calculate_milestone_status
from .points import calculate_sprint_points, calculate_velocity

__all__ = [
    "BurndownData",
    "calculate_milestone_progress",
    "calculate_milestone_status",
    "calculate_sprint_points",
    "calculate_velocity",
    "get_burndown",
]
