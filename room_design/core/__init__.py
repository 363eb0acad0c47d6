"""
Core components for the room design service.
"""

from .auth import AuthService
from .design_repository import DesignRepository
from .leaderboard import LeaderboardView
from .mutation_engine import DesignMutationEngine
from .rotation_scheduler import ThemeRotationScheduler
from .submission_manager import SubmissionManager
from .theme_lifecycle import CurrentThemeRef, ThemeLifecycle
from .theme_notifier import ThemeNotifier
from .voting_engine import VotingEngine

__all__ = [
    "AuthService",
    "CurrentThemeRef",
    "DesignMutationEngine",
    "DesignRepository",
    "LeaderboardView",
    "SubmissionManager",
    "ThemeLifecycle",
    "ThemeNotifier",
    "ThemeRotationScheduler",
    "VotingEngine",
]
