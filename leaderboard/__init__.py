"""
Leaderboard - a ranked score display with a password-protected admin panel.

This package provides:
- Public web page and JSON API with the ranked leaderboard
- Admin panel to add, edit, delete and clear entries
- One-time admin setup gated by a server-held setup key
- Signed, expiring admin sessions
"""

from .config import LeaderboardConfig
from .database import LeaderboardStore
from .ranking import assign_ranks, calculate_ranks_with_ties
from .session import AdminGuard
from .setup_flow import SetupFlow
from .web_handlers import WebHandlers
from .server import LeaderboardSystem

__version__ = "1.0.0"
__author__ = "Leaderboard Contributors"

__all__ = [
    "LeaderboardConfig",
    "LeaderboardStore",
    "AdminGuard",
    "SetupFlow",
    "WebHandlers",
    "LeaderboardSystem",
    "assign_ranks",
    "calculate_ranks_with_ties",
]
