"""
Core engine: visibility rules, derived views, live sync, reminders and fan-out.
"""
from teamsync.core.visibility import Scope, visibility_scope
from teamsync.core import views

__all__ = [
    "Scope",
    "visibility_scope",
    "views",
]
