"""
morpherctl CLI Commands
"""

from .agent import app as agent_app
from .config import app as config_app
from .controller import app as controller_app

__all__ = ["agent_app", "config_app", "controller_app"]
