"""
morpherctl core: host commands, init system, preflight and the agent lifecycle
"""

from .lifecycle import AgentLifecycleManager
from .status import StatusResult, StatusSummary, VerificationResult, Verdict
from .target import AgentTarget

__all__ = [
    "AgentLifecycleManager",
    "AgentTarget",
    "StatusResult",
    "StatusSummary",
    "VerificationResult",
    "Verdict",
]
