"""
Public exports for the agent package.
"""

from .config import LoopConfig
from .core import AgentLoop

__all__ = ["AgentLoop", "LoopConfig"]
