"""
Locating and running the Unity editor.
"""

from .discovery import EngineLocator, find_engine
from .invoker import EngineInvoker
from .process import ProcessRunner

__all__ = ["EngineInvoker", "EngineLocator", "ProcessRunner", "find_engine"]
