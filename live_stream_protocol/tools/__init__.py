"""
Tools Layer - client-side tool registration and execution.

Components:
- ToolManager: registry of FunctionDeclarations and their handlers
"""

from .tool_manager import RegisteredTool, ToolHandler, ToolManager


__all__ = [
    "RegisteredTool",
    "ToolHandler",
    "ToolManager",
]
