"""
Base Tool

Abstract base class for model-callable tools, and the static registry the
tools are collected into at startup. Dispatch goes through explicit names;
nothing is discovered at runtime.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger("loginspector.tools.base")


class Tool(ABC):
    """
    Abstract base class for tools.

    Each tool must provide:
    - name: Stable identifier used by the model to call it
    - description: What the tool does and which arguments it expects
    - invoke: Run with an argument dict and return a result dict
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def invoke(self, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run the tool.

        Args:
            arguments: Named arguments from the caller; may be missing

        Returns:
            Result dict with at least ``success``
        """
        pass

    @staticmethod
    def argument(arguments: Optional[Dict[str, Any]], key: str) -> str:
        """String argument, with None and non-dict input read as empty."""
        if not isinstance(arguments, dict):
            return ""
        value = arguments.get(key)
        return "" if value is None else str(value)


class ToolRegistry:
    """Name-to-tool mapping built once at startup"""

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> Tool:
        """
        Add a tool.

        Raises:
            ValueError: if the tool has no name or the name is taken
        """
        if not tool.name:
            raise ValueError(f"{type(tool).__name__} has no name")
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.info("Registered tool '%s'", tool.name)
        return tool

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        Raises:
            KeyError: if no tool has that name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(f"Unknown tool '{name}'") from None

    def names(self) -> List[str]:
        return list(self._tools)

    def describe(self) -> List[Dict[str, str]]:
        """Name and description of every tool, for a model's tool schema."""
        return [{"name": t.name, "description": t.description} for t in self._tools.values()]

    def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.get(name).invoke(arguments)
