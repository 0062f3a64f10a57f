"""Free-text log search tool."""

from typing import Any, Dict, Optional

from ..retriever.orchestrator import RetrievalOrchestrator
from .base import Tool


class LogSearchTool(Tool):
    name = "log_search"
    description = (
        "Search logs for relevant entries. REQUIRED: Provide a query string parameter with "
        'keywords to search for (e.g. "payment errors", "database timeouts", "security threats"). '
        "Supports both semantic and keyword-based search depending on platform capabilities."
    )

    def __init__(self, orchestrator: RetrievalOrchestrator):
        self._orchestrator = orchestrator

    def invoke(self, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._orchestrator.search(self.argument(arguments, "query"))
