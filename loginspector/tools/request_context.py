"""Request lifecycle tracing tool."""

from typing import Any, Dict, Optional

from ..retriever.orchestrator import RetrievalOrchestrator
from .base import Tool


class RequestContextTool(Tool):
    name = "request_context"
    description = (
        "Fetch all logs related to a specific request_id, trace_id, or session_id for complete "
        'request lifecycle tracking. REQUIRED: Provide an identifier parameter (e.g. "req_12345", '
        '"trace-abc-def", "session_xyz"). Perfect for debugging distributed systems and microservices.'
    )

    def __init__(self, orchestrator: RetrievalOrchestrator):
        self._orchestrator = orchestrator

    def invoke(self, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._orchestrator.trace(self.argument(arguments, "identifier"))
