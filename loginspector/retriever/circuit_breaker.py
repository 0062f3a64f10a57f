"""
Circuit Breaker

Latched availability flag for the semantic search path. Once tripped it
stays open until reset, so a failing collaborator is not retried on every
request. Shared by reference between the orchestrator and all tools; safe
to use from concurrently served requests.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger("loginspector.retriever.circuit_breaker")


class CircuitBreaker:
    """Thread-safe latched on/off switch"""

    def __init__(self, name: str = "semantic-search"):
        self.name = name
        self._lock = threading.Lock()
        self._available = True
        self._last_error: Optional[str] = None

    @property
    def available(self) -> bool:
        with self._lock:
            return self._available

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def trip(self, reason: str = "") -> None:
        """Open the breaker; later calls skip the guarded path."""
        with self._lock:
            was_available = self._available
            self._available = False
            self._last_error = reason or self._last_error
        if was_available:
            logger.info("Circuit '%s' opened: %s", self.name, reason or "no reason given")

    def reset(self) -> None:
        """Close the breaker again."""
        with self._lock:
            self._available = True
            self._last_error = None
        logger.info("Circuit '%s' reset", self.name)
