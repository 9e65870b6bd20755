"""
Network simulation middleware.

Stands in for the unreliability of a real network API:
- every response is held back by an artificial latency, success or failure
- mutating requests may be failed with a generic 500 before they reach any
  route, so an injected failure never leaves a partial write behind

Whether a request fails is decided by a failure policy, a plain callable
`(method, path) -> bool`, so tests can script exact success/failure sequences.
"""

import asyncio
import logging
import random
from collections import deque
from typing import Callable, Iterable, Optional, Protocol

from fastapi.responses import JSONResponse

from core.errors import InjectedServerError
from core.middleware.error_handling import error_envelope

logger = logging.getLogger(__name__)

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class FailurePolicy(Protocol):
    def __call__(self, method: str, path: str) -> bool: ...


class RandomFailurePolicy:
    """Fail with a fixed probability."""

    def __init__(self, rate: float = 0.1, rng: Optional[random.Random] = None):
        if not 0.0 <= rate <= 1.0:
            raise ValueError("Failure rate must be between 0 and 1")
        self.rate = rate
        self.rng = rng or random.Random()

    def __call__(self, method: str, path: str) -> bool:
        return self.rng.random() < self.rate


class NeverFail:
    def __call__(self, method: str, path: str) -> bool:
        return False


class AlwaysFail:
    def __call__(self, method: str, path: str) -> bool:
        return True


class ScriptedFailurePolicy:
    """
    Replay a fixed sequence of outcomes (True = fail), one per mutating
    request. Once exhausted, falls back to `default`.
    """

    def __init__(self, outcomes: Iterable[bool], default: bool = False):
        self.outcomes = deque(outcomes)
        self.default = default
        self.calls: list[tuple[str, str]] = []

    def push(self, *outcomes: bool) -> None:
        self.outcomes.extend(outcomes)

    def __call__(self, method: str, path: str) -> bool:
        self.calls.append((method, path))
        if self.outcomes:
            return self.outcomes.popleft()
        return self.default


class SimulationMiddleware:
    """
    Pure ASGI middleware injecting latency and faults.

    Args:
        app: The ASGI application
        latency: Seconds to wait before the response starts
        failure_policy: Decides which mutating requests fail
    """

    def __init__(
        self,
        app: Callable,
        latency: float = 0.5,
        failure_policy: Optional[Callable[[str, str], bool]] = None,
    ):
        self.app = app
        self.latency = latency
        self.failure_policy = failure_policy or NeverFail()

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = scope.get("path", "")

        if method in MUTATING_METHODS and self.failure_policy(method, path):
            logger.info(f"Injected server error: {method} {path}")
            exc = InjectedServerError()
            await self._delay()
            response = JSONResponse(
                status_code=exc.status_code,
                content=error_envelope(exc.code, exc.message, path, method),
            )
            await response(scope, receive, send)
            return

        async def delayed_send(message: dict) -> None:
            if message["type"] == "http.response.start":
                await self._delay()
            await send(message)

        await self.app(scope, receive, delayed_send)

    async def _delay(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
