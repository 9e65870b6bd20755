"""
FastAPI application initialization and configuration.

The application is built around an explicitly constructed store:

    store = await Store(settings.store_url).init()
    app = create_app(store, settings)

It is normally served in-process through `httpx.ASGITransport` (see
`api.client`), where the ASGI lifespan never runs, so the store's lifecycle
belongs to the caller and not to the application.
"""

import logging
import random
from typing import Callable, Optional

from fastapi import FastAPI

from api.routes import assessments, candidates, jobs, users
from core.config import Settings, settings as default_settings
from core.middleware import (
    ErrorHandlingMiddleware,
    RandomFailurePolicy,
    SimulationMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
)
from database.store import Store

logger = logging.getLogger(__name__)


def create_app(
    store: Store,
    settings: Optional[Settings] = None,
    failure_policy: Optional[Callable[[str, str], bool]] = None,
    latency: Optional[float] = None,
) -> FastAPI:
    """
    Build the simulated API.

    Args:
        store: Initialized store the routes operate on
        settings: Settings (defaults to the module-level settings)
        failure_policy: `(method, path) -> bool`; defaults to a random policy
            at `settings.failure_rate`
        latency: Seconds of simulated latency (defaults to the settings)

    Returns:
        The FastAPI application
    """
    settings = settings or default_settings
    if failure_policy is None:
        failure_policy = RandomFailurePolicy(
            settings.failure_rate, random.Random(settings.failure_seed)
        )
    if latency is None:
        latency = settings.simulated_latency

    app = FastAPI(
        title=settings.app_name,
        description="Simulated hiring-pipeline API",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.store = store
    app.state.settings = settings

    # Setup error handlers (before middleware)
    setup_error_handlers(app)

    # Add middleware (order matters - they execute in reverse order)
    # 1. Error handling (innermost - turns unexpected exceptions into envelopes)
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

    # 2. Network simulation (latency and injected faults)
    app.add_middleware(
        SimulationMiddleware,
        latency=latency,
        failure_policy=failure_policy,
    )

    # 3. Structured logging (outermost - sees injected faults too)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        max_body_size=settings.log_max_body_size,
    )

    app.include_router(jobs.router)
    app.include_router(candidates.router)
    app.include_router(assessments.router)
    app.include_router(users.router)

    logger.info(
        f"Created {settings.app_name} app "
        f"(latency={latency:.3f}s, env={settings.app_env})"
    )
    return app
