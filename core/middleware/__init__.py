"""
Core middleware package.

This package provides the middleware of the simulated API:
- Error handling with sensitive data sanitization
- Structured logging with PII masking
- Network simulation (latency and fault injection)
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
    error_envelope,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)

from core.middleware.simulation import (
    SimulationMiddleware,
    FailurePolicy,
    RandomFailurePolicy,
    NeverFail,
    AlwaysFail,
    ScriptedFailurePolicy,
    MUTATING_METHODS,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    "error_envelope",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
    # Network simulation
    "SimulationMiddleware",
    "FailurePolicy",
    "RandomFailurePolicy",
    "NeverFail",
    "AlwaysFail",
    "ScriptedFailurePolicy",
    "MUTATING_METHODS",
]
