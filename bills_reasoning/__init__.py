from .client import (
    ReasoningAnswer,
    ReasoningError,
    ReasoningHTTPError,
    ReasoningTimeout,
    ask,
)

__all__ = [
    "ReasoningAnswer",
    "ReasoningError",
    "ReasoningHTTPError",
    "ReasoningTimeout",
    "ask",
]
