"""Result dicts for CLI handlers.

Handlers return a Result instead of raising so the click layer only has to
decide how to print and which exit code to use.
"""

from typing import TypedDict, Optional, TypeVar, Callable, Any

T = TypeVar("T")


class Result(TypedDict):
    """Outcome of a handler call.

    Attributes:
        ok: True if the handler finished
        value: Handler payload (None on failure)
        error: "ExceptionType: message" (None on success)
    """

    ok: bool
    value: Optional[Any]
    error: Optional[str]


def success(value: T) -> Result:
    return Result(ok=True, value=value, error=None)


def failure(error: str) -> Result:
    return Result(ok=False, value=None, error=error)


def from_exception(exc: Exception) -> Result:
    """Build a failed Result naming the exception type."""
    return failure(f"{type(exc).__name__}: {exc}")


def try_operation(operation: Callable[[], T]) -> Result:
    """Run ``operation`` and wrap its return value or exception."""
    try:
        return success(operation())
    except Exception as exc:
        return from_exception(exc)


def unwrap(result: Result) -> Any:
    """Return the payload or raise ValueError with the recorded error."""
    if result["ok"]:
        return result["value"]
    raise ValueError(result["error"])
