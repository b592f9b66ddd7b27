"""
Reusable state machine for asynchronous data fetches.

Every data-fetching surface wraps its producer in an ``AsyncOperation`` and
reads ``status``/``data``/``error`` from it instead of tracking its own
loading flags:

    IDLE -> PENDING -> SUCCESS | ERROR
    SUCCESS | ERROR -> PENDING      (execute() again, e.g. a "Retry" action)
    any -> IDLE                     (reset())

The controller never retries on its own and never lets a producer failure
escape: failures become an ``ERROR`` state plus an ``on_error`` callback.

Overlapping executions are resolved by generation: each ``execute()`` takes
a new generation number and only the most recently started run may update
state or fire callbacks. Earlier runs still hand their own result back to
whoever awaited them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx
import structlog

from ..exceptions import ErrorKind, MarketDataError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AsyncStatus(str, Enum):
    """Lifecycle of one async operation."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ErrorInfo:
    """Normalized failure description exposed to callers."""

    message: str
    http_status: int | None = None
    kind: ErrorKind | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        """Map any exception onto the error taxonomy."""
        if isinstance(exc, MarketDataError):
            return cls(message=exc.message, http_status=exc.http_status, kind=exc.kind)

        if isinstance(exc, httpx.HTTPStatusError):
            return cls(
                message=str(exc),
                http_status=exc.response.status_code,
                kind=ErrorKind.UNKNOWN,
            )

        return cls(message=str(exc) or type(exc).__name__, kind=ErrorKind.UNKNOWN)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "http_status": self.http_status,
            "kind": self.kind.value if self.kind else None,
        }


@dataclass(frozen=True)
class AsyncState(Generic[T]):
    """Snapshot of an operation's state."""

    status: AsyncStatus
    data: T | None
    error: ErrorInfo | None


class AsyncOperation(Generic[T]):
    """
    Wraps one zero-argument coroutine function in an idle/pending/success/error
    state machine.

    Args:
        producer: Coroutine function producing the data
        initial_data: Data exposed before the first success, and after reset()
        run_immediately: Execute once at construction and on every deps change
        on_success: Called with the result after each current success
        on_error: Called with the ErrorInfo after each current failure
        deps: Initial dependency values (see set_deps)
    """

    def __init__(
        self,
        producer: Callable[[], Awaitable[T]],
        *,
        initial_data: T | None = None,
        run_immediately: bool = False,
        on_success: Callable[[T], None] | None = None,
        on_error: Callable[[ErrorInfo], None] | None = None,
        deps: tuple[Any, ...] = (),
    ):
        self._producer = producer
        self._initial_data = initial_data
        self._run_immediately = run_immediately
        self._on_success = on_success
        self._on_error = on_error
        self._deps = tuple(deps)

        self._status = AsyncStatus.IDLE
        self._data: T | None = initial_data
        self._error: ErrorInfo | None = None
        self._generation = 0
        self.current_task: asyncio.Task[T | None] | None = None

        if run_immediately:
            self.execute()

    # ------------------------------------------------------------------
    # State (read-only)
    # ------------------------------------------------------------------

    @property
    def status(self) -> AsyncStatus:
        return self._status

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def error(self) -> ErrorInfo | None:
        return self._error

    @property
    def state(self) -> AsyncState[T]:
        return AsyncState(status=self._status, data=self._data, error=self._error)

    @property
    def is_idle(self) -> bool:
        return self._status is AsyncStatus.IDLE

    @property
    def is_pending(self) -> bool:
        return self._status is AsyncStatus.PENDING

    @property
    def is_success(self) -> bool:
        return self._status is AsyncStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self._status is AsyncStatus.ERROR

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def execute(self) -> "asyncio.Task[T | None]":
        """
        Start the producer.

        The switch to PENDING happens before this method returns; the
        producer itself runs on the event loop. Await the returned task to get
        the result (None on failure). The task never raises.

        Raises:
            RuntimeError: If called without a running event loop
        """
        self._generation += 1
        generation = self._generation

        self._status = AsyncStatus.PENDING
        self._error = None

        task = asyncio.get_running_loop().create_task(self._run(generation))
        self.current_task = task
        return task

    async def _run(self, generation: int) -> T | None:
        try:
            result = await self._producer()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            info = ErrorInfo.from_exception(e)

            if generation != self._generation:
                logger.debug(
                    "async_operation_superseded", generation=generation, outcome="error"
                )
                return None

            self._error = info
            self._status = AsyncStatus.ERROR
            logger.info(
                "async_operation_failed", error=info.message, kind=info.kind
            )
            self._notify(self._on_error, info)
            return None

        if generation != self._generation:
            logger.debug(
                "async_operation_superseded", generation=generation, outcome="success"
            )
            return result

        self._data = result
        self._error = None
        self._status = AsyncStatus.SUCCESS
        self._notify(self._on_success, result)
        return result

    @staticmethod
    def _notify(callback: Callable[[Any], None] | None, value: Any) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception as e:
            # A broken callback must not corrupt the state machine
            logger.error("async_operation_callback_failed", error=str(e))

    def reset(self) -> None:
        """Return to IDLE with the initial data; in-flight runs go stale."""
        self._generation += 1
        self._status = AsyncStatus.IDLE
        self._error = None
        self._data = self._initial_data

    def set_deps(self, *deps: Any) -> None:
        """
        Report the current dependency values.

        On change, re-executes when ``run_immediately`` is set, otherwise
        returns to IDLE (data is kept).
        """
        if deps == self._deps:
            return

        self._deps = deps

        if self._run_immediately:
            self.execute()
        else:
            self._generation += 1
            self._status = AsyncStatus.IDLE
            self._error = None
