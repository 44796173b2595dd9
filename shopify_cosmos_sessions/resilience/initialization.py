"""
One-time initialization supervisor for the session storage adapter.

The supervisor runs the provisioning sequence (ensure database exists, then
ensure container exists) at most once per adapter, tolerating transient
failures with bounded retries. It has four states:
- IDLE: Nothing has been attempted yet
- ATTEMPTING: A provisioning attempt or backoff is in progress
- READY: Provisioning succeeded; the result is cached
- FAILED: Provisioning failed for good; the error is cached

Each attempt races the provisioning coroutine against a per-attempt
timeout. A timed-out attempt is abandoned rather than cancelled: it keeps
running in the background and its outcome is discarded.

Authentication and configuration errors end the run immediately. Any other
error, or a timeout, is retried after a capped exponential backoff until
the retry budget is exhausted.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from azure.core.exceptions import ClientAuthenticationError
from azure.cosmos.exceptions import CosmosHttpResponseError

from shopify_cosmos_sessions.errors.exceptions import (
    AuthenticationError,
    ConfigurationError,
    authentication_failed,
    initialization_failed,
    initialization_timeout,
)
from shopify_cosmos_sessions.resilience.retry import RetryConfig
from shopify_cosmos_sessions.telemetry import start_span

logger = logging.getLogger(__name__)

UNAUTHORIZED_STATUS = 401


class InitState(Enum):
    """
    Enumeration of initialization states.

    The supervisor follows this state machine:
    - IDLE -> ATTEMPTING: On the first wait() or start()
    - ATTEMPTING -> ATTEMPTING: On a retryable failure with budget left
    - ATTEMPTING -> READY: On a successful attempt
    - ATTEMPTING -> FAILED: On a fatal error or exhausted budget
    """
    IDLE = "idle"
    ATTEMPTING = "attempting"
    READY = "ready"
    FAILED = "failed"


def is_authentication_error(error: BaseException) -> bool:
    """
    Check whether an error means the backend rejected the credentials.

    Args:
        error: The exception raised by a provisioning attempt

    Returns:
        True for azure-core authentication errors and Cosmos 401 responses
    """
    if isinstance(error, (AuthenticationError, ClientAuthenticationError)):
        return True
    return (
        isinstance(error, CosmosHttpResponseError)
        and error.status_code == UNAUTHORIZED_STATUS
    )


def _discard_outcome(task: "asyncio.Future[Any]") -> None:
    """Mark a task's exception as retrieved so asyncio never reports it."""
    if not task.cancelled():
        task.exception()


class InitializationSupervisor:
    """
    Runs a provisioning coroutine once, with retries, behind a shared task.

    All callers of wait() suspend on the same asyncio task and observe the
    same result or the same exception instance. Waiters are shielded, so a
    cancelled waiter never cancels the shared run.

    Example:
        supervisor = InitializationSupervisor(provision, RetryConfig())
        container = await supervisor.wait()

    Attributes:
        config: Retry schedule and per-attempt timeout
        name: Name used in log records and span attributes
    """

    def __init__(
        self,
        provision: Callable[[], Awaitable[Any]],
        config: Optional[RetryConfig] = None,
        name: str = "cosmosdb",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize the supervisor without starting it.

        Args:
            provision: Zero-argument coroutine function performing one
                provisioning attempt. Its return value becomes the result.
            config: Retry configuration. Uses defaults if not provided.
            name: Name used in log records
            sleep: Coroutine used to wait between attempts
        """
        self._provision = provision
        self.config = config or RetryConfig()
        self.name = name
        self._sleep = sleep
        self._state = InitState.IDLE
        self._attempts = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> InitState:
        """Get the current initialization state."""
        return self._state

    @property
    def attempts(self) -> int:
        """Number of provisioning attempts started so far."""
        return self._attempts

    @property
    def started(self) -> bool:
        """Whether the shared initialization task has been created."""
        return self._task is not None

    def start(self) -> asyncio.Task:
        """
        Start the shared initialization task if it is not running yet.

        Must be called from a running event loop.

        Returns:
            The shared task; every call returns the same object
        """
        if self._task is None:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run())
            # A failed run may never be awaited, e.g. after an eager start
            self._task.add_done_callback(_discard_outcome)
        return self._task

    async def wait(self) -> Any:
        """
        Wait for initialization to finish.

        Returns:
            The provisioning result

        Raises:
            AuthenticationError: If the backend rejected the credentials
            ConfigurationError: If the client could not be built
            InitializationTimeoutError: If the final attempt timed out
            InitializationError: If the retry budget was exhausted
        """
        return await asyncio.shield(self.start())

    async def _run(self) -> Any:
        retries = 0

        while True:
            self._state = InitState.ATTEMPTING
            self._attempts += 1

            try:
                with start_span("initialize", {"attempt": self._attempts}):
                    result = await self._attempt()
            except (AuthenticationError, ConfigurationError) as e:
                self._fail(e)
                raise
            except Exception as e:
                if is_authentication_error(e):
                    error = authentication_failed(e)
                    self._fail(error)
                    raise error from e

                timed_out = isinstance(e, TimeoutError)

                if retries >= self.config.max_retries:
                    if timed_out:
                        error = initialization_timeout(details={
                            "attempts": self._attempts,
                            "attempt_timeout_seconds": self.config.attempt_timeout,
                        })
                    else:
                        error = initialization_failed(e, attempts=self._attempts)
                    self._fail(error)
                    raise error from e

                delay = self.config.delay_for(retries)
                logger.warning(
                    "Initialization attempt %d/%d for '%s' failed with %s: %s. "
                    "Retrying in %.2f seconds...",
                    self._attempts,
                    self.config.max_attempts,
                    self.name,
                    type(e).__name__,
                    str(e),
                    delay,
                    extra={
                        "extra_data": {
                            "operation": "initialize",
                            "attempt": self._attempts,
                            "max_attempts": self.config.max_attempts,
                            "delay_seconds": delay,
                            "error_type": type(e).__name__,
                            "error_message": str(e),
                        }
                    }
                )
                await self._sleep(delay)
                retries += 1
                continue

            self._state = InitState.READY
            logger.info(
                "Initialization of '%s' succeeded after %d attempt(s)",
                self.name,
                self._attempts,
                extra={"extra_data": {"attempts": self._attempts}}
            )
            return result

    async def _attempt(self) -> Any:
        """
        Race one provisioning attempt against the per-attempt timeout.

        Raises:
            TimeoutError: If the attempt did not settle in time
        """
        task = asyncio.ensure_future(self._provision())
        done, _ = await asyncio.wait({task}, timeout=self.config.attempt_timeout)

        if not done:
            task.add_done_callback(_discard_outcome)
            raise TimeoutError(
                f"Initialization attempt exceeded {self.config.attempt_timeout} seconds"
            )

        return task.result()

    def _fail(self, error: BaseException) -> None:
        self._state = InitState.FAILED
        logger.error(
            "Initialization of '%s' failed after %d attempt(s): %s",
            self.name,
            self._attempts,
            str(error),
            extra={
                "extra_data": {
                    "attempts": self._attempts,
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            }
        )
