import asyncio
import time
from typing import Awaitable, Callable, Dict, Iterable, Optional, TypeVar
from datetime import datetime, timezone

from skailink.errors import ErrorKind, VendorError
from skailink.obs.logger import log_event

T = TypeVar("T")

DEFAULT_RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})
DEFAULT_RETRYABLE_CODES = frozenset({"ECONNRESET", "ETIMEDOUT", "ECONNREFUSED"})
# Last-resort heuristic for exceptions that were not classified at a client boundary
_RETRYABLE_MESSAGE_HINTS = ("503", "timeout")


class RetryPolicy:
    """Fixed-delay retry for a zero-argument async operation.

    No jitter, no exponential growth, no shared state: each ``execute`` call
    starts from attempt 1. Non-retryable errors and the error of the final
    attempt are re-raised unchanged.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 2.0,
        retryable_statuses: Optional[Iterable[int]] = None,
        retryable_codes: Optional[Iterable[str]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.retryable_statuses = frozenset(
            retryable_statuses if retryable_statuses is not None else DEFAULT_RETRYABLE_STATUSES
        )
        self.retryable_codes = frozenset(
            retryable_codes if retryable_codes is not None else DEFAULT_RETRYABLE_CODES
        )
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            delay_seconds=settings.RETRY_DELAY_SECONDS,
            retryable_statuses=settings.RETRY_STATUS_CODES,
        )

    def is_retryable(self, exc: BaseException) -> bool:
        if isinstance(exc, VendorError):
            if exc.kind == ErrorKind.VALIDATION:
                return False
            return (
                exc.kind == ErrorKind.TRANSIENT
                or exc.status_code in self.retryable_statuses
                or exc.code in self.retryable_codes
            )
        status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
        if status in self.retryable_statuses:
            return True
        if getattr(exc, "code", None) in self.retryable_codes:
            return True
        message = str(exc).lower()
        return any(hint in message for hint in _RETRYABLE_MESSAGE_HINTS)

    def _signal(self, exc: BaseException):
        return (getattr(exc, "status_code", None) or getattr(exc, "code", None)
                or type(exc).__name__)

    async def execute(self, operation: Callable[[], Awaitable[T]], name: str = "operation") -> T:
        attempt = 1
        while True:
            try:
                result = await operation()
            except Exception as e:
                retryable = self.is_retryable(e)
                if retryable and attempt < self.max_attempts:
                    log_event(
                        "retry_scheduled",
                        level="WARNING",
                        operation=name,
                        attempt=attempt,
                        max_attempts=self.max_attempts,
                        signal=self._signal(e),
                        delay_s=self.delay_seconds,
                    )
                    await self._sleep(self.delay_seconds)
                    attempt += 1
                    continue
                log_event(
                    "retry_exhausted" if retryable else "retry_aborted",
                    level="ERROR",
                    operation=name,
                    attempt=attempt,
                    signal=self._signal(e),
                )
                raise
            if attempt > 1:
                log_event("retry_succeeded", operation=name, attempt=attempt)
            return result

    def describe(self) -> Dict:
        return {
            "enabled": True,
            "maxAttempts": self.max_attempts,
            "delayMs": int(self.delay_seconds * 1000),
            "retryableCodes": sorted(self.retryable_statuses),
        }


async def with_retry(operation: Callable[[], Awaitable[T]], max_attempts: int = 3,
                     delay_seconds: float = 2.0,
                     retryable_statuses: Optional[Iterable[int]] = None) -> T:
    return await RetryPolicy(max_attempts, delay_seconds, retryable_statuses).execute(operation)


class HealthChecker:
    def __init__(self):
        self.checks = {}

    def register_check(self, name: str, check_func: Callable):
        self.checks[name] = check_func

    async def run_checks(self) -> Dict:
        results = {}
        if self.checks:
            outcomes = await asyncio.gather(
                *(self._run_single_check(name, func) for name, func in self.checks.items())
            )
            results = dict(outcomes)

        all_healthy = all(r.get("status") == "healthy" for r in results.values())
        return {
            "status": "healthy" if all_healthy else "degraded",
            "checks": results,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def _run_single_check(self, name: str, check_func: Callable) -> tuple[str, Dict]:
        try:
            start = time.time()
            if asyncio.iscoroutinefunction(check_func):
                result = await check_func()
            else:
                result = check_func()

            duration = time.time() - start
            return name, {
                "status": "healthy" if result else "unhealthy",
                "duration_ms": int(duration * 1000),
            }
        except Exception as e:
            return name, {
                "status": "unhealthy",
                "error": str(e),
            }
