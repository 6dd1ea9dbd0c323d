"""
Bounded retry policy for store calls.

Every call to the package store goes through one `RetryPolicy`: a fixed
number of attempts with a fixed delay in between, implemented with tenacity.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from cloudsmith_resource.core.exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_DELAY_SECONDS = 5.0


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-delay retry policy.

    Attributes:
        max_attempts: Total number of attempts, including the first one
        delay_seconds: Pause between two attempts
        sleep: Sleep function, replaceable in tests
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def call(self, operation: Callable[..., T], *args, **kwargs) -> T:
        """
        Run `operation` until it succeeds or the attempts are used up.

        Raises:
            RetryExhaustedError: With the last failure as its cause
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(Exception),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=False,
        )
        try:
            return retrying(operation, *args, **kwargs)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            name = getattr(operation, "__name__", repr(operation))
            raise RetryExhaustedError(
                f"Error while retrying {name}",
                attempts=self.max_attempts,
                last_error=last_error,
            ) from last_error

