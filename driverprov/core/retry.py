# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Bounded retry with a fixed delay.

Every network call site wraps itself independently; there is no shared retry
budget, no backoff growth and no jitter.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar, Union

from .exceptions import DriverProvError

T = TypeVar("T")

ExcTypes = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay_s: float = 5.0


def is_retryable(exc: BaseException) -> bool:
    """Project errors say for themselves; anything else caught is assumed transient."""
    if isinstance(exc, DriverProvError):
        return bool(exc.retryable)
    return True


def retry_operation(
    operation: Callable[[], T],
    *,
    max_attempts: int = 3,
    delay_s: float = 5.0,
    exceptions: ExcTypes = Exception,
    should_retry: Callable[[BaseException], bool] = is_retryable,
    operation_name: str = "operation",
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run operation up to max_attempts times, sleeping delay_s between attempts.

    Args:
        operation: zero-argument callable
        max_attempts: total attempts, values below 1 are treated as 1
        delay_s: fixed pause between attempts
        exceptions: exception type(s) that are candidates for a retry
        should_retry: final say on a caught exception; False re-raises at once
        operation_name: label for log lines
        logger: where retry warnings go (None: silent)
        sleep: injectable for tests

    Returns:
        Result of the first successful attempt

    Raises:
        The last exception once attempts are exhausted, or the first
        non-retryable one.

    Example:
        release = retry_operation(
            lambda: client.get_release("v1"),
            max_attempts=3,
            operation_name="release lookup",
            logger=log,
        )
    """
    attempts = max(1, int(max_attempts))

    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except exceptions as e:
            if not should_retry(e):
                raise
            if attempt >= attempts:
                if logger and attempts > 1:
                    logger.error("%s failed after %d attempts: %s", operation_name, attempts, e)
                raise

            if logger:
                logger.warning(
                    "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                    operation_name,
                    attempt,
                    attempts,
                    e,
                    delay_s,
                )
            sleep(delay_s)

    # Unreachable: the loop either returns or raises.
    raise RuntimeError(f"{operation_name} failed with no exception recorded")


def retry_with_policy(
    policy: RetryPolicy,
    operation: Callable[[], T],
    *,
    operation_name: str,
    logger: Optional[logging.Logger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    return retry_operation(
        operation,
        max_attempts=policy.max_attempts,
        delay_s=policy.delay_s,
        operation_name=operation_name,
        logger=logger,
        sleep=sleep,
    )
