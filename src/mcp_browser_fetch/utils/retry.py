"""Retry logic for transient Selenium failures."""

import time
import random
from typing import Callable, Tuple, Type

from selenium.common.exceptions import StaleElementReferenceException


def retry_op(
    fn: Callable,
    retries: int = 2,
    base_delay: float = 0.15,
    retry_on: Tuple[Type[BaseException], ...] = (StaleElementReferenceException,),
):
    """
    Retry a function call that may fail due to transient Selenium exceptions.

    Args:
        fn: The function to call
        retries: Number of retry attempts (default: 2)
        base_delay: Base delay between retries in seconds (default: 0.15)
        retry_on: Exception types considered transient

    Returns:
        The result of the function call

    Raises:
        The last exception if all retries fail
    """
    for attempt in range(retries + 1):
        try:
            return fn()
        except retry_on:
            if attempt == retries:
                raise
            time.sleep(base_delay * (1.0 + random.random()))


__all__ = [
    "retry_op",
]
