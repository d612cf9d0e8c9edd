"""
Small helpers for step definitions and API tests.

Durations are in milliseconds, matching Playwright.
"""
import asyncio
import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar('T')

MONTHS = {
    'January': '01', 'February': '02', 'March': '03', 'April': '04',
    'May': '05', 'June': '06', 'July': '07', 'August': '08',
    'September': '09', 'October': '10', 'November': '11', 'December': '12',
}


async def sleep(ms: float) -> None:
    await asyncio.sleep(ms / 1000)


async def retry_with_backoff(operation: Callable[[], Awaitable[T]], max_retries: int = 3,
                             initial_delay: float = 1000) -> T:
    """
    Await operation until it succeeds, doubling the delay after each failure.

    The last error is re-raised once max_retries attempts have failed.
    """
    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            if attempt == max_retries - 1:
                raise
            delay = initial_delay * (2 ** attempt)
            logger.warning(f"Attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay}ms")
            await sleep(delay)
    raise ValueError("max_retries must be at least 1")


async def retry_on_error(operation: Callable[[], Awaitable[T]], matcher: Callable[[Exception], bool],
                         max_retries: int = 3) -> T:
    """Retry operation immediately, but only for errors accepted by matcher"""
    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            if attempt < max_retries - 1 and matcher(e):
                logger.debug(f"Retrying after matched error: {e}")
                continue
            raise
    raise ValueError("max_retries must be at least 1")


async def poll_until(condition: Callable[[], Awaitable[bool]], timeout: float = 10000,
                     interval: float = 500) -> None:
    """Await condition every interval ms until it is true; TimeoutError after timeout ms"""
    deadline = time.monotonic() + timeout / 1000
    while time.monotonic() < deadline:
        if await condition():
            return
        await sleep(interval)
    raise TimeoutError(f"Polling timeout after {timeout}ms")


async def repeat_async(times: int, func: Callable[[], Awaitable[Any]]) -> None:
    for _ in range(times):
        await func()


def trim_url(url: str) -> str:
    """Remove trailing slashes"""
    return url.rstrip('/')


def random_int_in_range(min_value: int, max_value: int) -> int:
    """Random integer in [min_value, max_value], both inclusive"""
    return random.randint(min_value, max_value)


def random_string(length: int = 10) -> str:
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


def generate_test_id(prefix: str = "test") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{random_string(7)}"


def shorten_address(address: Optional[str], length: int = 4) -> str:
    """
    Shorten a wallet address for display.

    >>> shorten_address("0x1234567890abcdef")
    '0x1234...cdef'
    """
    if not address:
        return ""
    return f"{address[:length + 2]}...{address[-length:]}"


def convert_date_string(date_str: str) -> str:
    """
    Convert "Month/DD/YYYY" to "MM/DD/YYYY".

    >>> convert_date_string("January/1/2025")
    '01/01/2025'
    """
    month, day, year = date_str.split('/')
    if month not in MONTHS:
        raise ValueError(f"Unknown month name: {month}")
    return f"{MONTHS[month]}/{day.zfill(2)}/{year}"


def current_timestamp() -> str:
    """Current UTC time in ISO format"""
    return datetime.now(timezone.utc).isoformat()


def format_date(value: Union[float, datetime], fmt: str = "ISO") -> str:
    """
    Format a datetime or epoch milliseconds.

    ``ISO`` gives ISO 8601 in UTC; any other fmt is passed to strftime.
    """
    date = value if isinstance(value, datetime) else datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if fmt == "ISO":
        return date.isoformat()
    return date.strftime(fmt)


def pick_random(items: Sequence[T]) -> T:
    return random.choice(items)


def shuffle(items: Sequence[T]) -> List[T]:
    """Shuffled copy; items is left untouched"""
    shuffled = list(items)
    random.shuffle(shuffled)
    return shuffled
