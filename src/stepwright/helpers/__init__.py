from .page_helpers import take_screenshot, wait_for_dom_content_loaded, wait_for_network_idle
from .utils import (
    convert_date_string,
    current_timestamp,
    format_date,
    generate_test_id,
    pick_random,
    poll_until,
    random_int_in_range,
    random_string,
    repeat_async,
    retry_on_error,
    retry_with_backoff,
    shorten_address,
    shuffle,
    sleep,
    trim_url,
)

__all__ = [
    'take_screenshot',
    'wait_for_dom_content_loaded',
    'wait_for_network_idle',
    'convert_date_string',
    'current_timestamp',
    'format_date',
    'generate_test_id',
    'pick_random',
    'poll_until',
    'random_int_in_range',
    'random_string',
    'repeat_async',
    'retry_on_error',
    'retry_with_backoff',
    'shorten_address',
    'shuffle',
    'sleep',
    'trim_url',
]
