from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from stepwright.helpers import page_helpers, utils


@pytest.fixture
def no_sleep():
    """Replace the async sleep so retries run instantly"""
    with patch.object(utils, "sleep", AsyncMock()) as mock_sleep:
        yield mock_sleep


class TestRetry:
    """Test retry helpers"""

    @pytest.mark.asyncio
    async def test_retry_with_backoff_succeeds(self, no_sleep):
        operation = AsyncMock(side_effect=[RuntimeError("flaky"), RuntimeError("flaky"), "ok"])

        assert await utils.retry_with_backoff(operation, max_retries=3, initial_delay=100) == "ok"
        assert [c.args[0] for c in no_sleep.await_args_list] == [100, 200]

    @pytest.mark.asyncio
    async def test_retry_with_backoff_reraises_last_error(self, no_sleep):
        operation = AsyncMock(side_effect=[RuntimeError("first"), RuntimeError("last")])

        with pytest.raises(RuntimeError, match="last"):
            await utils.retry_with_backoff(operation, max_retries=2)

    @pytest.mark.asyncio
    async def test_retry_on_error_only_for_matching_errors(self):
        operation = AsyncMock(side_effect=[TimeoutError("slow"), ValueError("bad"), "ok"])

        with pytest.raises(ValueError):
            await utils.retry_on_error(operation, lambda e: isinstance(e, TimeoutError))
        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_poll_until(self, no_sleep):
        condition = AsyncMock(side_effect=[False, False, True])

        await utils.poll_until(condition, timeout=10000, interval=10)

        assert condition.await_count == 3

    @pytest.mark.asyncio
    async def test_poll_until_times_out(self):
        with pytest.raises(TimeoutError, match="50ms"):
            await utils.poll_until(AsyncMock(return_value=False), timeout=50, interval=10)

    @pytest.mark.asyncio
    async def test_repeat_async(self):
        func = AsyncMock()
        await utils.repeat_async(3, func)
        assert func.await_count == 3


class TestFormatting:
    """Test string and date helpers"""

    def test_trim_url(self):
        assert utils.trim_url("https://example.com///") == "https://example.com"

    def test_shorten_address(self):
        assert utils.shorten_address("0x1234567890abcdef") == "0x1234...cdef"
        assert utils.shorten_address("") == ""
        assert utils.shorten_address(None) == ""

    def test_convert_date_string(self):
        assert utils.convert_date_string("January/1/2025") == "01/01/2025"
        assert utils.convert_date_string("December/24/2024") == "12/24/2024"

    def test_convert_date_string_unknown_month(self):
        with pytest.raises(ValueError, match="Unknown month"):
            utils.convert_date_string("Smarch/1/2025")

    def test_format_date(self):
        moment = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)

        assert utils.format_date(moment) == "2025-03-04T05:06:07+00:00"
        assert utils.format_date(moment, "%d/%m/%Y") == "04/03/2025"
        assert utils.format_date(moment.timestamp() * 1000, "%Y-%m-%d") == "2025-03-04"

    def test_current_timestamp_is_utc(self):
        assert utils.current_timestamp().endswith("+00:00")

    def test_generate_test_id(self):
        first, second = utils.generate_test_id("order"), utils.generate_test_id("order")
        assert first.startswith("order_")
        assert first != second

    def test_random_int_in_range(self):
        assert all(1 <= utils.random_int_in_range(1, 3) <= 3 for _ in range(50))

    def test_shuffle_returns_copy(self):
        items = [1, 2, 3, 4]
        shuffled = utils.shuffle(items)

        assert sorted(shuffled) == items
        assert items == [1, 2, 3, 4]

    def test_pick_random(self):
        assert utils.pick_random(["a", "b"]) in ("a", "b")


class TestPageHelpers:
    """Test page level helpers"""

    @pytest.mark.asyncio
    async def test_wait_for_network_idle(self, page):
        await page_helpers.wait_for_network_idle(page)
        page.wait_for_load_state.assert_awaited_once_with("networkidle", timeout=10000)

    @pytest.mark.asyncio
    async def test_take_screenshot(self, page, tmp_path):
        await page_helpers.take_screenshot(page, "home", tmp_path / "shots")

        page.screenshot.assert_awaited_once_with(path=str(tmp_path / "shots" / "home.png"), full_page=True)
        assert (tmp_path / "shots").is_dir()
