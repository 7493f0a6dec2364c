# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import MagicMock, patch

import pytest

from octopod_lib.core.error import LocationError, TransportError
from octopod_lib.core.retryer import Retryer


def test_retryer_success_first_try():
    mock_func = MagicMock(return_value=42)
    retryer = Retryer(mock_func, max_tries=5, wait_seconds=0.0)

    assert retryer.run() == 42
    mock_func.assert_called_once()


def test_retryer_retries_until_success():
    mock_func = MagicMock(
        side_effect=[TransportError("refused"), TransportError("refused again"), 99]
    )
    retryer = Retryer(mock_func, max_tries=5, wait_seconds=0.0)

    assert retryer.run() == 99
    assert mock_func.call_count == 3


def test_retryer_raises_after_max_tries():
    mock_func = MagicMock(side_effect=TransportError("persistent failure"))
    retryer = Retryer(mock_func, max_tries=3, wait_seconds=0.0)

    with pytest.raises(TransportError, match="persistent failure"):
        retryer.run()

    assert mock_func.call_count == 3


def test_retryer_does_not_retry_unlisted_exceptions():
    mock_func = MagicMock(side_effect=LocationError("bad location"))
    retryer = Retryer(
        mock_func, max_tries=3, wait_seconds=0.0, retry_on=(TransportError,)
    )

    with pytest.raises(LocationError):
        retryer.run()

    mock_func.assert_called_once()


def test_retryer_logs_warning_on_failure():
    mock_func = MagicMock(side_effect=[OSError("timed out"), 123])
    retryer = Retryer(mock_func, max_tries=3, wait_seconds=0.1)

    with (
        patch("octopod_lib.core.retryer.logger") as mock_logger,
        patch("octopod_lib.core.retryer.sleep") as mock_sleep,
    ):
        result = retryer.run()

    assert result == 123
    assert mock_logger.warning.call_count == 1
    mock_sleep.assert_called_once_with(0.1)

    logged_message = mock_logger.warning.call_args[0][0]
    assert "timed out" in logged_message
    assert "Attempting again in 0.1 seconds" in logged_message


def test_retryer_passes_args_and_kwargs():
    mock_func = MagicMock(return_value="ok")
    retryer = Retryer(mock_func, "host", 21, timeout=5, max_tries=2, wait_seconds=0.0)

    assert retryer.run() == "ok"
    mock_func.assert_called_once_with("host", 21, timeout=5)


def test_retryer_reraises_last_exception_unchanged():
    last = TransportError("connection reset", "ftp")
    mock_func = MagicMock(side_effect=[TransportError("refused", "ftp"), last])
    retryer = Retryer(mock_func, max_tries=2, wait_seconds=0.5)

    with (
        patch("octopod_lib.core.retryer.logger") as mock_logger,
        patch("octopod_lib.core.retryer.sleep") as mock_sleep,
        pytest.raises(TransportError) as exc_info,
    ):
        retryer.run()

    assert exc_info.value is last
    assert exc_info.value.message == "connection reset"
    # no wait after the final attempt
    mock_sleep.assert_called_once_with(0.5)
    assert mock_logger.warning.call_count == 1
    assert "Attempts exhausted" in mock_logger.debug.call_args[0][0]
