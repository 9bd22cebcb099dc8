import pytest
from videolens.core.errors import retry_with_backoff, error_message_for, CorruptMedia


def test_retry_exponential_backoff(no_sleep):
    attempts = []

    @retry_with_backoff(max_retries=3, initial_delay=1.0)
    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert flaky() == "ok"
    assert no_sleep == [1.0, 2.0]


def test_retry_linear_backoff_reraises_last_error(no_sleep):
    @retry_with_backoff(max_retries=3, initial_delay=2.0, linear=True)
    def always_fails():
        raise TimeoutError("slow")

    with pytest.raises(TimeoutError):
        always_fails()
    assert no_sleep == [2.0, 4.0]


def test_retry_stops_on_non_retryable(no_sleep):
    attempts = []

    @retry_with_backoff(max_retries=5, retryable=lambda e: not isinstance(e, CorruptMedia))
    def corrupt():
        attempts.append(1)
        raise CorruptMedia("Downloaded file is too small, possibly invalid")

    with pytest.raises(CorruptMedia):
        corrupt()
    assert len(attempts) == 1
    assert no_sleep == []


def test_error_message_for():
    assert error_message_for(ValueError("Video not found")) == "Video not found"
    assert error_message_for(RuntimeError()) == "Processing failed"
    assert error_message_for(RuntimeError("   ")) == "Processing failed"
