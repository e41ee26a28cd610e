import logging

import pytest

from yancpy.env import default_worker_count, parse_int_env, parse_log_level_env
from yancpy.numerics import SchedulerNumerics


def test_parse_int_env_defaults_and_minimum(monkeypatch):
    monkeypatch.delenv("YANC_TEST_INT", raising=False)
    assert parse_int_env("YANC_TEST_INT", default=7, minimum=3) == 7

    monkeypatch.setenv("YANC_TEST_INT", "")
    assert parse_int_env("YANC_TEST_INT", default=7, minimum=3) == 7

    monkeypatch.setenv("YANC_TEST_INT", "2")
    assert parse_int_env("YANC_TEST_INT", default=7, minimum=3) == 3

    monkeypatch.setenv("YANC_TEST_INT", "10")
    assert parse_int_env("YANC_TEST_INT", default=7, minimum=3) == 10

    monkeypatch.setenv("YANC_TEST_INT", "ten")
    assert parse_int_env("YANC_TEST_INT", default=7, minimum=3) == 7


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        ("NUMERICS", 15),
        ("30", 30),
        ("", logging.ERROR),
        ("chatty", logging.ERROR),
    ],
)
def test_parse_log_level_env(monkeypatch, raw: str, expected: int):
    import yancpy.log  # noqa: F401  registers NUMERICS

    monkeypatch.setenv("YANC_TEST_LEVEL", raw)
    assert parse_log_level_env("YANC_TEST_LEVEL", default=logging.ERROR) == expected


def test_worker_count_from_environment(monkeypatch):
    monkeypatch.setenv("YANC_WORKERS", "3")
    assert default_worker_count() == 3
    assert SchedulerNumerics().workers == 3

    monkeypatch.setenv("YANC_WORKERS", "0")
    assert default_worker_count() == 1

    monkeypatch.delenv("YANC_WORKERS")
    assert default_worker_count() >= 1
