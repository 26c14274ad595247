import logging
from datetime import date, datetime

import pytest

from tradebook.errors import ValidationError
from tradebook.models.config import LoggingConfig
from tradebook.utils.logging_config import setup_from_config, setup_logging
from tradebook.utils.time_helpers import (
    business_days,
    format_duration,
    parse_date,
    parse_timeframe,
    period_start,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-05", datetime(2024, 3, 5)),
        ("2024-03-05T09:15:00", datetime(2024, 3, 5, 9, 15)),
        ("05/03/2024", datetime(2024, 3, 5)),
        ("20240305", datetime(2024, 3, 5)),
        (date(2024, 3, 5), datetime(2024, 3, 5)),
    ],
)
def test_parse_date(value, expected) -> None:
    assert parse_date(value) == expected


def test_parse_date_rejects_garbage() -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_date("next tuesday")

    assert exc_info.value.field == "date"


def test_parse_timeframe() -> None:
    assert parse_timeframe("1d") == (1, "d")
    assert parse_timeframe("15M") == (15, "m")
    with pytest.raises(ValueError):
        parse_timeframe("daily")


@pytest.mark.parametrize(
    "period, expected",
    [
        ("1W", datetime(2024, 3, 24)),
        ("1M", datetime(2024, 2, 29)),
        ("3M", datetime(2023, 12, 31)),
        ("1Y", datetime(2023, 3, 31)),
        ("bogus", datetime(2024, 2, 29)),
    ],
)
def test_period_start(period, expected) -> None:
    assert period_start(period, datetime(2024, 3, 31)) == expected


def test_period_start_all_is_unbounded() -> None:
    assert period_start("ALL", datetime(2024, 3, 31)) is None


def test_business_days_skip_weekends() -> None:
    days = business_days(date(2024, 1, 5), date(2024, 1, 8))

    assert [d.day for d in days] == [5, 8]


def test_format_duration() -> None:
    assert format_duration(30) == "30.0s"
    assert format_duration(90) == "1.5m"


def test_setup_logging_writes_to_file(tmp_path, restore_root_logger) -> None:
    log_file = tmp_path / "logs" / "tradebook.log"

    root = setup_logging(level="debug", log_file=str(log_file))
    logging.getLogger("tradebook.test").debug("hello ledger")
    for handler in root.handlers:
        handler.flush()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert "hello ledger" in log_file.read_text()


def test_setup_from_config(restore_root_logger) -> None:
    root = setup_from_config(LoggingConfig(level="warning"))

    assert root.level == logging.WARNING
    assert len(root.handlers) == 1


def test_setup_from_config_verbose_forces_debug(restore_root_logger) -> None:
    root = setup_from_config(LoggingConfig(level="ERROR"), verbose=True)

    assert root.level == logging.DEBUG


def test_setup_logging_unknown_level_means_info(restore_root_logger) -> None:
    assert setup_logging(level="chatty").level == logging.INFO


def test_logging_config_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        LoggingConfig(level="LOUD")
