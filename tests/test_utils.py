from datetime import date, datetime

import pytest

from utils import app_config
from utils.date_helpers import (
    add_months,
    inclusive_days,
    month_range,
    parse_date,
    to_date,
)
from utils.errors import InvalidInputError


class TestDateHelpers:
    def test_parse_date_drops_time(self):
        assert parse_date("2025-09-01T23:30:00Z") == date(2025, 9, 1)
        assert parse_date("2025-09-01 08:00") == date(2025, 9, 1)

    def test_parse_date_failure(self):
        assert parse_date("") is None
        assert parse_date("2025-02-30") is None

    def test_to_date(self):
        assert to_date(datetime(2025, 9, 1, 12)) == date(2025, 9, 1)
        assert to_date("2025-09-01") == date(2025, 9, 1)
        with pytest.raises(InvalidInputError) as excinfo:
            to_date(None, "start_date")
        assert excinfo.value.field == "start_date"

    def test_month_helpers(self):
        assert month_range("2024-02") == ("2024-02-01", "2024-02-29")
        with pytest.raises(InvalidInputError):
            month_range("2025/02")

    def test_add_months_clamps(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2025, 3, 31), -1) == date(2025, 2, 28)

    def test_inclusive_days(self):
        assert inclusive_days(date(2025, 9, 1), date(2025, 9, 30)) == 30
        assert inclusive_days(date(2025, 9, 1), date(2025, 9, 1)) == 1
        assert inclusive_days(date(2025, 9, 2), date(2025, 9, 1)) == 0


class TestAppConfig:
    def test_missing_or_corrupt_file(self, tmp_path):
        path = tmp_path / "config.json"
        assert app_config.load_config(path) == {}
        path.write_text("{broken", encoding="utf-8")
        assert app_config.load_config(path) == {}

    def test_db_folder_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.json"
        app_config.set_db_folder("/data/expenses", path)
        assert app_config.get_db_folder(path) == "/data/expenses"
        app_config.set_db_folder(None, path)
        assert app_config.get_db_folder(path) is None
        assert not path.with_suffix(".tmp").exists()

    def test_log_level(self, tmp_path):
        path = tmp_path / "config.json"
        assert app_config.get_log_level(path) == "INFO"
        app_config.save_config({"log_level": "debug"}, path)
        assert app_config.get_log_level(path) == "DEBUG"
