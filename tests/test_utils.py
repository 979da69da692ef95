from datetime import date, datetime, time

import pytest

from railflow.errors import InvalidRangeError
from railflow.utils.config import ConfigLoader
from railflow.utils.dates import parse_date, parse_time, validate_range
from railflow.utils.stats import (
    confidence_interval,
    exponential_smoothing,
    linear_fit,
    mean_of_last,
    moving_average,
    pearson_correlation,
    price_bucket,
    standard_deviation,
    trend_slope,
)


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------

def test_config_dot_notation(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("forecast:\n  window_size: 21\nanalysis:\n  price_bucket: 5\n")

    config = ConfigLoader(str(path))
    assert config.get('forecast.window_size') == 21
    assert config.get('forecast.missing', default='fallback') == 'fallback'
    assert config.get('analysis.price_bucket.deeper') is None


def test_config_reload(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text("forecast:\n  seed: 1\n")
    config = ConfigLoader(str(path))

    path.write_text("forecast:\n  seed: 2\n")
    config.reload()
    assert config.get('forecast.seed') == 2


def test_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path / 'nope.yaml'))


def test_config_from_dict_and_paths(tmp_path):
    config = ConfigLoader.from_dict({'data': {'raw_path': str(tmp_path)}})
    assert config.get_path('data.raw_path') == tmp_path
    assert config.get_path('data.other', 'data/raw').is_absolute()
    config.reload()
    assert config.get('data.raw_path') == str(tmp_path)


# ----------------------------------------------------------------------
# Dates
# ----------------------------------------------------------------------

@pytest.mark.parametrize('text', ['20240315', '2024-03-15', '2024/03/15', '03/15/2024'])
def test_parse_date_formats(text):
    assert parse_date(text) == date(2024, 3, 15)


def test_parse_date_passthrough():
    assert parse_date(date(2024, 3, 15)) == date(2024, 3, 15)
    assert parse_date(datetime(2024, 3, 15, 10, 30)) == date(2024, 3, 15)


@pytest.mark.parametrize('text', ['', 'yesterday', '2024-13-01', '15.03.2024'])
def test_parse_date_rejects_garbage(text):
    with pytest.raises(InvalidRangeError):
        parse_date(text)


def test_parse_time():
    assert parse_time('0830') == time(8, 30)
    assert parse_time('17:45') == time(17, 45)
    assert parse_time('17:45:10') == time(17, 45, 10)
    assert parse_time('') is None
    assert parse_time('2561') is None
    assert parse_time(None) is None


def test_validate_range():
    assert validate_range('2024-01-01', '2024-01-01') == (date(2024, 1, 1), date(2024, 1, 1))
    with pytest.raises(InvalidRangeError):
        validate_range('2024-01-02', '2024-01-01')


# ----------------------------------------------------------------------
# Statistics
# ----------------------------------------------------------------------

def test_pearson_self_negation_and_constant():
    x = [3, 1, 4, 1, 5, 9, 2, 6]
    assert pearson_correlation(x, x) == pytest.approx(1.0)
    assert pearson_correlation(x, [-v for v in x]) == pytest.approx(-1.0)
    assert pearson_correlation(x, [7] * len(x)) == 0.0


def test_pearson_degenerate_inputs():
    assert pearson_correlation([], []) == 0.0
    assert pearson_correlation([1], [1]) == 0.0
    assert pearson_correlation([1, 2], [1, 2, 3]) == 0.0


def test_linear_fit():
    intercept, slope = linear_fit([0, 1, 2, 3], [1, 3, 5, 7])
    assert intercept == pytest.approx(1.0)
    assert slope == pytest.approx(2.0)

    assert linear_fit([], []) == (0.0, 0.0)
    assert linear_fit([4], [9]) == (9.0, 0.0)

    with pytest.raises(ValueError):
        linear_fit([1, 2], [1])


def test_trend_slope_and_level():
    values = [100, 110, 120, 130, 140, 150, 160, 170, 180, 190]
    assert trend_slope(values) == pytest.approx(10.0)
    assert mean_of_last(values, 7) == pytest.approx(160.0)
    assert mean_of_last([5, 7], 7) == pytest.approx(6.0)
    assert mean_of_last([], 7) == 0.0


def test_standard_deviation_is_population():
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert standard_deviation([]) == 0.0


def test_moving_average():
    assert moving_average([1, 2, 3, 4], 2) == pytest.approx([1.5, 2.5, 3.5])
    assert moving_average([1, 2], 3) == []


def test_exponential_smoothing():
    assert exponential_smoothing([10, 20, 20], 0.5) == pytest.approx([10.0, 15.0, 17.5])
    assert exponential_smoothing([], 0.3) == []
    with pytest.raises(ValueError):
        exponential_smoothing([1, 2], 1.5)


def test_confidence_interval():
    residuals = [2, 4, 4, 4, 5, 5, 7, 9]
    assert confidence_interval(residuals, 0.95) == pytest.approx(1.96 * 2.0)
    assert confidence_interval(residuals, 0.90) == pytest.approx(1.645 * 2.0)
    assert confidence_interval([], 0.95) == 0.0


@pytest.mark.parametrize('price,bucket', [
    (0.0, 0.0), (2.4, 0.0), (2.5, 5.0), (7.4, 5.0), (12.5, 15.0), (99.0, 100.0)
])
def test_price_bucket_rounds_half_up(price, bucket):
    assert price_bucket(price) == bucket
