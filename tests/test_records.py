from datetime import date, time

import pytest

from railflow.data.records import FlowRecord, Station, Train, normalize_ticket_type


def test_total_passengers_is_boarding_plus_alighting(make_record):
    record = make_record(boarding=12, alighting=8)
    assert record.total_passengers == 20


def test_derived_time_fields(make_record):
    record = make_record(day=date(2024, 1, 6), departure=time(18, 45))
    assert record.hour == 18
    assert record.day_of_week == 6
    assert record.is_weekend
    assert record.is_peak_hour


def test_off_peak_weekday(make_record):
    record = make_record(day=date(2024, 1, 3), departure=time(12, 0))
    assert record.day_of_week == 3
    assert not record.is_weekend
    assert not record.is_peak_hour


def test_missing_departure_time_has_no_hour(make_record):
    record = make_record(departure=None)
    assert record.hour is None
    assert not record.is_peak_hour


def test_negative_counts_rejected():
    with pytest.raises(ValueError):
        FlowRecord('L1', 'G1', 1, date(2024, 1, 1), None, None, boarding=-1, alighting=0)


def test_negative_revenue_rejected():
    with pytest.raises(ValueError):
        FlowRecord('L1', 'G1', 1, date(2024, 1, 1), None, None, 1, 1, revenue=-5.0)


def test_ticket_type_normalization():
    assert normalize_ticket_type('  adult ') == 'adult'
    assert normalize_ticket_type('') == 'unknown'
    assert normalize_ticket_type(None) == 'unknown'


def test_records_are_immutable(make_record):
    record = make_record(boarding=1)
    with pytest.raises(AttributeError):
        record.boarding = 5


def test_station_and_train_defaults():
    station = Station(7, 'Central')
    train = Train('T9', 'G909')
    assert station.code == ''
    assert train.capacity == 0
