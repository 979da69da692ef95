from datetime import date

import pytest

from railflow.data.records import Station, Train
from railflow.data.store import FlowStore
from railflow.errors import InvalidRangeError


def test_identity_lookups(network_store):
    assert network_store.station_by_id(2).name == 'Beta'
    assert network_store.station_by_id(99) is None
    assert network_store.station_by_name('Gamma').station_id == 3
    assert network_store.station_by_name('Omega') is None
    assert network_store.train_by_code('T1').train_code == 'G101'
    assert network_store.train_by_code('G101') is None
    assert network_store.train_by_train_code('G202').code == 'T2'
    assert network_store.station_names() == ['Alpha', 'Beta', 'Gamma']
    assert network_store.train_codes() == ['G101', 'G202']


def test_range_queries(network_store):
    assert len(network_store) == 43
    assert len(network_store.records_for_date(date(2024, 1, 1))) == 4
    assert len(network_store.records_for_station(1)) == 14
    assert len(network_store.records_for_train('G202')) == 15
    assert network_store.records_for_train('NOPE') == []

    in_range = network_store.records_in_date_range('2024-01-02', '2024-01-03')
    assert len(in_range) == 6
    assert all(date(2024, 1, 2) <= r.date <= date(2024, 1, 3) for r in in_range)


def test_inverted_range_raises(network_store):
    with pytest.raises(InvalidRangeError):
        network_store.records_in_date_range('2024-01-05', '2024-01-01')


def test_tallies(network_store):
    assert network_store.total_passengers() == 1379
    assert network_store.total_revenue() == pytest.approx(3010 + 5775 + 70)
    assert network_store.station_passenger_stats() == {'Alpha': 301, 'Beta': 462, 'Gamma': 609}
    assert network_store.train_passenger_stats() == {'G101': 763, 'G202': 616}
    assert network_store.hourly_passenger_stats() == {8: 910, 9: 7, 17: 462}

    daily = network_store.daily_passenger_stats()
    assert sorted(daily) == [1, 2, 3, 4, 5, 6, 7]
    assert sum(daily.values()) == 1379


def test_validate(network_store, station_x_store):
    assert station_x_store.validate()
    # record at station 99 has no master entry
    assert not network_store.validate()
    assert not FlowStore().validate()


def test_summary_and_empty_store():
    store = FlowStore(stations=[Station(1, 'A')], trains=[Train('T', 'G1')])
    assert store.is_empty()
    assert store.summary() == {
        'stations': 1,
        'trains': 1,
        'records': 0,
        'total_passengers': 0,
        'total_revenue': 0.0,
    }
    assert 'records=0' in repr(store)
