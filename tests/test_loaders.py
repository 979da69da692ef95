from datetime import date, time

import pytest

from railflow.data.loaders import FlowDataLoader
from railflow.utils.config import ConfigLoader


STATIONS_CSV = """station_id,name,code,short_name,telecode
1,Alpha,ALP,A,AAA
2,Beta,BET,B,BBB
0,Broken,,,
3,,GAM,G,GGG
"""

TRAINS_CSV = """code,train_code,capacity,yearly_capacity
T1,G101,100,36500
T2,G202,,
,G303,50,
"""

FLOWS_CSV = """line_code,train_code,station_id,date,arrival_time,departure_time,boarding,alighting,ticket_type,ticket_price,revenue,origin_station,destination_station
L1,G101,1,20240101,0755,0800,10,5,adult,10,150,Alpha,Beta
L1,G101,2,2024-01-02,17:25,17:30,20,0,student,12.5,250,Alpha,Beta
L1,G101,1,01/03/2024,,,3,4,,0,0,,
L1,G101,1,not-a-date,0800,0805,1,1,adult,10,20,,
L1,G101,0,2024-01-04,0800,0805,1,1,adult,10,20,,
L1,G101,abc,2024-01-04,0800,0805,1,1,adult,10,20,,
L1,G101,2,2024-01-05,0800,0805,-3,1,adult,10,20,,
"""


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / 'stations.csv').write_text(STATIONS_CSV)
    (tmp_path / 'trains.csv').write_text(TRAINS_CSV)
    (tmp_path / 'passenger_flows.csv').write_text(FLOWS_CSV)
    return tmp_path


def test_load_stations_drops_invalid_rows(data_dir):
    stations = FlowDataLoader(data_path=data_dir).load_stations()

    assert [s.station_id for s in stations] == [1, 2]
    assert stations[0].name == 'Alpha'
    assert stations[0].telecode == 'AAA'


def test_load_trains(data_dir):
    trains = FlowDataLoader(data_path=data_dir).load_trains()

    assert [t.code for t in trains] == ['T1', 'T2']
    assert trains[0].capacity == 100
    assert trains[0].yearly_capacity == 36500
    assert trains[1].capacity == 0


def test_load_flows_parses_and_counts_skips(data_dir):
    records, report = FlowDataLoader(data_path=data_dir).load_flows()

    assert len(records) == 3
    assert report.rows_read == 7
    assert report.records_loaded == 3
    assert report.invalid_dates == 1
    assert report.invalid_station_ids == 2
    assert report.malformed_rows == 1
    assert report.rows_skipped == 4
    assert report.examples

    first, second, third = records
    assert first.date == date(2024, 1, 1)
    assert first.departure_time == time(8, 0)
    assert first.total_passengers == 15
    assert first.revenue == pytest.approx(150.0)

    assert second.date == date(2024, 1, 2)
    assert second.ticket_price == pytest.approx(12.5)
    assert second.hour == 17

    assert third.date == date(2024, 1, 3)
    assert third.departure_time is None
    assert third.normalized_ticket_type == 'unknown'


def test_load_store(data_dir):
    store, report = FlowDataLoader(data_path=data_dir).load_store()

    assert len(store) == 3
    assert len(store.stations) == 2
    assert store.train_by_train_code('G101').capacity == 100
    assert report.rows_skipped == 4


def test_column_mapping_from_config(tmp_path):
    (tmp_path / 'flows.csv').write_text(
        "LINE;TRAIN;STATION;DAY;DEP;ON;OFF\n"
        "L9;K1;5;2024-02-01;0930;4;6\n"
    )
    config = ConfigLoader.from_dict({
        'data': {
            'raw_path': str(tmp_path),
            'flows_file': 'flows.csv',
            'delimiter': ';',
            'columns': {
                'flows': {
                    'line_code': 'LINE',
                    'train_code': 'TRAIN',
                    'station_id': 'STATION',
                    'date': 'DAY',
                    'departure_time': 'DEP',
                    'boarding': 'ON',
                    'alighting': 'OFF',
                }
            }
        }
    })

    records, report = FlowDataLoader(config=config).load_flows()

    assert report.rows_skipped == 0
    assert len(records) == 1
    record = records[0]
    assert record.train_code == 'K1'
    assert record.station_id == 5
    assert record.hour == 9
    assert record.total_passengers == 10
    assert record.revenue == 0.0


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        FlowDataLoader(data_path=tmp_path).load_stations()


def test_unparsable_numbers_skip_the_row(tmp_path):
    (tmp_path / 'passenger_flows.csv').write_text(
        "line_code,train_code,station_id,date,arrival_time,departure_time,boarding,alighting,"
        "ticket_type,ticket_price,revenue,origin_station,destination_station\n"
        "L1,G101,1,2024-01-01,0755,0800,abc,12,adult,10,150,,\n"
        "L1,G101,1,2024-01-01,0755,0800,3,12.9,adult,10,150,,\n"
        "L1,G101,1,2024-01-01,0755,0800,3,4,adult,10,oops,,\n"
        "L1,G101,1,2024-01-01,0755,0800,,4,adult,10,150,,\n"
        "L1,G101,1,2024-01-01,0755,0800,3,4,adult,,,,\n"
    )
    records, report = FlowDataLoader(data_path=tmp_path).load_flows()

    assert report.malformed_rows == 4
    assert report.rows_skipped == 4
    assert any('boarding' in note for note in report.examples)
    assert any('revenue' in note for note in report.examples)

    # Blank price and revenue cells are the only defaults
    assert len(records) == 1
    assert records[0].total_passengers == 7
    assert records[0].ticket_price == 0.0
    assert records[0].revenue == 0.0
