from datetime import date, time, timedelta

import pytest

from railflow.data.aggregators import FlowAggregator
from railflow.data.records import FlowRecord, Station, Train
from railflow.data.store import FlowStore


START = date(2024, 1, 1)  # a Monday


def build_record(
    station_id=1,
    day=START,
    boarding=0,
    alighting=0,
    train_code='G101',
    departure=time(8, 0),
    ticket_type='adult',
    ticket_price=10.0,
    revenue=None
):
    if revenue is None:
        revenue = (boarding + alighting) * ticket_price
    return FlowRecord(
        line_code='L1',
        train_code=train_code,
        station_id=station_id,
        date=day,
        arrival_time=None,
        departure_time=departure,
        boarding=boarding,
        alighting=alighting,
        ticket_type=ticket_type,
        ticket_price=ticket_price,
        revenue=revenue
    )


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def station_x_store():
    """Station "X" with two days of traffic: 10+5 and 20+10"""
    return FlowStore(
        records=[
            build_record(day=START, boarding=10, alighting=5),
            build_record(day=START + timedelta(days=1), boarding=20, alighting=10),
        ],
        stations=[Station(1, 'X')],
        trains=[Train('T1', 'G101', capacity=100)]
    )


@pytest.fixture
def network_store():
    """
    Three stations over 14 days starting on a Monday

    Alpha (1): G101 at 08:00, 10+i boarding, 5 alighting, adult at 10.0
    Beta  (2): G101 at 17:30, 20+2i boarding, student at 12.5
    Gamma (3): G202 at 08:15, 50-i boarding, no ticket type, free
    plus one record on day 0 at an unknown station (99): 7 boarding on G202
    """
    records = []
    for i in range(14):
        day = START + timedelta(days=i)
        records.append(build_record(1, day, boarding=10 + i, alighting=5))
        records.append(build_record(
            2, day, boarding=20 + 2 * i, departure=time(17, 30),
            ticket_type=' student ', ticket_price=12.5
        ))
        records.append(build_record(
            3, day, boarding=50 - i, train_code='G202', departure=time(8, 15),
            ticket_type='', ticket_price=0.0
        ))
    records.append(build_record(99, START, boarding=7, train_code='G202', departure=time(9, 0)))

    return FlowStore(
        records=records,
        stations=[Station(1, 'Alpha'), Station(2, 'Beta'), Station(3, 'Gamma')],
        trains=[Train('T1', 'G101', capacity=100), Train('T2', 'G202', capacity=0)]
    )


@pytest.fixture
def network_aggregator(network_store):
    return FlowAggregator(network_store)
