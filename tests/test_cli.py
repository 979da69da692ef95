from datetime import date, timedelta

import pytest
from click.testing import CliRunner

from railflow.cli.main import cli


@pytest.fixture
def workspace(tmp_path):
    """CSV files for two stations over 20 days plus a matching config file"""
    data_dir = tmp_path / 'raw'
    data_dir.mkdir()

    (data_dir / 'stations.csv').write_text(
        "station_id,name,code,short_name,telecode\n"
        "1,Alpha,ALP,A,AAA\n"
        "2,Beta,BET,B,BBB\n"
    )
    (data_dir / 'trains.csv').write_text(
        "code,train_code,capacity,yearly_capacity\n"
        "T1,G101,500,0\n"
    )

    rows = ["line_code,train_code,station_id,date,arrival_time,departure_time,"
            "boarding,alighting,ticket_type,ticket_price,revenue,origin_station,destination_station"]
    for i in range(20):
        day = (date(2024, 1, 1) + timedelta(days=i)).strftime('%Y%m%d')
        rows.append(f"L1,G101,1,{day},0755,0800,{10 + i},5,adult,10,{(15 + i) * 10},Alpha,Beta")
        rows.append(f"L1,G101,2,{day},1725,1730,{20 + 2 * i},0,student,12.5,{(20 + 2 * i) * 12.5},Alpha,Beta")
    rows.append("L1,G101,1,bad-date,0755,0800,1,1,adult,10,20,Alpha,Beta")
    (data_dir / 'passenger_flows.csv').write_text("\n".join(rows) + "\n")

    config_path = tmp_path / 'config.yaml'
    config_path.write_text(
        "data:\n"
        f"  raw_path: {data_dir}\n"
        "logging:\n"
        "  level: WARNING\n"
        "forecast:\n"
        "  jitter: false\n"
    )

    return config_path


def invoke(args, config_path):
    return CliRunner().invoke(cli, args + ['--config', str(config_path)])


def test_version():
    result = CliRunner().invoke(cli, ['--version'])
    assert result.exit_code == 0
    assert '1.0.0' in result.output


def test_stations_command(workspace, tmp_path):
    output = tmp_path / 'stations.csv'
    result = invoke(['stations', '-o', str(output)], workspace)

    assert result.exit_code == 0, result.output
    assert 'Alpha' in result.output
    assert 'Beta' in result.output
    assert 'Skipped 1' in result.output
    assert output.exists()
    assert output.read_text().splitlines()[0].startswith('station_id,station_name')


def test_trains_command(workspace):
    result = invoke(['trains'], workspace)
    assert result.exit_code == 0, result.output
    assert 'G101' in result.output


def test_timeseries_command(workspace):
    result = invoke(['timeseries', '--start', '2024-01-01', '--end', '2024-01-03', '--station', '1'], workspace)
    assert result.exit_code == 0, result.output
    assert '2024-01-02' in result.output


def test_timeseries_rejects_inverted_range(workspace):
    result = invoke(['timeseries', '--start', '2024-01-05', '--end', '2024-01-01'], workspace)
    assert result.exit_code != 0
    assert 'before start date' in result.output


def test_unknown_station_is_an_error(workspace):
    result = invoke(['timeseries', '--start', '2024-01-01', '--end', '2024-01-05', '--station', '9'], workspace)
    assert result.exit_code != 0
    assert 'Unknown station' in result.output


def test_correlations_command(workspace):
    result = invoke(['correlations'], workspace)
    assert result.exit_code == 0, result.output
    assert '+1.000' in result.output


def test_tickets_command(workspace):
    result = invoke(['tickets', '--start', '2024-01-01', '--end', '2024-01-20'], workspace)
    assert result.exit_code == 0, result.output
    assert 'student' in result.output
    assert 'adult' in result.output


def test_forecast_command(workspace, tmp_path):
    output = tmp_path / 'forecast.csv'
    result = invoke(['forecast', '--start', '2024-01-21', '--days', '3', '-o', str(output)], workspace)

    assert result.exit_code == 0, result.output
    assert '2024-01-21' in result.output
    assert len(output.read_text().splitlines()) == 4


def test_forecast_with_short_history_warns(workspace):
    result = invoke(['forecast', '--start', '2024-01-21', '--window', '5'], workspace)
    assert result.exit_code == 0, result.output
    assert 'Not enough history' in result.output


def test_tune_command(workspace):
    result = invoke(['tune', '--start', '2024-01-01', '--end', '2024-01-20'], workspace)
    assert result.exit_code == 0, result.output
    assert 'Best Parameters' in result.output


def test_summary_command(workspace):
    result = invoke(['summary'], workspace)
    assert result.exit_code == 0, result.output
    assert 'Railflow Summary' in result.output
    assert '17:00' in result.output
