"""Main CLI interface for Railflow

Provides command-line commands for:
- Station and train statistics
- Daily time series and correlations
- Ticket type analysis
- Passenger-flow forecasts and parameter search
- Overall analysis summary
"""

from dataclasses import replace
from datetime import timedelta
from typing import Optional

import click
import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from railflow import __version__
from railflow.data.aggregators import FlowAggregator, summaries_to_frame
from railflow.data.loaders import FlowDataLoader
from railflow.data.summaries import Diagnostics
from railflow.errors import InsufficientDataError, RailflowError
from railflow.forecasting.engine import FlowForecastEngine
from railflow.forecasting.tuning import optimize_parameters
from railflow.models.parameters import ModelParameters
from railflow.utils.config import ConfigLoader
from railflow.utils.logging_config import get_logger, setup_logging


console = Console()
logger = get_logger(__name__)


def config_option(func):
    return click.option(
        '--config',
        '-c',
        type=click.Path(exists=True),
        default=None,
        help='Path to configuration file (default: config/config.yaml)'
    )(func)


def data_dir_option(func):
    return click.option(
        '--data-dir',
        '-d',
        type=click.Path(exists=True, file_okay=False),
        default=None,
        help='Directory with stations, trains and flow CSV files (overrides config)'
    )(func)


def _load(config: Optional[str], data_dir: Optional[str]):
    """Load configuration, set up logging and build the store"""
    cfg = ConfigLoader(config) if config else ConfigLoader()

    setup_logging(
        log_level=cfg.get('logging.level', 'INFO'),
        log_file=cfg.get('logging.file')
    )

    loader = FlowDataLoader(config=cfg, data_path=data_dir)
    store, report = loader.load_store()

    if report.rows_skipped:
        console.print(
            f"[yellow]⚠️  Skipped {report.rows_skipped:,} of {report.rows_read:,} flow rows[/yellow]"
        )

    return cfg, store


def _fail(e: Exception, action: str):
    console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
    if isinstance(e, RailflowError):
        logger.error(f"{action} failed: {e}")
    else:
        logger.exception(f"{action} failed")
    raise click.Abort()


@click.group()
@click.version_option(version=__version__, prog_name='Railflow')
def cli():
    """
    Railflow

    Passenger-flow analytics and short-horizon forecasting:
    - Station, train and ticket statistics
    - Daily time series and correlations
    - Level + trend + seasonality forecasts with confidence bands
    """
    pass


@cli.command()
@config_option
@data_dir_option
@click.option('--top', type=int, default=None, help='Show only the N busiest stations')
@click.option('--output', '-o', type=click.Path(), default=None, help='Save statistics to CSV')
def stations(config, data_dir, top, output):
    """
    Per-station passenger statistics

    Examples:
      railflow stations
      railflow stations --top 10 -o station_stats.csv
    """
    try:
        cfg, store = _load(config, data_dir)
        diagnostics = Diagnostics()
        stats = FlowAggregator(store, config=cfg).station_statistics(diagnostics)

        table = Table(title="Station Statistics", show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="dim")
        table.add_column("Station", style="cyan")
        table.add_column("Passengers", justify="right", style="green")
        table.add_column("Boarding", justify="right")
        table.add_column("Alighting", justify="right")
        table.add_column("Revenue", justify="right", style="yellow")
        table.add_column("Peak Hour", justify="right")

        for s in stats[:top] if top else stats:
            table.add_row(
                str(s.station_id),
                s.station_name,
                f"{s.total_passengers:,}",
                f"{s.boarding_passengers:,}",
                f"{s.alighting_passengers:,}",
                f"{s.total_revenue:,.2f}",
                "-" if s.peak_hour is None else f"{s.peak_hour:02d}:00"
            )

        console.print(table)

        if diagnostics[Diagnostics.UNKNOWN_STATION]:
            console.print(
                f"[dim]{diagnostics[Diagnostics.UNKNOWN_STATION]:,} records with unknown stations skipped[/dim]"
            )

        if output:
            summaries_to_frame(stats).to_csv(output, index=False)
            console.print(f"\n[green]✓ Saved to: {output}[/green]")

    except Exception as e:
        _fail(e, "Station statistics")


@cli.command()
@config_option
@data_dir_option
@click.option('--top', type=int, default=None, help='Show only the N busiest trains')
def trains(config, data_dir, top):
    """Per-train passenger statistics and utilization"""
    try:
        cfg, store = _load(config, data_dir)
        stats = FlowAggregator(store, config=cfg).train_statistics()

        table = Table(title="Train Statistics", show_header=True, header_style="bold cyan")
        table.add_column("Train", style="cyan")
        table.add_column("Passengers", justify="right", style="green")
        table.add_column("Trips", justify="right")
        table.add_column("Utilization", justify="right")
        table.add_column("Revenue", justify="right", style="yellow")

        for s in stats[:top] if top else stats:
            table.add_row(
                s.train_code,
                f"{s.total_passengers:,}",
                f"{s.total_trips:,}",
                f"{s.utilization_rate:.1%}",
                f"{s.total_revenue:,.2f}"
            )

        console.print(table)

    except Exception as e:
        _fail(e, "Train statistics")


@cli.command()
@config_option
@data_dir_option
@click.option('--start', required=True, help='First date (YYYY-MM-DD)')
@click.option('--end', required=True, help='Last date (YYYY-MM-DD)')
@click.option('--station', type=int, default=None, help='Restrict to one station id')
@click.option('--train', 'train_code', default=None, help='Restrict to one train code')
def timeseries(config, data_dir, start, end, station, train_code):
    """
    Daily passenger and revenue totals

    Examples:
      railflow timeseries --start 2024-01-01 --end 2024-01-31
      railflow timeseries --start 2024-01-01 --end 2024-01-31 --station 3
    """
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)

        if station is not None:
            series = aggregator.station_time_series(station, start, end)
            subject = f"station {station}"
        elif train_code:
            series = aggregator.train_time_series(train_code, start, end)
            subject = f"train {train_code}"
        else:
            series = aggregator.time_series(start, end)
            subject = "all traffic"

        table = Table(title=f"Daily Flow ({subject})", show_header=True, header_style="bold cyan")
        table.add_column("Date", style="cyan")
        table.add_column("Passengers", justify="right", style="green")
        table.add_column("Revenue", justify="right", style="yellow")

        for point in series:
            table.add_row(point.date.isoformat(), f"{point.passengers:,}", f"{point.revenue:,.2f}")

        console.print(table)

        if not series:
            console.print("[yellow]No flow records in the selected range[/yellow]")

    except Exception as e:
        _fail(e, "Time series")


@cli.command()
@config_option
@data_dir_option
@click.option(
    '--entity',
    type=click.Choice(['station', 'train']),
    default='station',
    help='Correlate stations or trains'
)
@click.option('--min-common-dates', type=int, default=None, help='Required shared dates (exclusive)')
@click.option('--threshold', type=float, default=None, help='Minimum |r| to report')
def correlations(config, data_dir, entity, min_common_dates, threshold):
    """Pairs of stations or trains whose daily totals move together"""
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)

        if entity == 'station':
            pairs = aggregator.station_correlations(min_common_dates, threshold)
        else:
            pairs = aggregator.train_correlations(min_common_dates, threshold)

        table = Table(title=f"Significant {entity.capitalize()} Correlations", header_style="bold cyan")
        table.add_column("First", style="cyan")
        table.add_column("Second", style="cyan")
        table.add_column("r", justify="right", style="green")
        table.add_column("Dates", justify="right", style="dim")

        for pair in sorted(pairs, key=lambda p: -abs(p.coefficient)):
            table.add_row(pair.first, pair.second, f"{pair.coefficient:+.3f}", str(pair.common_dates))

        console.print(table)

    except Exception as e:
        _fail(e, "Correlation analysis")


@cli.command()
@config_option
@data_dir_option
@click.option('--start', required=True, help='First date (YYYY-MM-DD)')
@click.option('--end', required=True, help='Last date (YYYY-MM-DD)')
def tickets(config, data_dir, start, end):
    """Ticket type breakdown and price distribution"""
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)

        table = Table(title="Ticket Types", show_header=True, header_style="bold cyan")
        table.add_column("Type", style="cyan")
        table.add_column("Records", justify="right")
        table.add_column("Passengers", justify="right", style="green")
        table.add_column("Revenue", justify="right", style="yellow")
        table.add_column("Avg Price", justify="right")

        for t in aggregator.ticket_type_analysis(start, end):
            table.add_row(
                t.ticket_type,
                f"{t.record_count:,}",
                f"{t.total_passengers:,}",
                f"{t.total_revenue:,.2f}",
                f"{t.average_price:,.2f}"
            )

        console.print(table)

        distribution = Table(title="Price Distribution", show_header=True, header_style="bold cyan")
        distribution.add_column("Price Bucket", justify="right", style="cyan")
        distribution.add_column("Passengers", justify="right", style="green")

        for bucket, passengers in aggregator.ticket_price_distribution().items():
            distribution.add_row(f"{bucket:,.0f}", f"{passengers:,}")

        console.print(distribution)

    except Exception as e:
        _fail(e, "Ticket analysis")


@cli.command()
@config_option
@data_dir_option
@click.option('--start', required=True, help='First forecast date (YYYY-MM-DD)')
@click.option('--days', type=int, default=7, help='Number of days to forecast (default: 7)')
@click.option('--station', type=int, default=None, help='Forecast one station id')
@click.option('--train', 'train_code', default=None, help='Forecast one train code')
@click.option('--window', type=int, default=None, help='Training window in days (default: from config)')
@click.option('--seed', type=int, default=None, help='Seed for the jitter generator')
@click.option('--jitter/--no-jitter', default=None, help='Apply random jitter (default: from config)')
@click.option('--output', '-o', type=click.Path(), default=None, help='Save forecast to CSV')
def forecast(config, data_dir, start, days, station, train_code, window, seed, jitter, output):
    """
    Forecast daily passengers with confidence bounds

    Examples:
      railflow forecast --start 2024-03-01 --days 14
      railflow forecast --start 2024-03-01 --station 3 --no-jitter
      railflow forecast --start 2024-03-01 --train G101 --seed 42 -o forecast.csv
    """
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)

        params = ModelParameters.from_config(cfg)
        if window is not None:
            params = replace(params, window_size=window)

        rng = np.random.default_rng(seed) if seed is not None else None
        engine = FlowForecastEngine(aggregator, params=params, config=cfg, rng=rng, jitter=jitter)

        if station is not None:
            result = engine.predict_station_flow(station, start, days)
            subject = f"station {station}"
        elif train_code:
            result = engine.predict_train_flow(train_code, start, days)
            subject = f"train {train_code}"
        else:
            result = engine.predict_passenger_flow(start, days)
            subject = "all traffic"

        if result.insufficient_data:
            console.print(
                f"[yellow]⚠️  Not enough history to forecast {subject}: "
                f"{result.training_samples} of {result.required_samples} required days "
                f"in the {params.window_size}-day training window[/yellow]"
            )
            return

        table = Table(title=f"Forecast ({subject})", show_header=True, header_style="bold cyan")
        table.add_column("Date", style="cyan")
        table.add_column("Passengers", justify="right", style="green")
        table.add_column("Lower", justify="right", style="dim")
        table.add_column("Upper", justify="right", style="dim")

        for point in result.points:
            table.add_row(
                point.label,
                f"{point.predicted_passengers:,}",
                f"{point.lower_bound:,.0f}",
                f"{point.upper_bound:,.0f}"
            )

        console.print(table)
        if result.points:
            console.print(
                f"[dim]{result.training_samples} training days, "
                f"{result.points[0].confidence_level:.0%} confidence[/dim]"
            )

        if output:
            result.to_frame().to_csv(output, index=False)
            console.print(f"\n[green]✓ Saved to: {output}[/green]")

    except Exception as e:
        _fail(e, "Forecast generation")


@cli.command()
@config_option
@data_dir_option
@click.option('--start', required=True, help='First date of the tuning series (YYYY-MM-DD)')
@click.option('--end', required=True, help='Last date of the tuning series (YYYY-MM-DD)')
@click.option('--station', type=int, default=None, help='Tune on one station id')
@click.option('--train', 'train_code', default=None, help='Tune on one train code')
@click.option('--seed', type=int, default=None, help='Enable jitter with this seed')
def tune(config, data_dir, start, end, station, train_code, seed):
    """
    Grid search over window size, alpha and beta

    Jitter is off unless a seed is given, so results are reproducible.
    """
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)

        if station is not None:
            series = aggregator.station_time_series(station, start, end)
        elif train_code:
            series = aggregator.train_time_series(train_code, start, end)
        else:
            series = aggregator.time_series(start, end)

        rng = np.random.default_rng(seed) if seed is not None else None
        result = optimize_parameters(
            series,
            rng=rng,
            jitter=seed is not None,
            min_samples=int(cfg.get('forecast.min_samples', 10))
        )

        best = result.best_params
        evaluation = result.best_evaluation

        info = [
            f"[bold]Window:[/bold]  {best.window_size} days",
            f"[bold]Alpha:[/bold]   {best.alpha}",
            f"[bold]Beta:[/bold]    {best.beta}",
            f"[bold]RMSE:[/bold]    {evaluation.rmse:,.2f}",
            f"[bold]MAE:[/bold]     {evaluation.mae:,.2f}",
            f"[bold]MAPE:[/bold]    {evaluation.mape:.2f}%",
        ]
        console.print(Panel("\n".join(info), title="Best Parameters", border_style="green"))

    except InsufficientDataError as e:
        console.print(f"[yellow]⚠️  {e}[/yellow]")
        raise click.Abort()

    except Exception as e:
        _fail(e, "Parameter search")


@cli.command()
@config_option
@data_dir_option
def summary(config, data_dir):
    """Headline numbers for the loaded data"""
    try:
        cfg, store = _load(config, data_dir)
        aggregator = FlowAggregator(store, config=cfg)
        info = aggregator.analysis_summary()

        peak = "-" if info['peak_hour'] is None else (
            f"{info['peak_hour']:02d}:00 ({info['peak_hour_passengers']:,} passengers)"
        )

        lines = [
            f"[bold]Stations:[/bold]           {info['stations']:,}",
            f"[bold]Trains:[/bold]             {info['trains']:,}",
            f"[bold]Flow records:[/bold]       {info['records']:,}",
            f"[bold]Total passengers:[/bold]   {info['total_passengers']:,}",
            f"[bold]Total revenue:[/bold]      {info['total_revenue']:,.2f}",
            f"[bold]Avg ticket price:[/bold]   {info['average_ticket_price']:,.2f}",
            f"[bold]Peak hour:[/bold]          {peak}",
        ]

        if store.records:
            first = min(r.date for r in store.records)
            last = max(r.date for r in store.records)
            lines.append(f"[bold]Date range:[/bold]         {first} → {last} ({(last - first + timedelta(days=1)).days} days)")

        console.print(Panel("\n".join(lines), title="Railflow Summary", border_style="cyan"))

    except Exception as e:
        _fail(e, "Summary")


if __name__ == '__main__':
    cli()
