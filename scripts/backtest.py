# scripts/backtest.py
"""
Run a rule-based strategy backtest from a YAML configuration.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

import click
import yaml
from tradebook.errors import TradebookError
from tradebook.models.config import AppConfig
from tradebook.models.results import BacktestResult
from tradebook.utils.config_loader import DEFAULT_CONFIG_PATH, get_default_config, load_config, save_config
from tradebook.utils.logging_config import setup_from_config
from tradebook.utils.time_helpers import format_duration
from tradebook.data import DataFrameDataProvider, HistoricalDataProvider, SyntheticDataProvider, load_candles
from tradebook.core.backtest_engine import BacktestEngine


def _build_provider(app_config: AppConfig, csv_path) -> HistoricalDataProvider:
    if csv_path:
        click.echo(f"Market data: {csv_path}")
        return DataFrameDataProvider.from_csv(csv_path, symbol=app_config.backtest.symbol)
    click.echo(f"Market data: synthetic (seed {app_config.data.seed})")
    return SyntheticDataProvider.from_config(app_config.data)


def _print_summary(result: BacktestResult) -> None:
    metrics = result.metrics
    profit_factor = "inf" if metrics.profit_factor == float('inf') else f"{metrics.profit_factor:.2f}"

    click.echo("\n" + "=" * 50)
    click.echo(f"{result.strategy_name} | {result.symbol} | {result.start_date} to {result.end_date}")
    click.echo("=" * 50)
    rows = [
        ("Initial Capital", f"{metrics.initial_capital:,.2f}"),
        ("Final Capital", f"{metrics.final_capital:,.2f}"),
        ("Total Return", f"{metrics.total_return:,.2f} ({metrics.total_return_pct:.2f}%)"),
        ("Trades", f"{metrics.total_trades} ({metrics.winning_trades}W / {metrics.losing_trades}L)"),
        ("Win Rate", f"{metrics.win_rate:.1f}%"),
        ("Profit Factor", profit_factor),
        ("Largest Win / Loss", f"{metrics.largest_win:,.2f} / {metrics.largest_loss:,.2f}"),
        ("Max Drawdown", f"{metrics.max_drawdown_amount:,.2f} ({metrics.max_drawdown:.2f}%)"),
        ("Sharpe (per trade)", f"{metrics.sharpe_ratio:.3f}"),
        ("Avg Holding", f"{metrics.avg_trade_duration:.1f} candles"),
    ]
    for label, value in rows:
        click.echo(f"{label:<20}{value}")


def _save_outputs(result: BacktestResult, output: str) -> None:
    output_dir = Path(output)
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = output_dir / f"{result.run_id}_results.json"
    result.save_to_json(str(json_path))
    click.echo(f"\nSaved {json_path}")

    if result.trades:
        trades_path = output_dir / f"{result.run_id}_trades.csv"
        result.save_to_csv(str(trades_path))
        click.echo(f"Saved {trades_path}")


@click.command()
@click.option('--config', '-c', default=DEFAULT_CONFIG_PATH, help='Configuration file path')
@click.option('--csv', 'csv_path', default=None, help='OHLCV CSV file to use instead of synthetic data')
@click.option('--output', '-o', default=None, help='Output directory for results')
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
@click.option('--init', 'init_path', default=None, help='Write a starter configuration to this path and exit')
def main(config, csv_path, output, verbose, init_path):
    """Backtest the strategy described by a YAML configuration file."""
    if init_path:
        save_config(get_default_config(), init_path)
        click.echo(f"Wrote starter configuration to {init_path}")
        return

    try:
        app_config = load_config(config)
        setup_from_config(app_config.logging, verbose=verbose)

        candles = load_candles(_build_provider(app_config, csv_path), app_config.backtest)
        click.echo(f"Loaded {len(candles)} candles for {app_config.backtest.symbol}")

        engine = BacktestEngine(app_config.backtest, run_id=app_config.run_id)
        result = engine.run_backtest(candles)

        _print_summary(result)
        if output:
            _save_outputs(result, output)

        click.echo(f"\nRun {result.run_id} finished in {format_duration(result.execution_time)}")

    except (TradebookError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
