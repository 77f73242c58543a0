import typer
from loguru import logger

from config.settings import get_settings
from neuronet.api import create_simulation_core, run_api_server
from neuronet.ml import seed_training_data
from neuronet.models import FeatureVector, KMeansConfig, StrategyConfig
from neuronet.utils.exceptions import NeuroNetError
from neuronet.utils.logging import setup_logging

app = typer.Typer(no_args_is_help=True)

RISK_LEVELS = ("conservative", "moderate", "aggressive")


def _bootstrap(seed: int | None = None):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir, json_file=settings.log_json)
    return settings, create_simulation_core(settings, seed=seed)


@app.command()
def status() -> None:
    """Show configuration and pattern model status."""
    try:
        settings, core = _bootstrap()

        typer.echo("NeuroNet Quant Status")
        typer.echo("=" * 50)
        typer.echo(f"Log level: {settings.log_level}")
        typer.echo(f"Log directory: {settings.log_dir}")
        typer.echo(f"Random seed: {settings.random_seed if settings.random_seed is not None else 'unseeded'}")
        typer.echo("")

        typer.echo(f"Initial balance: ${settings.backtest.initial_balance:,.2f}")
        typer.echo(f"Position fraction: {settings.backtest.position_fraction * 100:.0f}%")
        typer.echo(f"Decision tail: {settings.backtest.decision_tail}")
        typer.echo("")

        metrics = core.get_model_metrics()
        weights = core.get_model_weights()
        typer.echo(f"Model: {metrics.model_id} v{metrics.version}")
        typer.echo(f"Training points: {metrics.training_data_points}")
        typer.echo(
            f"Accuracy: {metrics.accuracy:.0f}%  Precision: {metrics.precision:.0f}%  "
            f"Recall: {metrics.recall:.0f}%  F1: {metrics.f1_score:.0f}"
        )
        typer.echo(f"Clusters: {len(core.get_clusters())}")
        typer.echo("Weights:")
        for name, value in weights.model_dump().items():
            typer.echo(f"  {name:<22} {value:+.4f}")

    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Status command failed")
        raise typer.Exit(code=1)


@app.command()
def agents() -> None:
    """List the available backtest agents."""
    _, core = _bootstrap()
    for name, description in core.get_agent_descriptions().items():
        typer.echo(f"{name:<10} {description}")


@app.command()
def backtest(
    symbol: str = typer.Option("BTC-USD", help="Market symbol"),
    interval: str = typer.Option("1h", help="Candle interval (1m, 5m, 15m, 1h, 4h, 1d)"),
    from_date: str = typer.Option(..., "--from", help="Start date (ISO)"),
    to_date: str = typer.Option(..., "--to", help="End date (ISO)"),
    agent: list[str] = typer.Option(
        ["Atlas", "Vega", "Nova", "Sentinel", "Arbiter"], "--agent", "-a", help="Agent to run (repeatable)"
    ),
    balance: float = typer.Option(None, help="Initial balance per agent"),
    seed: int = typer.Option(None, help="Random seed for reproducible candles"),
) -> None:
    """Run a quick multi-agent backtest over synthetic candles."""
    _, core = _bootstrap(seed)
    result = core.run_quick_backtest(symbol, interval, from_date, to_date, agent, balance)

    if result.status == "failed":
        typer.echo(f"Backtest {result.id} failed: {result.error_message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(core.format_summary(result))
    typer.echo("")
    typer.echo(f"{'Agent':<10} | {'Trades':<6} | {'Win %':<7} | {'Return %':<9} | {'Max DD %':<8} | {'Sharpe':<7}")
    typer.echo("=" * 64)
    for perf in result.agent_performance:
        typer.echo(
            f"{perf.agent:<10} | {perf.total_trades:<6} | {perf.win_rate:<7.1f} | "
            f"{perf.total_return:<9.2f} | {perf.max_drawdown:<8.2f} | {perf.sharpe_ratio:<7.2f}"
        )


@app.command()
def scenario(
    name: str = typer.Option("CLI scenario", help="Scenario name"),
    chain: str = typer.Option("ethereum", help="Chain (ethereum, base, fraxtal, solana)"),
    start: str = typer.Option(..., help="Start date (ISO)"),
    end: str = typer.Option(..., help="End date (ISO)"),
    risk: str = typer.Option(None, help="Risk tolerance; omit to run and compare all three"),
    max_position: float = typer.Option(0.2, help="Fraction of balance per position"),
    stop_loss: float = typer.Option(5.0, help="Stop loss percent"),
    take_profit: float = typer.Option(15.0, help="Take profit percent"),
    balance: float = typer.Option(10000.0, help="Initial balance"),
    seed: int = typer.Option(None, help="Random seed for reproducible data"),
) -> None:
    """Create a scenario and replay it under one or all risk tolerances."""
    try:
        _, core = _bootstrap(seed)
        created = core.create_scenario(name, f"Created from CLI for {chain}", chain, start, end)
        typer.echo(f"Scenario {created.id}: {len(created.data_points)} hourly data points")

        levels = [risk] if risk else list(RISK_LEVELS)
        runs = []
        for level in levels:
            config = StrategyConfig(
                risk_tolerance=level,
                max_position_size=max_position,
                stop_loss_percent=stop_loss,
                take_profit_percent=take_profit,
            )
            run = core.run_backtest(created.id, config, balance)
            runs.append(run)
            if run.status == "failed":
                typer.echo(f"  {level:<12} FAILED: {run.error_message}")
                continue
            typer.echo(
                f"  {level:<12} return {run.total_return:+.2f}%  trades {run.total_trades}  "
                f"win {run.win_rate:.1f}%  max DD {run.max_drawdown:.2f}%  sharpe {run.sharpe_ratio:.2f}"
            )

        if len(runs) > 1:
            comparison = core.compare_runs([r.id for r in runs])
            best = core.get_run(comparison.best_performing_run)
            typer.echo(f"Best performer: {best.strategy_config['risk_tolerance']} ({best.id})")

    except NeuroNetError as e:
        typer.echo(f"Scenario failed: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        logger.exception("Scenario command failed")
        raise typer.Exit(code=1)


@app.command()
def cluster(
    k: int = typer.Option(5, help="Number of clusters"),
    seed: int = typer.Option(None, help="Random seed for centroid sampling"),
) -> None:
    """Cluster the bootstrap training set into market regimes."""
    _, core = _bootstrap(seed)
    points = [p.features for p in seed_training_data()]
    clusters = core.perform_kmeans_clustering(points, KMeansConfig(k=k))
    for c in clusters:
        typer.echo(
            f"{c.id:<28} {c.label:<9} confidence {c.confidence:5.1f}  members {len(c.members)}"
        )


@app.command()
def predict(
    opportunity_id: str = typer.Argument(..., help="Opportunity identifier"),
    volatility: float = typer.Option(0.0, help="Price volatility (%)"),
    tvl_change: float = typer.Option(0.0, help="TVL change (%)"),
    gas: float = typer.Option(50.0, help="Gas price"),
    performance: float = typer.Option(50.0, help="Agent performance score"),
    sentiment: float = typer.Option(50.0, help="Market sentiment score"),
    liquidity: float = typer.Option(50.0, help="Liquidity depth score"),
    volume_change: float = typer.Option(0.0, help="Volume change (%)"),
) -> None:
    """Score an opportunity with the seeded pattern model."""
    _, core = _bootstrap()
    features = FeatureVector(
        price_volatility=volatility,
        tvl_change=tvl_change,
        gas_price=gas,
        agent_performance=performance,
        market_sentiment=sentiment,
        liquidity_depth=liquidity,
        volume_change=volume_change,
    )
    prediction = core.predict_success_probability(opportunity_id, features)

    typer.echo(f"Opportunity: {prediction.opportunity_id}")
    typer.echo(f"Regime: {prediction.cluster_label}")
    typer.echo(f"Success probability: {prediction.success_probability:.0f}%")
    typer.echo(f"Expected return: {prediction.expected_return:.0f}%")
    typer.echo(f"Risk-adjusted score: {prediction.risk_adjusted_score:.0f}")


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address"),
    port: int = typer.Option(None, help="Bind port"),
) -> None:
    """Serve the JSON API."""
    settings, core = _bootstrap()
    run_api_server(core, host or settings.api.host, port or settings.api.port)


if __name__ == "__main__":
    app()
