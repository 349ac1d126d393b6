"""
Command-line interface for Increment.

Provides commands for comparing MMM against attribution from files,
exporting the comparison, generating demo inputs and serving the API.
"""

from pathlib import Path
from typing import Optional
import json

import typer
from loguru import logger
import numpy as np
import pandas as pd

from increment.config import load_config
from increment.contracts import Metric, TimeWindow, View, ViewRequest
from increment.exceptions import IncrementError
from increment.export import format_metric_value, save_comparison_csv
from increment.ingestion.loaders import load_series_file, read_upload
from increment.ingestion.normalizer import derive_channels, performance_channels
from increment.session import Session

app = typer.Typer(
    name="increment",
    help="MMM vs attribution channel analytics CLI",
    add_completion=False,
)


def _load_session(mmm: Path, attribution: Path, spend: Optional[Path]) -> Session:
    session = Session()
    session.upload("mmm", read_upload(mmm), mmm.name)
    session.upload("attribution", read_upload(attribution), attribution.name)
    if spend is not None:
        session.upload("spend", read_upload(spend), spend.name)
    return session


@app.command()
def compare(
    mmm: Path = typer.Option(..., "--mmm", help="MMM output (JSON or CSV)"),
    attribution: Path = typer.Option(..., "--attribution", "-a", help="Attribution output (JSON or CSV)"),
    spend: Optional[Path] = typer.Option(None, "--spend", "-s", help="Spend sheet CSV"),
    window: TimeWindow = typer.Option(TimeWindow.ALL, "--window", "-w", help="Time window"),
    metric: Metric = typer.Option(Metric.VOLUME, "--metric", "-m", help="Comparison metric"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write export CSV here"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Compare MMM and attribution per channel."""
    load_config(config_path)

    try:
        session = _load_session(mmm, attribution, spend)
        result = session.view(ViewRequest(view=View.COMPARISON, window=window, metric=metric))
    except IncrementError as e:
        logger.error(f"{e.code}: {e}")
        raise typer.Exit(code=1)

    if result.spend_required:
        typer.echo(f"Spend data required for {metric.value} analysis (pass --spend)")
        raise typer.Exit(code=1)

    rows = result.comparison.rows
    table = pd.DataFrame({
        "Channel": [r.channel for r in rows],
        "Spend": [f"${r.spend:,.0f}" for r in rows],
        "MMM": [format_metric_value(r.values(metric)[0], metric) for r in rows],
        "Attribution": [format_metric_value(r.values(metric)[1], metric) for r in rows],
        "Variance": [r.lift_variance(metric).percent_label for r in rows],
    })
    typer.echo(table.to_string(index=False))

    totals = result.comparison.totals
    if totals is not None:
        typer.echo("")
        typer.echo(f"Total spend:  ${totals.total_spend:,.0f}")
        typer.echo(f"MMM:          {format_metric_value(totals.footer_mmm, metric)}")
        typer.echo(f"Attribution:  {format_metric_value(totals.footer_attr, metric)}")
        typer.echo(f"Variance:     {totals.footer_variance.percent_label}")

    if output is not None:
        save_comparison_csv(rows, output)


@app.command()
def channels(
    mmm: Path = typer.Option(..., "--mmm", help="MMM output (JSON or CSV)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """List channels found in the MMM series."""
    load_config(config_path)

    try:
        series = load_series_file(mmm)
    except IncrementError as e:
        logger.error(f"{e.code}: {e}")
        raise typer.Exit(code=1)

    all_channels = derive_channels(series)
    performance = set(performance_channels(all_channels))
    for channel in all_channels:
        marker = "" if channel in performance else "  (non-performance)"
        typer.echo(f"{channel}{marker}")


@app.command()
def generate_demo(
    output: Path = typer.Option(Path("data/demo"), "--output", "-o", help="Output directory"),
    n_weeks: int = typer.Option(104, "--weeks", help="Number of weekly periods"),
    seed: int = typer.Option(42, "--seed", help="Random seed"),
):
    """Generate demo MMM, attribution and spend files."""
    logger.info(f"Generating {n_weeks} weeks of demo data...")

    output.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(seed)

    dates = pd.date_range(end=pd.Timestamp.today().normalize(), periods=n_weeks, freq="W-MON")

    # channel -> (weekly incremental conversions, attribution over-credit factor, total spend)
    channel_profile = {
        "Paid Search": (120, 1.8, 60000),
        "Paid Social": (90, 1.5, 45000),
        "Display": (40, 2.2, 20000),
        "Youtube": (60, 0.0, 30000),
        "TV": (150, 0.0, 90000),
    }

    t = np.arange(n_weeks)
    seasonality = 1 + 0.2 * np.sin(t / 52 * 2 * np.pi)

    mmm_records = []
    attr_records = []
    for i, date in enumerate(dates):
        mmm_row = {"date": date.strftime("%Y-%m-%d"), "baseline": round(float(800 * seasonality[i] * rng.normal(1, 0.05)), 1)}
        attr_row = {"date": mmm_row["date"]}
        for channel, (weekly, factor, _) in channel_profile.items():
            value = max(0.0, weekly * seasonality[i] * rng.normal(1, 0.15))
            mmm_row[channel] = round(float(value), 1)
            attr_row[channel] = round(float(value * factor * rng.normal(1, 0.1)), 1) if factor else 0.0
        mmm_row["unattributed"] = round(float(100 * rng.normal(1, 0.2)), 1)
        mmm_records.append(mmm_row)
        attr_records.append(attr_row)

    with open(output / "mmm.json", "w") as f:
        json.dump(mmm_records, f, indent=2)

    pd.DataFrame(attr_records).to_csv(output / "attribution.csv", index=False)

    spend_rows = []
    for channel, (_, _, spend) in channel_profile.items():
        revenue = round(spend * float(rng.uniform(1.2, 3.0)), 2)
        spend_rows.append({
            "Channels": channel,
            "Total Spend ($)": spend,
            "Total Revenue ($)": revenue,
            "Total ROI (%)": round((revenue - spend) / spend * 100, 1),
        })
    total_spend = sum(r["Total Spend ($)"] for r in spend_rows)
    total_revenue = round(sum(r["Total Revenue ($)"] for r in spend_rows), 2)
    total_row = {
        "Channels": "Total",
        "Total Spend ($)": total_spend,
        "Total Revenue ($)": total_revenue,
        "Total ROI (%)": round((total_revenue - total_spend) / total_spend * 100, 1),
    }
    pd.DataFrame(spend_rows + [total_row]).to_csv(output / "spend.csv", index=False)

    logger.info(f"Generated demo data in {output}")
    logger.info(f"  - MMM: {len(mmm_records)} rows")
    logger.info(f"  - Attribution: {len(attr_records)} rows")
    logger.info(f"  - Spend: {len(spend_rows)} channels")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Start the API server."""
    from increment.api.app import run_server

    load_config(config_path)
    run_server(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
