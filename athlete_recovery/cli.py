"""Command-line interface for the Athlete Recovery engine."""

import logging
import sys

import click
import numpy as np
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.logging import RichHandler
from rich import box
from rich.markup import escape

from .config import config
from .engine import get_recovery_engine
from .errors import RecoveryEngineError
from .providers import SyntheticSampleProvider

console = Console()

PRIORITY_STYLES = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "green"}
LEVEL_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def score_style(score: float) -> str:
    """Get display color for a 0-100 score."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    return "red"


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def fail(error: Exception):
    console.print(f"[red]❌ {escape(str(error))}[/red]")
    sys.exit(1)


def print_recommendations(recommendations, title: str = "💡 Recommendations"):
    if not recommendations:
        return
    console.print(f"\n[bold]{title}:[/bold]")
    for rec in recommendations:
        style = PRIORITY_STYLES.get(rec.priority.value, "white")
        console.print(f"  [{style}]●[/{style}] [{style}]{rec.priority.value.upper()}[/{style}] {rec.message}")
        for action in rec.actions:
            console.print(f"      • {action}")


@click.group()
@click.option("--seed", default=42, show_default=True, help="Seed for the synthetic sample provider")
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
@click.pass_context
def cli(ctx, seed, log_level):
    """Athlete Performance & Recovery Scoring Tool."""
    configure_logging(log_level or config.LOG_LEVEL)
    try:
        config.validate()
    except ValueError as e:
        console.print(f"[red]❌ Configuration Error: {e}[/red]")
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["provider"] = SyntheticSampleProvider(seed=seed)
    ctx.obj["engine"] = get_recovery_engine(ctx.obj["provider"])


@cli.command()
@click.option("--athlete", "athlete_id", default="athlete-001", help="Athlete identifier")
@click.option("--days", default=None, type=int, help="Analysis window in days")
@click.pass_context
def analyze(ctx, athlete_id, days):
    """Analyze recovery across sleep, nutrition, stress and workload."""
    engine = ctx.obj["engine"]
    try:
        analysis = engine.analyze_recovery(athlete_id, days)
    except RecoveryEngineError as e:
        fail(e)

    console.print(Panel.fit(f"🔄 Recovery Analysis: {athlete_id} ({analysis.timeframe_days} days)",
                            style="bold blue"))

    table = Table(title="Domain Scores", box=box.ROUNDED)
    table.add_column("Domain", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Grade", justify="center")
    table.add_column("Advice", justify="right", style="magenta")

    for domain, domain_score in analysis.domain_scores.items():
        style = score_style(domain_score.score)
        table.add_row(
            domain.value.title(),
            f"[{style}]{domain_score.score}[/{style}]",
            domain_score.grade,
            str(len(domain_score.recommendations)),
        )
    console.print(table)

    style = score_style(analysis.optimization_score)
    console.print(f"\n[bold]Optimization Score:[/bold] [{style}]{analysis.optimization_score}/100[/{style}]")

    if analysis.risk_factors:
        console.print("\n[bold]⚠️  Risk Factors:[/bold]")
        for factor in analysis.risk_factors:
            level_style = LEVEL_STYLES.get(factor.severity.value, "white")
            console.print(f"  [{level_style}]{factor.severity.value.upper()}[/{level_style}] "
                          f"{factor.description} ({factor.impact})")

    print_recommendations(analysis.recommendations)


@cli.command()
@click.option("--athlete", "athlete_id", default="athlete-001", help="Athlete identifier")
@click.option("--days", default=None, type=int, help="Number of days of history")
@click.pass_context
def trends(ctx, athlete_id, days):
    """Show daily recovery trends with 7-day forecasts."""
    engine = ctx.obj["engine"]
    try:
        result = engine.get_recovery_trends(athlete_id, days)
    except RecoveryEngineError as e:
        fail(e)

    console.print(Panel.fit(f"📈 Recovery Trends: {athlete_id} ({result['days']} days)", style="bold blue"))

    if not result["trends"]:
        console.print("[yellow]No samples found in the specified period.[/yellow]")
        return

    table = Table(title="Trend Summary", box=box.ROUNDED)
    table.add_column("Series", style="cyan")
    table.add_column("Latest", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("7d Change", justify="right")
    table.add_column("Forecast", justify="right")
    table.add_column("Trend")

    for name, points in result["trends"].items():
        values = [p["score"] for p in points]
        change = result["improvement"].get(name, 0.0)
        change_style = "green" if change > 0 else "red" if change < 0 else "white"
        prediction = result["predictions"].get(name)
        table.add_row(
            name.title(),
            str(values[-1]),
            f"{np.mean(values):.1f}",
            f"[{change_style}]{change:+.1f}[/{change_style}]",
            str(prediction["predicted"]) if prediction else "-",
            prediction["trend"] if prediction else "-",
        )
    console.print(table)


@cli.command()
@click.option("--age", type=float, required=True, help="Athlete age in years")
@click.option("--experience", type=float, required=True, help="Years of training experience")
@click.option("--training-hours", type=float, required=True, help="Weekly training hours")
@click.option("--recovery-score", type=float, required=True, help="Current recovery score (0-100)")
@click.option("--injury-history", type=float, default=0, show_default=True, help="Number of prior injuries")
@click.option("--periods", default=None, type=int, help="Number of periods to project")
@click.pass_context
def trajectory(ctx, age, experience, training_hours, recovery_score, injury_history, periods):
    """Project performance over the coming periods."""
    engine = ctx.obj["engine"]
    features = {
        "age": age,
        "experience": experience,
        "training_hours": training_hours,
        "recovery_score": recovery_score,
        "injury_history": injury_history,
    }
    try:
        forecast = engine.predict_performance_trajectory(features, periods)
    except RecoveryEngineError as e:
        fail(e)

    console.print(Panel.fit(f"🎯 Performance Trajectory ({forecast.horizon_periods} periods)", style="bold blue"))

    table = Table(box=box.ROUNDED)
    table.add_column("Period", justify="right", style="cyan")
    table.add_column("Predicted", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Factors")

    for point in forecast.trajectory:
        style = score_style(point.predicted_score)
        table.add_row(
            str(point.period_index),
            f"[{style}]{point.predicted_score:.1f}[/{style}]",
            f"{point.confidence:.0%}",
            ", ".join(f.factor for f in point.influencing_factors) or "-",
        )
    console.print(table)

    if forecast.insights:
        console.print("\n[bold]🔍 Insights:[/bold]")
        for insight in forecast.insights:
            style = PRIORITY_STYLES.get(insight.priority.value, "white")
            console.print(f"  [{style}]{insight.title}[/{style}]: {insight.description}")

    print_recommendations(forecast.recommendations)


@cli.command("injury-risk")
@click.option("--workload", type=float, required=True, help="Current workload (0-100)")
@click.option("--recovery-score", type=float, required=True, help="Current recovery score (0-100)")
@click.option("--age", type=float, required=True, help="Athlete age in years")
@click.option("--previous-injuries", type=int, default=0, show_default=True, help="Number of prior injuries")
@click.option("--training-intensity", type=float, required=True, help="Training intensity (0-100)")
@click.pass_context
def injury_risk(ctx, workload, recovery_score, age, previous_injuries, training_intensity):
    """Classify injury risk for the next 30 days."""
    engine = ctx.obj["engine"]
    inputs = {
        "workload": workload,
        "recovery_score": recovery_score,
        "age": age,
        "previous_injuries": previous_injuries,
        "training_intensity": training_intensity,
    }
    try:
        assessment = engine.predict_injury_risk(inputs)
    except RecoveryEngineError as e:
        fail(e)

    style = LEVEL_STYLES[assessment.level.value]
    console.print(Panel(
        f"""
[bold]Risk Level:[/bold] [{style}]{assessment.level.value.upper()}[/{style}]
[bold]Risk Score:[/bold] {assessment.risk_score:.0f}
[bold]Probability:[/bold] {assessment.probability:.1%} over {assessment.timeframe_days} days
        """,
        title="🩹 Injury Risk",
        box=box.ROUNDED,
    ))

    for factor in assessment.factors:
        factor_style = LEVEL_STYLES.get(factor.severity.value, "white")
        console.print(f"  [{factor_style}]{factor.type}[/{factor_style}]: {factor.description}")

    print_recommendations(assessment.recommendations)


@cli.command()
@click.option("--athlete", "athlete_id", default="athlete-001", help="Athlete identifier")
@click.option("--peers", default=20, show_default=True, help="Size of the synthetic peer group")
@click.pass_context
def compare(ctx, athlete_id, peers):
    """Compare an athlete against a peer group."""
    engine = ctx.obj["engine"]
    provider = ctx.obj["provider"]
    try:
        result = engine.generate_comparative_analysis(athlete_id, provider.get_peer_group(athlete_id, peers))
    except RecoveryEngineError as e:
        fail(e)

    console.print(Panel.fit(f"🏅 Peer Comparison: {athlete_id}", style="bold blue"))

    table = Table(title="Percentile Rankings", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Percentile", justify="right")
    table.add_column("Benchmark")
    for metric, rank in result["rankings"].items():
        style = score_style(rank)
        table.add_row(metric.title(), f"[{style}]{rank}[/{style}]", result["benchmarks"][metric])
    console.print(table)

    if result["similar_athletes"]:
        console.print("\n[bold]👥 Most Similar Athletes:[/bold]")
        for peer in result["similar_athletes"]:
            traits = ", ".join(peer["shared_traits"]) or "no shared traits"
            console.print(f"  • {peer['name']} ({peer['similarity']}% similar; {traits})")

    for heading, entries in (("💪 Strengths", result["strengths"]),
                             ("📋 Improvement Areas", result["improvement_areas"])):
        if entries:
            console.print(f"\n[bold]{heading}:[/bold]")
            for entry in entries:
                console.print(f"  • {entry['description']} (percentile {entry['rank']})")


@cli.command("cache-sweep")
@click.pass_context
def cache_sweep(ctx):
    """Remove expired cached analyses."""
    engine = ctx.obj["engine"]
    removed = engine.sweep_cache()
    console.print(f"[green]✅ Removed {removed} expired cache entries[/green]")


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user.[/yellow]")


if __name__ == "__main__":
    main()
