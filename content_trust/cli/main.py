"""Command line interface for the content trust pipeline using Typer and Rich."""

import asyncio
import uuid
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from content_trust import __version__
from content_trust.config.logging import get_logger
from content_trust.config.settings import settings

app = typer.Typer(
    help="Content Trust - staged verification and review consensus for user content",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

STATUS_STYLES = {
    "clean": "green",
    "needs_review": "yellow",
    "blocked": "red",
}


@app.command()
def status() -> None:
    """
    Display pipeline configuration.

    Shows the inference backend, retry policy and decision thresholds.
    """
    logger.info("Displaying pipeline status")

    table = Table(title="Content Trust Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    backend = settings.inference_backend.lower()
    if backend == "gemini":
        ready = "✓ Configured" if settings.gemini_api_key else "⚠ No API key"
        details = f"{settings.gemini_model} (RPM: {settings.max_rpm})"
    elif backend == "http":
        ready = "✓ Configured" if settings.inference_url else "⚠ No URL"
        details = settings.inference_url or "-"
    else:
        ready = "✗ Disabled"
        details = "Heuristic fallbacks only"
    table.add_row("Inference", ready, details)

    table.add_row(
        "Stages",
        "✓ Active",
        f"{settings.stage_max_attempts} attempts, timeout {settings.stage_timeout_s:.0f}s",
    )
    table.add_row(
        "Policy",
        "✓ Active",
        f"false verdict > {settings.false_confidence_threshold:.2f} blocks",
    )
    table.add_row(
        "Consensus",
        "✓ Active",
        f"{settings.consensus_min_votes} votes, {settings.consensus_supermajority:.0%} supermajority",
    )
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    console.print(table)


@app.command()
def check(
    text: str = typer.Argument(..., help="Content text to run through the pipeline"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Declared topic"),
    author: str = typer.Option("cli-user", "--author", help="Author id"),
    offline: bool = typer.Option(False, "--offline", help="Skip inference, use heuristics only"),
) -> None:
    """
    Run one piece of text through the full pipeline and print the result.

    Args:
        text: Content body
        topic: Optional declared topic (e.g. health)
        author: Author id used for the reputation update
        offline: Use heuristic fallbacks instead of the inference backend
    """
    from content_trust.agents.sifters import (
        ClaimExtractionAgent,
        DiscussionAnalyzer,
        ExplanationAgent,
        FactVerifier,
        RiskClassifier,
        ValueScorer,
    )
    from content_trust.data_management import CheckpointStore, ContentStore
    from content_trust.data_management.schemas import ContentItem
    from content_trust.pipeline import ContentTrustPipeline

    logger.info("Check command invoked", topic=topic, offline=offline)

    async def _run():
        store = ContentStore()
        item = ContentItem(id=f"cli-{uuid.uuid4().hex[:8]}", author_id=author, text=text, topic=topic)
        await store.add(item)

        agent_kwargs = {"inference_client": None} if offline else {}
        pipeline = ContentTrustPipeline(
            content_store=store,
            checkpoint_store=CheckpointStore(),
            risk_classifier=RiskClassifier(**agent_kwargs),
            claim_extractor=ClaimExtractionAgent(**agent_kwargs),
            fact_verifier=FactVerifier(**agent_kwargs),
            discussion_analyzer=DiscussionAnalyzer(**agent_kwargs),
            value_scorer=ValueScorer(**agent_kwargs),
            explanation_agent=ExplanationAgent(**agent_kwargs),
        )
        return await pipeline.process(item.id)

    try:
        result = asyncio.run(_run())
    except Exception as e:
        console.print(f"\n[red]✗[/red] Error: {e}")
        logger.error("Check failed", error=str(e))
        raise typer.Exit(1)

    status_value = result.status.value if result.status else "unknown"
    style = STATUS_STYLES.get(status_value, "white")
    console.print(Panel(
        f"[bold {style}]{status_value}[/bold {style}]\n"
        + "\n".join(f"- {r}" for r in (result.decision.reasons if result.decision else [])),
        title="Publish Status",
        border_style=style,
    ))

    if result.claims:
        checks = {fc.claim_id: fc for fc in result.fact_checks}
        table = Table(title="Claims", show_header=True, header_style="bold magenta")
        table.add_column("Claim", style="cyan")
        table.add_column("Risk", width=8)
        table.add_column("Verdict", width=10)
        table.add_column("Confidence", width=10)
        for claim in result.claims:
            fc = checks.get(claim.id)
            table.add_row(
                claim.text,
                claim.risk_level.value,
                fc.verdict.value if fc else "-",
                f"{fc.confidence:.2f}" if fc else "-",
            )
        console.print(table)

    if result.value_score:
        vs = result.value_score
        console.print(
            f"\n[bold]Value[/bold] total={vs.total:.2f} "
            f"(epistemic {vs.epistemic:.2f}, insight {vs.insight:.2f}, "
            f"practical {vs.practical:.2f}, relational {vs.relational:.2f}, effort {vs.effort:.2f})"
        )
    if result.explanation:
        console.print(f"[dim]{result.explanation}[/dim]")
    if result.degraded_stages:
        console.print(f"\n[yellow]⚠ Degraded stages:[/yellow] {', '.join(result.degraded_stages)}")


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Content Trust[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
