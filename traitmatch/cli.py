"""TraitMatch CLI application with Typer."""

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Annotated, NoReturn

import typer

from traitmatch import __version__
from traitmatch.app import BenchmarkUnavailable, UnknownEntity
from traitmatch.app.tuner_service import REFERENCE_CATALOG
from traitmatch.bootstrap import bootstrap_application
from traitmatch.config import get_settings, set_settings
from traitmatch.index import DimensionMismatch, EmptyIndex

if TYPE_CHECKING:
    from traitmatch.app.ports import VectorHit

app = typer.Typer(
    name="traitmatch",
    help="Personality/interest vector matching with a self-tuning ANN index",
    add_completion=True,
    no_args_is_help=True,
)

_BACKENDS = {"nsw", "hnswlib"}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"TraitMatch version {__version__}")
        raise typer.Exit()


def _fail(exc: Exception, code: int = 1) -> NoReturn:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code) from exc


def _parse_vector(raw: str) -> list[float]:
    parts = [item.strip() for item in raw.split(",")]
    try:
        return [float(item) for item in parts if item]
    except ValueError as exc:
        raise typer.BadParameter(f"Vector must be comma-separated numbers; got '{raw}'") from exc


def _echo_hits(title: str, hits: "list[VectorHit]") -> None:
    if not hits:
        typer.secho("No matches found", fg=typer.colors.YELLOW)
        return

    typer.secho(title, fg=typer.colors.BLUE)
    for i, hit in enumerate(hits, 1):
        typer.echo(f"{i}. {hit.identifier} (similarity: {hit.score:.3f})")


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed for demo profiles and benchmark sampling"),
    ] = None,
    users: Annotated[
        int | None,
        typer.Option("--users", help="Number of demo profiles to generate", min=0),
    ] = None,
    backend: Annotated[
        str | None,
        typer.Option("--backend", help="Index backend: nsw or hnswlib", case_sensitive=False),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
    ] = None,
) -> None:
    """TraitMatch - match people by personality and interest vectors."""
    # Update settings with CLI flags
    settings = get_settings()
    if seed is not None:
        settings.random_seed = seed
    if users is not None:
        settings.seed_user_count = users
    if backend is not None:
        backend_normalized = backend.lower()
        if backend_normalized not in _BACKENDS:
            typer.secho(
                "Invalid backend. Choose from 'nsw' or 'hnswlib'.",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=2)
        settings.index_backend = backend_normalized  # type: ignore[assignment]
    if log_level is not None:
        settings.log_level = log_level
    set_settings(settings)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("search")
def search(
    user_id: Annotated[str, typer.Argument(help="Profile to find matches for")],
    k: Annotated[int | None, typer.Option("--k", "-k", help="Matches to return", min=1)] = None,
    ef_search: Annotated[
        int | None,
        typer.Option("--ef", help="Search beam width (defaults to the active config)", min=1),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Find the closest matches for an existing profile."""

    container = bootstrap_application()
    service = container.match_service
    try:
        hits = service.similar_to(user_id, k=k, ef_search=ef_search)
    except UnknownEntity:
        _fail(ValueError(f"Unknown profile '{user_id}'"))
    except EmptyIndex as exc:
        _fail(exc)

    if json_output:
        from traitmatch.utils.cli_output import json_response

        typer.echo(
            json_response(
                "match_results",
                1,
                user_id=user_id,
                config=service.active_config.model_dump(),
                total_hits=len(hits),
                results=[asdict(hit) for hit in hits],
            )
        )
        return

    _echo_hits(f"Found {len(hits)} matches for '{user_id}':", hits)


@app.command("query")
def query(
    vector: Annotated[
        str,
        typer.Argument(help="Comma-separated query vector, e.g. 0.8,0.4,0.6,0.7,0.3"),
    ],
    k: Annotated[int | None, typer.Option("--k", "-k", help="Matches to return", min=1)] = None,
    ef_search: Annotated[
        int | None,
        typer.Option("--ef", help="Search beam width (defaults to the active config)", min=1),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output results as JSON")] = False,
) -> None:
    """Find the closest profiles to an arbitrary vector."""

    values = _parse_vector(vector)
    container = bootstrap_application()
    try:
        hits = container.match_service.search(values, k=k, ef_search=ef_search)
    except (DimensionMismatch, EmptyIndex) as exc:
        _fail(exc)

    if json_output:
        from traitmatch.utils.cli_output import json_response

        typer.echo(
            json_response(
                "match_results",
                1,
                vector=values,
                total_hits=len(hits),
                results=[asdict(hit) for hit in hits],
            )
        )
        return

    _echo_hits(f"Found {len(hits)} matches:", hits)


@app.command("explain")
def explain(
    first_id: Annotated[str, typer.Argument(help="First profile")],
    second_id: Annotated[str, typer.Argument(help="Second profile")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Explain how well two profiles match and which traits drive it."""

    container = bootstrap_application()
    try:
        explanation = container.match_service.explain_match(first_id, second_id)
    except UnknownEntity as exc:
        _fail(ValueError(f"Unknown profile {exc}"))

    if json_output:
        from traitmatch.utils.cli_output import json_response

        typer.echo(json_response("match_explanation", 1, **explanation.model_dump(mode="json")))
        return

    typer.secho(
        f"{first_id} <-> {second_id}: similarity {explanation.similarity:.3f}",
        fg=typer.colors.BLUE,
    )
    for item in explanation.top_contributors:
        typer.echo(f"  {item.dimension}: {item.contribution:.3f}")


@app.command("tune")
def tune(
    latency_budget: Annotated[
        float | None,
        typer.Option("--latency-budget", help="p95 latency budget in milliseconds", min=0.0),
    ] = None,
    sample_size: Annotated[
        int | None,
        typer.Option("--sample-size", help="Profiles sampled as benchmark queries", min=1),
    ] = None,
    k: Annotated[int | None, typer.Option("--k", "-k", help="k for recall@k", min=1)] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output report as JSON")] = False,
) -> None:
    """Benchmark the reference index configurations and pick one for the budget."""

    container = bootstrap_application()
    settings = container.settings
    budget = settings.latency_budget_ms if latency_budget is None else latency_budget

    try:
        report = container.match_service.tune(
            budget,
            sample_size=sample_size or settings.benchmark_sample_size,
            k=k or settings.benchmark_k,
            rng=settings.random_seed,
        )
    except BenchmarkUnavailable as exc:
        _fail(exc)

    if json_output:
        from traitmatch.utils.cli_output import json_response

        typer.echo(json_response("tuning_report", 1, **report.model_dump(mode="json")))
        return

    typer.secho(
        f"Tested {report.total_configs_tested} configs (budget {budget:g} ms):",
        fg=typer.colors.BLUE,
    )
    selected = report.selected_config
    for result in report.configs:
        marker = "*" if result == selected else " "
        typer.echo(
            f"{marker} {result.config.label():<26} recall={result.recall:.3f} "
            f"avg={result.avg_latency_ms:.3f}ms p95={result.p95_latency_ms:.3f}ms "
            f"qps={result.queries_per_second:.1f}"
        )
    typer.secho(report.explanation, fg=typer.colors.GREEN)


@app.command("configs")
def configs(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """List the reference index configurations swept by ``tune``."""

    if json_output:
        from traitmatch.utils.cli_output import json_response

        typer.echo(
            json_response(
                "index_configs",
                1,
                configs=[config.model_dump() for config in REFERENCE_CATALOG],
                description=(
                    "m = max connections per node, ef_construction = build-time beam width, "
                    "ef_search = query-time beam width"
                ),
            )
        )
        return

    for config in REFERENCE_CATALOG:
        typer.echo(config.label())


if __name__ == "__main__":
    app()
