"""
Command line entry point.

Usage:
    python -m src.cli profile.json [more.json ...] --data-dir data/
        [--config config/system_params.json] [--min-score N] [--max-count N]
        [--offline] [--json]
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.coordinator import RecommendationCoordinator
from src.models.config import DEFAULT_CONFIG_PATH, SystemParams
from src.models.errors import PipelineError
from src.models.profile import StudentProfile
from src.models.recommendation import SynthesisResult
from src.utils.logger import configure_logging, get_logger
from src.utils.progress_tracker import ProgressTracker
from src.utils.reference_store import ReferenceDataStore


console = Console()
# Progress, errors and summaries; stdout carries only results
err_console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Synthesize ranked career recommendations for student profiles",
    )
    parser.add_argument("profiles", nargs="+", type=Path, help="Student profile JSON file(s)")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data"),
        help="Directory with colleges.json, careers.json, scholarships.json",
    )
    parser.add_argument("--config", type=Path, default=None, help="System parameters JSON")
    parser.add_argument("--min-score", type=int, default=None, help="Minimum composite score")
    parser.add_argument("--max-count", type=int, default=None, help="Maximum recommendations")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the built-in fallback catalogue instead of calling a model",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    return parser


def load_system_params(config_path: Optional[Path]) -> SystemParams:
    """Explicit --config must exist; the default path is optional."""
    if config_path is not None:
        return SystemParams.load(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return SystemParams.load(DEFAULT_CONFIG_PATH)
    return SystemParams()


def load_profile(path: Path) -> StudentProfile:
    with open(path, "r", encoding="utf-8") as f:
        return StudentProfile.model_validate(json.load(f))


def render_result(result: SynthesisResult) -> Table:
    metadata = result.metadata
    table = Table(
        title=(
            f"Profile {metadata.profile_id} - {metadata.model_identifier}"
            f"{' (fallback)' if metadata.used_fallback else ''}"
            f" - {metadata.processing_time_ms} ms"
        )
    )
    table.add_column("#", justify="right")
    table.add_column("Career", style="bold")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Interest", justify="right")
    table.add_column("Skill", justify="right")
    table.add_column("Demand", justify="right")
    table.add_column("Financial", justify="right")
    table.add_column("Education", justify="right")
    table.add_column("Colleges", justify="right")
    table.add_column("Scholarships", justify="right")

    for position, rec in enumerate(result.recommendations, start=1):
        factors = rec.score_breakdown
        table.add_row(
            str(position),
            rec.title,
            str(rec.match_score),
            str(factors.interest_match),
            str(factors.skill_alignment),
            str(factors.market_demand),
            str(factors.financial_viability),
            str(factors.educational_fit),
            str(len(rec.recommended_colleges)),
            str(len(rec.scholarships)),
        )
    return table


async def run(args: argparse.Namespace) -> int:
    logger = get_logger(correlation_id="cli", phase="cli", component="cli")

    system_params = load_system_params(args.config)
    configure_logging(log_file=None, log_level=system_params.log_level, stream=sys.stderr)
    store = ReferenceDataStore.from_directory(args.data_dir)
    profiles = [load_profile(path) for path in args.profiles]

    coordinator = RecommendationCoordinator.from_config(
        system_params, store, offline=args.offline
    )

    tracker = ProgressTracker(err_console)
    tracker.start("Synthesizing recommendations", total_items=len(profiles))

    async def synthesize(profile: StudentProfile) -> Union[SynthesisResult, PipelineError]:
        try:
            result: Union[SynthesisResult, PipelineError] = await coordinator.synthesize(
                profile, args.min_score, args.max_count
            )
        except PipelineError as e:
            result = e
        tracker.advance(profile.id, failed=isinstance(result, PipelineError))
        return result

    try:
        results = await asyncio.gather(*(synthesize(p) for p in profiles))
    finally:
        tracker.complete()
        await coordinator.aclose()

    exit_code = 0
    for profile, result in zip(profiles, results):
        if isinstance(result, PipelineError):
            exit_code = 1
            logger.error("Synthesis failed", profile_id=profile.id, **result.to_dict())
            err_console.print(f"[red]{profile.id}: {result.message}[/red]")
        elif args.json:
            console.print_json(result.model_dump_json(by_alias=True))
        else:
            console.print(render_result(result))
            console.print(f"[dim]{result.metadata.reasoning}[/dim]\n")
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except (FileNotFoundError, json.JSONDecodeError, ValidationError, PipelineError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
