#!/usr/bin/env python3
"""
ProAthlete Coach CLI.

AI-generated weekly training plans that adapt to daily feedback.

Usage:
    proathlete-coach configure --api-key sk-... --model gpt-4o-mini
    proathlete-coach onboard --sport tennis --age 22 --goals "..."
    proathlete-coach plan                # Show the current week
    proathlete-coach plan --day 2        # Exercises for one day
    proathlete-coach feedback --day 0 --rpe 7 --fatigue 5 --sleep 4 --pain 1
    proathlete-coach status              # Feedback logged this week
    proathlete-coach iterate             # Generate next week
    proathlete-coach prompt --kind iteration   # Preview the prompt offline
    proathlete-coach history
    proathlete-coach reset --yes
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from .config import AppConfiguration, get_settings
from .db.repository import AppStateRepository
from .exceptions import ConfigurationError, PlanNotFoundError, ProAthleteError
from .llm.prompts import compose_initial_prompt, compose_iteration_prompt
from .llm.providers import RetryConfig
from .models.athlete import DEFAULT_PROFILE, AthleteProfile, InjuryStatus, Sport
from .models.feedback import DailyFeedback
from .models.plans import TrainingPlan
from .services.coach import CoachSession
from .utils.log_sanitizer import install_log_sanitizer

console = Console()


def get_load_color(value: Optional[float], high: float, medium: float) -> str:
    """Get rich color for an RPE / fatigue / pain average."""
    if value is None:
        return "white"
    if value > high:
        return "red"
    if value > medium:
        return "yellow"
    return "green"


def mask_credential(credential: str) -> str:
    """Show only the last four characters of a key."""
    if not credential:
        return "[not set]"
    return "*" * 8 + credential[-4:]


def _read_template(path: Optional[str]) -> Optional[str]:
    if path is None:
        return None
    return Path(path).read_text(encoding="utf-8")


def print_plan(plan: TrainingPlan) -> None:
    """Render the week overview."""
    console.print()
    console.print(Panel(
        plan.summary,
        title=f"[bold]Week {plan.week_number}[/bold]",
        subtitle=f"plan {plan.id}",
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Day", style="cyan")
    table.add_column("Name")
    table.add_column("Focus", style="bold")
    table.add_column("Exercises", justify="right")

    for day in plan.days:
        focus = Text("Rest", style="dim") if day.is_rest_day else Text(day.focus)
        table.add_row(str(day.day_index), day.day_name, focus, str(len(day.exercises)))
    console.print(table)


def print_day(plan: TrainingPlan, day_index: int) -> None:
    """Render one day's exercises."""
    day = plan.get_day(day_index)
    if day is None:
        console.print(f"[red]Plan has no day {day_index}[/red]")
        return

    console.print()
    console.print(Panel(
        day.description or day.focus,
        title=f"[bold]{day.day_name}: {day.focus}[/bold]",
    ))
    if day.is_rest_day and not day.exercises:
        console.print("[dim]Rest day.[/dim]")
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps")
    table.add_column("Intensity")
    table.add_column("Rest")
    table.add_column("Notes", style="dim")
    for ex in day.exercises:
        table.add_row(ex.name, str(ex.sets), ex.reps, ex.intensity, ex.rest or "", ex.notes or "")
    console.print(table)


# ============================================================================
# Commands
# ============================================================================

def cmd_configure(args, session: CoachSession) -> int:
    """Store credential, model and prompt templates."""
    stored = session.repository.get_settings() or AppConfiguration()

    if args.clear_templates:
        initial_template = None
        iteration_template = None
    else:
        initial_template = _read_template(args.initial_template) or stored.initial_plan_template
        iteration_template = _read_template(args.iteration_template) or stored.iteration_plan_template

    updated = AppConfiguration(
        credential=args.api_key if args.api_key is not None else stored.credential,
        model_identifier=args.model or stored.model_identifier,
        initial_plan_template=initial_template,
        iteration_plan_template=iteration_template,
    )
    if updated != stored:
        session.save_settings(updated)
        console.print("[green]Settings saved.[/green]")

    effective = session.configuration()
    table = Table(title="Configuration", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("API key", mask_credential(effective.credential))
    table.add_row("Model", effective.model_name)
    table.add_row("Initial template", "custom" if effective.initial_plan_template else "default")
    table.add_row("Iteration template", "custom" if effective.iteration_plan_template else "default")
    console.print(table)
    return 0


def build_profile(args, base: AthleteProfile) -> AthleteProfile:
    """Apply onboarding flags on top of an existing profile."""
    if args.from_file:
        data = json.loads(Path(args.from_file).read_text(encoding="utf-8"))
        return AthleteProfile.model_validate(data)

    overrides = {
        "name": args.name,
        "age": args.age,
        "height_cm": args.height,
        "weight_kg": args.weight,
        "sport": args.sport,
        "training_age": args.training_age,
        "injury_history": args.injury_history,
        "injury_status": args.injury_status,
        "strength_squat": args.squat,
        "speed_10m": args.speed,
        "endurance_vo2": args.endurance,
        "sport_specific_stats": args.sport_stats,
        "goals": args.goals,
        "constraints": args.constraints,
    }
    data = base.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    return AthleteProfile.model_validate(data)


def cmd_onboard(args, session: CoachSession) -> int:
    """Save the athlete profile and generate week 1."""
    profile = build_profile(args, session.profile or DEFAULT_PROFILE)

    with console.status("[bold]Generating your first training week...[/bold]"):
        plan = asyncio.run(session.complete_profile(profile))

    console.print(f"[green]Week {plan.week_number} generated.[/green]")
    print_plan(plan)
    return 0


def cmd_plan(args, session: CoachSession) -> int:
    """Show the current plan or one of its days."""
    plan = session.plan
    if plan is None:
        raise PlanNotFoundError()
    if args.day is not None:
        print_day(plan, args.day)
    else:
        print_plan(plan)
    return 0


def cmd_feedback(args, session: CoachSession) -> int:
    """Log how today's session felt."""
    plan = session.plan
    if plan is None:
        raise PlanNotFoundError()

    feedback = DailyFeedback(
        plan_id=plan.id,
        day_index=args.day,
        rpe=args.rpe,
        fatigue=args.fatigue,
        sleep_quality=args.sleep,
        pain_level=args.pain,
        pain_location=args.pain_location,
        completion_rate=args.completion,
        notes=args.notes,
    )
    session.submit_feedback(feedback)
    console.print(f"[green]Feedback for day {args.day} recorded.[/green]")
    return 0


def cmd_status(args, session: CoachSession) -> int:
    """Show feedback logged for the current week."""
    progress = session.progress()

    console.print()
    console.print(Panel(
        f"Week {progress.week_number}: {progress.completed_days}/7 days logged "
        f"({progress.training_days} training days)",
        title="[bold]Progress[/bold]",
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Average", justify="right")
    for label, value, high, medium in (
        ("RPE", progress.avg_rpe, 8, 6),
        ("Fatigue", progress.avg_fatigue, 7, 5),
        ("Pain", progress.avg_pain, 3, 1),
    ):
        text = "-" if value is None else f"{value:.1f}"
        table.add_row(label, Text(text, style=get_load_color(value, high, medium)))
    table.add_row(
        "Completion",
        "-" if progress.avg_completion is None else f"{progress.avg_completion:.0f}%",
    )
    console.print(table)

    if progress.ready_to_iterate:
        console.print("[bold]Week complete.[/bold] Run [cyan]proathlete-coach iterate[/cyan] for next week.")
    return 0


def cmd_iterate(args, session: CoachSession) -> int:
    """Generate next week's plan from this week's feedback."""
    with console.status("[bold]Adapting your plan...[/bold]"):
        plan = asyncio.run(session.iterate_plan())

    console.print(f"[green]Week {plan.week_number} generated.[/green]")
    print_plan(plan)
    return 0


def cmd_prompt(args, session: CoachSession) -> int:
    """Print the prompt that would be sent, without calling the model."""
    config = session.configuration()
    profile = session.profile or DEFAULT_PROFILE
    template = _read_template(args.template)

    if args.kind == "initial":
        prompt = compose_initial_prompt(profile, template or config.initial_plan_template)
    else:
        plan = session.plan
        if plan is None:
            raise PlanNotFoundError()
        prompt = compose_iteration_prompt(
            plan,
            session.repository.list_feedback(),
            profile,
            template or config.iteration_plan_template,
        )

    console.print(prompt, markup=False, highlight=False)
    return 0


def cmd_history(args, session: CoachSession) -> int:
    """List archived plans."""
    plans = session.history()
    if not plans:
        console.print("[dim]No archived plans yet.[/dim]")
        return 0

    table = Table(title="Plan History", box=box.ROUNDED)
    table.add_column("Week", justify="right", style="cyan")
    table.add_column("Plan ID")
    table.add_column("Started")
    table.add_column("Summary")
    for plan in plans:
        summary = plan.summary if len(plan.summary) <= 60 else plan.summary[:57] + "..."
        table.add_row(str(plan.week_number), plan.id, plan.start_date.strftime("%Y-%m-%d"), summary)
    console.print(table)
    return 0


def cmd_reset(args, session: CoachSession) -> int:
    """Delete profile, plan and feedback (settings are kept)."""
    if not args.yes and not Confirm.ask("Are you sure? This will delete your plan and profile."):
        console.print("[dim]Nothing deleted.[/dim]")
        return 0
    session.reset()
    console.print("[green]Profile, plan and feedback deleted.[/green]")
    return 0


COMMANDS = {
    "configure": cmd_configure,
    "onboard": cmd_onboard,
    "plan": cmd_plan,
    "feedback": cmd_feedback,
    "status": cmd_status,
    "iterate": cmd_iterate,
    "prompt": cmd_prompt,
    "history": cmd_history,
    "reset": cmd_reset,
}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="proathlete-coach",
        description="ProAthlete Coach - AI-generated training weeks that adapt to feedback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  proathlete-coach configure --api-key sk-... --model gpt-4o-mini
  proathlete-coach onboard --sport tennis --age 22 --height 185 --weight 78
  proathlete-coach feedback --day 0 --rpe 7 --fatigue 5 --sleep 4 --pain 1
  proathlete-coach iterate
        """,
    )
    parser.add_argument("--db", type=str, help="Path to the state database")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Configure command
    configure_p = subparsers.add_parser("configure", help="Set API key, model and templates")
    configure_p.add_argument("--api-key", type=str, help="Model API key")
    configure_p.add_argument("--model", type=str, help="Model identifier")
    configure_p.add_argument("--initial-template", type=str, help="File with a custom initial plan template")
    configure_p.add_argument("--iteration-template", type=str, help="File with a custom iteration template")
    configure_p.add_argument(
        "--clear-templates", action="store_true", help="Go back to the built-in templates"
    )

    # Onboard command
    onboard_p = subparsers.add_parser("onboard", help="Save athlete profile and generate week 1")
    onboard_p.add_argument("--from-file", type=str, help="JSON file with the full profile")
    onboard_p.add_argument("--name", type=str)
    onboard_p.add_argument("--age", type=int)
    onboard_p.add_argument("--height", type=float, help="Height in cm")
    onboard_p.add_argument("--weight", type=float, help="Weight in kg")
    onboard_p.add_argument(
        "--sport",
        type=str,
        help=f"One of: {', '.join(s.name.lower() for s in Sport)}",
    )
    onboard_p.add_argument("--training-age", type=float, help="Years of training")
    onboard_p.add_argument("--injury-history", type=str)
    onboard_p.add_argument(
        "--injury-status",
        type=str,
        help=f"One of: {', '.join(s.value for s in InjuryStatus)}",
    )
    onboard_p.add_argument("--squat", type=float, help="Squat 1RM estimate")
    onboard_p.add_argument("--speed", type=float, help="10m sprint time in seconds")
    onboard_p.add_argument("--endurance", type=float, help="VO2max or Cooper distance")
    onboard_p.add_argument("--sport-stats", type=str, help="Sport specific stats")
    onboard_p.add_argument("--goals", type=str)
    onboard_p.add_argument("--constraints", type=str)

    # Plan command
    plan_p = subparsers.add_parser("plan", help="Show the current plan")
    plan_p.add_argument("--day", "-d", type=int, help="Show exercises for one day (0-6)")

    # Feedback command
    feedback_p = subparsers.add_parser("feedback", help="Log feedback for a day")
    feedback_p.add_argument("--day", "-d", type=int, required=True, help="Day index (0-6)")
    feedback_p.add_argument("--rpe", type=int, default=7, help="Perceived exertion 1-10")
    feedback_p.add_argument("--fatigue", type=int, default=5, help="Fatigue 1-10")
    feedback_p.add_argument("--sleep", type=int, default=3, help="Sleep quality 1-5")
    feedback_p.add_argument("--pain", type=int, default=1, help="Pain 1-10")
    feedback_p.add_argument("--pain-location", type=str)
    feedback_p.add_argument("--completion", type=int, default=100, help="Percent completed")
    feedback_p.add_argument("--notes", type=str)

    # Status command
    subparsers.add_parser("status", help="Show this week's logged feedback")

    # Iterate command
    subparsers.add_parser("iterate", help="Generate next week from feedback")

    # Prompt command
    prompt_p = subparsers.add_parser("prompt", help="Preview the rendered prompt")
    prompt_p.add_argument("--kind", choices=["initial", "iteration"], default="initial")
    prompt_p.add_argument("--template", type=str, help="Render this template file instead")

    # History command
    subparsers.add_parser("history", help="List archived plans")

    # Reset command
    reset_p = subparsers.add_parser("reset", help="Delete profile, plan and feedback")
    reset_p.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    return parser


def build_session(db_path: Optional[str] = None) -> CoachSession:
    """Wire the session from environment settings."""
    settings = get_settings()
    repository = AppStateRepository(db_path or settings.db_path)
    return CoachSession(
        repository,
        default_config=AppConfiguration.from_settings(settings),
        retry_config=RetryConfig(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
        ),
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    install_log_sanitizer()

    try:
        session = build_session(args.db)
        return COMMANDS[args.command](args, session)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        console.print("Run [cyan]proathlete-coach configure --api-key ...[/cyan] first.")
        return 1
    except ProAthleteError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 1
    except PydanticValidationError as e:
        console.print(f"[red]Invalid input:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
