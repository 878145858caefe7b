"""CLI commands for the learning platform.

Every command loads the platform state from $LEARN_DATA_DIR (default: the
configured paths.data_dir), runs one operation, and saves the state back if
the operation succeeded.

Commands:
- register, user, achievements: user profiles
- create-skill, skills, skill, activate-skill, deactivate-skill: skill listings
- start-session, complete-session, cancel-session, sessions: learning sessions
- balance, transfer, faucet: tokens
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import typer
from rich.console import Console
from rich.table import Table

from learnplatform.config.app_config import load_app_config
from learnplatform.core.achievements import evaluate_achievements
from learnplatform.core.errors import PlatformError, StateFileError
from learnplatform.core.platform import LearnPlatform
from learnplatform.core.session_engine import SessionState
from learnplatform.core.state_store import load_platform_state, save_platform_state
from learnplatform.utils.token_units import (
    TokenAmountError,
    bps_to_rating,
    format_token_amount,
    parse_token_amount,
)

app = typer.Typer(
    name="learn",
    help="Decentralized learning platform: skills, sessions, reputation and tokens.",
    no_args_is_help=True,
)

console = Console()


def _data_dir() -> Path:
    env_dir = os.environ.get("LEARN_DATA_DIR")
    return Path(env_dir) if env_dir else load_app_config().data_dir


def _decimals() -> int:
    return load_app_config().token.decimals


def _tokens(amount: int) -> str:
    config = load_app_config()
    return f"{format_token_amount(amount, config.token.decimals)} {config.token.symbol}"


def _parse_amount_or_exit(text: str) -> int:
    try:
        return parse_token_amount(text, _decimals())
    except TokenAmountError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


@contextmanager
def _platform(save: bool = True) -> Generator[LearnPlatform, None, None]:
    """Load the platform, yield it, and persist it if nothing failed."""
    config = load_app_config()
    data_dir = _data_dir()
    try:
        platform = load_platform_state(
            data_dir,
            policy=config.settlement_policy(),
            achievements=config.achievements,
        )
    except StateFileError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    try:
        yield platform
    except PlatformError as e:
        console.print(f"[red]✗ {e.kind}: {e.message}[/red]")
        raise typer.Exit(code=1)

    if save:
        save_platform_state(platform, data_dir)


# =============================================================================
# USERS
# =============================================================================


@app.command()
def register(
    address: str = typer.Argument(..., help="Account address"),
    username: str = typer.Argument(..., help="Unique username"),
    instructor: bool = typer.Option(False, "--instructor", "-i", help="Register as instructor"),
) -> None:
    """Register a user profile for an address."""
    with _platform() as platform:
        user = platform.register_user(address, username, is_instructor=instructor)

    role = "instructor" if user.is_instructor else "student"
    console.print(f"[green]✓ Registered {user.username} ({role})[/green]")
    console.print(f"  [dim]address:[/dim] {user.address}")


@app.command()
def user(address: str = typer.Argument(..., help="Account address")) -> None:
    """Show a user profile."""
    with _platform(save=False) as platform:
        profile = platform.get_user(address)
        balance = platform.balance_of(address)
        labels = platform.achievements(address)

    console.print(f"[bold]{profile.username}[/bold] [dim]{profile.address}[/dim]")
    console.print(f"  [dim]role:[/dim]       {'instructor' if profile.is_instructor else 'student'}")
    console.print(f"  [dim]balance:[/dim]    {_tokens(balance)}")
    console.print(f"  [dim]reputation:[/dim] {profile.reputation_score}")
    console.print(f"  [dim]taught:[/dim]     {profile.total_skills_taught}")
    console.print(f"  [dim]learned:[/dim]    {profile.total_skills_learned}")
    console.print(f"  [dim]earned:[/dim]     {_tokens(profile.tokens_earned)}")
    console.print(f"  [dim]spent:[/dim]      {_tokens(profile.tokens_spent)}")
    if labels:
        console.print(f"  [dim]achievements:[/dim] {', '.join(labels)}")


@app.command()
def achievements(address: str = typer.Argument(..., help="Account address")) -> None:
    """List achievements a user has unlocked."""
    with _platform(save=False) as platform:
        profile = platform.get_user(address)
        rules = platform.achievement_rules

    unlocked = set(evaluate_achievements(profile, rules))
    for rule in rules:
        mark = "[green]✓[/green]" if rule.label in unlocked else "[dim]·[/dim]"
        console.print(f"  {mark} {rule.label} [dim]({rule.stat} ≥ {rule.threshold})[/dim]")


# =============================================================================
# SKILLS
# =============================================================================


@app.command(name="create-skill")
def create_skill(
    instructor: str = typer.Argument(..., help="Instructor address"),
    title: str = typer.Argument(..., help="Skill title"),
    category: str = typer.Option(..., "--category", "-c", help="Skill category"),
    price: str = typer.Option(..., "--price", "-p", help="Price in whole tokens"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    duration: int = typer.Option(0, "--duration", help="Duration in minutes"),
    content_hash: str = typer.Option("", "--content-hash", help="Content pointer (e.g. IPFS CID)"),
) -> None:
    """Publish a new skill."""
    amount = _parse_amount_or_exit(price)
    with _platform() as platform:
        skill = platform.create_skill(
            instructor, title, description, category, duration, amount, content_hash
        )

    console.print(f"[green]✓ Skill {skill.id} created: {skill.title}[/green]")
    console.print(f"  [dim]category:[/dim] {skill.category}")
    console.print(f"  [dim]price:[/dim]    {_tokens(skill.price)}")


@app.command()
def skills(
    category: str | None = typer.Option(None, "--category", "-c", help="Filter by category"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include inactive skills"),
) -> None:
    """List skills."""
    with _platform(save=False) as platform:
        items = platform.list_skills(active_only=not show_all)

    if category:
        items = [s for s in items if s.category == category]

    if not items:
        console.print("[yellow]No skills found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Rating", justify="center")
    table.add_column("Students", justify="right")
    table.add_column("Active", justify="center")

    for s in items:
        table.add_row(
            str(s.id),
            s.title,
            s.category,
            _tokens(s.price),
            f"{bps_to_rating(s.average_rating):.2f}",
            str(s.total_students),
            "[green]✓[/green]" if s.is_active else "[red]✗[/red]",
        )
    console.print(table)


@app.command()
def skill(skill_id: int = typer.Argument(..., help="Skill ID")) -> None:
    """Show a skill."""
    with _platform(save=False) as platform:
        s = platform.get_skill(skill_id)

    console.print(f"[bold]{s.id}. {s.title}[/bold]")
    if s.description:
        console.print(f"  {s.description}")
    console.print(f"  [dim]category:[/dim]   {s.category}")
    console.print(f"  [dim]instructor:[/dim] {s.instructor}")
    console.print(f"  [dim]price:[/dim]      {_tokens(s.price)}")
    console.print(f"  [dim]rating:[/dim]     {bps_to_rating(s.average_rating):.2f} ({s.total_ratings})")
    console.print(f"  [dim]students:[/dim]   {s.total_students}")
    console.print(f"  [dim]active:[/dim]     {'yes' if s.is_active else 'no'}")


def _set_skill_active(skill_id: int, by: str, is_active: bool) -> None:
    with _platform() as platform:
        s = platform.set_skill_active(skill_id, is_active, by=by)
    state = "activated" if s.is_active else "deactivated"
    console.print(f"[green]✓ Skill {s.id} {state}[/green]")


@app.command(name="activate-skill")
def activate_skill(
    skill_id: int = typer.Argument(..., help="Skill ID"),
    by: str = typer.Option(..., "--by", help="Instructor address"),
) -> None:
    """Re-open a skill for enrolment."""
    _set_skill_active(skill_id, by, True)


@app.command(name="deactivate-skill")
def deactivate_skill(
    skill_id: int = typer.Argument(..., help="Skill ID"),
    by: str = typer.Option(..., "--by", help="Instructor address"),
) -> None:
    """Close a skill for new enrolments."""
    _set_skill_active(skill_id, by, False)


# =============================================================================
# SESSIONS
# =============================================================================


@app.command(name="start-session")
def start_session(
    student: str = typer.Argument(..., help="Student address"),
    skill_id: int = typer.Argument(..., help="Skill ID"),
) -> None:
    """Enrol in a skill; its price is held in escrow."""
    with _platform() as platform:
        session = platform.start_session(student, skill_id)

    console.print(f"[green]✓ Session {session.id} started[/green]")
    console.print(f"  [dim]skill:[/dim]  {session.skill_id}")
    console.print(f"  [dim]escrow:[/dim] {_tokens(session.escrowed_amount)}")


@app.command(name="complete-session")
def complete_session(
    session_id: int = typer.Argument(..., help="Session ID"),
    score: int = typer.Option(..., "--score", "-s", help="Assessment score 0-100"),
    rating: int = typer.Option(..., "--rating", "-r", help="Rating in basis points (400 = 4.00)"),
    feedback: str = typer.Option("", "--feedback", "-f", help="Feedback for the instructor"),
    by: str | None = typer.Option(None, "--by", help="Student address"),
) -> None:
    """Complete a session: pay the instructor and reward the student."""
    with _platform() as platform:
        result = platform.complete_session(session_id, score, rating, feedback, by=by)

    verdict = "[green]passed[/green]" if result.passed else "[yellow]not passed[/yellow]"
    console.print(f"[green]✓ Session {session_id} completed[/green] ({verdict})")
    console.print(f"  [dim]instructor paid:[/dim] {_tokens(result.instructor_payout)}")
    console.print(f"  [dim]reward:[/dim]          {_tokens(result.reward)}")
    console.print(f"  [dim]skill rating:[/dim]    {bps_to_rating(result.average_rating):.2f}")


@app.command(name="cancel-session")
def cancel_session(
    session_id: int = typer.Argument(..., help="Session ID"),
    by: str = typer.Option(..., "--by", help="Student or instructor address"),
) -> None:
    """Cancel a session and refund the student."""
    with _platform() as platform:
        before = platform.get_session(session_id).escrowed_amount
        platform.cancel_session(session_id, by=by)

    console.print(f"[green]✓ Session {session_id} cancelled[/green]")
    console.print(f"  [dim]refunded:[/dim] {_tokens(before)}")


@app.command()
def sessions(address: str = typer.Argument(..., help="Account address")) -> None:
    """List sessions of an address (as student or instructor)."""
    with _platform(save=False) as platform:
        items = [platform.get_session(i) for i in platform.get_user_sessions(address)]

    if not items:
        console.print("[yellow]No sessions found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Skill", justify="right")
    table.add_column("Student", style="cyan")
    table.add_column("State")
    table.add_column("Score", justify="right")
    table.add_column("Rating", justify="center")

    for s in items:
        table.add_row(
            str(s.id),
            str(s.skill_id),
            s.student,
            s.state.value,
            str(s.assessment_score) if s.state == SessionState.COMPLETED else "-",
            f"{bps_to_rating(s.rating):.2f}" if s.rating else "-",
        )
    console.print(table)


# =============================================================================
# TOKENS
# =============================================================================


@app.command()
def balance(address: str = typer.Argument(..., help="Account address")) -> None:
    """Show the token balance of an address."""
    with _platform(save=False) as platform:
        amount = platform.balance_of(address)
    console.print(f"{address}: [bold]{_tokens(amount)}[/bold]")


@app.command()
def transfer(
    sender: str = typer.Argument(..., help="Sender address"),
    recipient: str = typer.Argument(..., help="Recipient address"),
    amount: str = typer.Argument(..., help="Amount in whole tokens"),
) -> None:
    """Transfer tokens between addresses."""
    value = _parse_amount_or_exit(amount)
    with _platform() as platform:
        platform.transfer(sender, recipient, value)
    console.print(f"[green]✓ Transferred {_tokens(value)} to {recipient}[/green]")


@app.command()
def faucet(
    address: str = typer.Argument(..., help="Receiving address"),
    amount: str = typer.Argument(..., help="Amount in whole tokens"),
) -> None:
    """Mint tokens to an address as the platform issuer."""
    value = _parse_amount_or_exit(amount)
    with _platform() as platform:
        platform.mint(address, value, caller=platform.issuer)
    console.print(f"[green]✓ Minted {_tokens(value)} to {address}[/green]")


if __name__ == "__main__":
    app()
