"""Interactive CLI application."""
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from ayah_review.content import ContentProvider, StaticContentProvider
from ayah_review.dashboard import get_goal_progress, get_study_stats, get_weekly_activity
from ayah_review.db import DEFAULT_CONTENT_PATH, get_setting, init_db, load_state, resolve_db_path, save_state
from ayah_review.logging_config import configure_logging, logger
from ayah_review.models import GOAL_TYPES
from ayah_review.scheduler import Scheduler
from ayah_review.sm2 import is_passing

console = Console()

EXIT_WORDS = ("q", "menu")
RATING_HINTS = {
    0: "Complete blackout",
    1: "Wrong, but recognized it",
    2: "Wrong, but it felt familiar",
    3: "Correct with serious difficulty",
    4: "Correct after hesitation",
    5: "Perfect recall",
}


class SessionExitRequested(Exception):
    """Raised when the user leaves a study session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    while True:
        answer = session_prompt(prompt).strip()
        if answer in choices:
            return int(answer)
        console.print(f"[red]Please enter one of: {', '.join(choices)}[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Ayah Review[/bold]\n[dim]Spaced repetition for memorization[/dim]",
        title="Welcome", border_style="green",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Review the items that are due"),
        ("add", "Start tracking new items"),
        ("dashboard", "Streak, accuracy and goals"),
        ("goals", "Change goal targets"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_study_session(scheduler: Scheduler, content: ContentProvider, limit: int = 20) -> int:
    """Walk through due items, rating each one. Returns the number reviewed."""
    due = scheduler.due_items()[:limit]
    if not due:
        console.print("[yellow]Nothing is due right now![/yellow]")
        return 0
    scheduler.start_session()
    reviewed = 0
    try:
        console.print(f"\n[bold]Study Session[/bold] ({len(due)} items, 'q' to stop)\n")
        for i, record in enumerate(due, 1):
            try:
                item = content.get_item(record.item_id)
                text, translation = item.text, item.translation
            except KeyError:
                text, translation = f"[dim]No text available for {record.item_id}[/dim]", ""
            console.print(Panel(text, title=f"{record.item_id} ({i}/{len(due)})", border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal the translation[/dim]", default="")
            if translation:
                console.print(Panel(translation, border_style="green"))
            quality = session_int_prompt(
                "Rate yourself (0=forgot, 3=hard, 4=good, 5=easy)",
                choices=[str(q) for q in RATING_HINTS],
            )
            updated = scheduler.review(record.item_id, quality)
            scheduler.record_review(record.item_id, is_passing(quality))
            reviewed += 1
            console.print(
                f"[dim]{RATING_HINTS[quality]}. Next review in {updated.interval_days} "
                f"day{'s' if updated.interval_days != 1 else ''}.[/dim]\n"
            )
    except SessionExitRequested:
        console.print("[dim]Session stopped.[/dim]")
    finally:
        session = scheduler.end_session()
    if session and session.total_count:
        console.print(f"[bold]Session: {session.correct_count}/{session.total_count} correct[/bold]")
    return reviewed


def cmd_study(db_path: str, scheduler: Scheduler, content: ContentProvider):
    run_study_session(scheduler, content)
    save_state(db_path, scheduler)


def cmd_add(db_path: str, scheduler: Scheduler, content: ContentProvider):
    known = getattr(content, "item_ids", lambda: [])()
    if known:
        console.print(f"[dim]{len(known)} items available in the content file.[/dim]")
    raw = Prompt.ask("Item ids (e.g. 2:255, 112:1), or 'all'")
    item_ids = known if raw.strip().lower() == "all" else [p.strip() for p in raw.split(",") if p.strip()]
    before = len(scheduler.records)
    for item_id in item_ids:
        scheduler.register(item_id)
    added = len(scheduler.records) - before
    save_state(db_path, scheduler)
    console.print(f"[green]Now tracking {added} new item{'s' if added != 1 else ''}.[/green]")


def cmd_dashboard(scheduler: Scheduler):
    stats = get_study_stats(scheduler)
    console.print(Panel(
        f"Streak: [bold]{stats['streak']}[/bold] days  |  "
        f"Reviews: [bold]{stats['total_reviews']}[/bold]  |  "
        f"Accuracy: [bold]{stats['accuracy']}%[/bold]  |  "
        f"Sessions: [bold]{stats['sessions_completed']}[/bold]\n"
        f"Tracking [bold]{stats['items_tracked']}[/bold] items, "
        f"[bold]{stats['items_due']}[/bold] due now",
        title="Dashboard", border_style="blue",
    ))

    activity = Table(title="Last 7 Days")
    activity.add_column("Day")
    activity.add_column("Reviews", justify="right")
    for day in get_weekly_activity(scheduler):
        activity.add_row(f"{day['label']} {day['date'].isoformat()}", str(day["reviews"]))
    console.print(activity)

    goals = Table(title="Study Goals")
    goals.add_column("Goal", style="cyan")
    goals.add_column("Progress", justify="right")
    goals.add_column("")
    for g in get_goal_progress(scheduler):
        filled = int(g["percent"] / 5)
        bar = f"[green]{'█' * filled}{'░' * (20 - filled)}[/green]"
        goals.add_row(g["type"].capitalize(), f"{g['current']} / {g['target']}", bar)
    console.print(goals)


def cmd_goals(db_path: str, scheduler: Scheduler):
    goal_type = Prompt.ask("Goal", choices=list(GOAL_TYPES), default="daily")
    current = next(g for g in scheduler.goals if g.type == goal_type)
    target = IntPrompt.ask("Target reviews", default=current.target)
    scheduler.set_goal_target(goal_type, target)
    save_state(db_path, scheduler)
    console.print(f"[green]{goal_type.capitalize()} goal set to {target}.[/green]")


def main():
    configure_logging()
    db_path = resolve_db_path()
    init_db(db_path)
    scheduler = load_state(db_path)
    content = StaticContentProvider.from_file(get_setting(db_path, "content_path", DEFAULT_CONTENT_PATH))

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "study":
                cmd_study(db_path, scheduler, content)
            elif choice == "add":
                cmd_add(db_path, scheduler, content)
            elif choice == "dashboard":
                cmd_dashboard(scheduler)
            elif choice == "goals":
                cmd_goals(db_path, scheduler)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you tomorrow. Keep the streak going![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("command_failed", command=choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
