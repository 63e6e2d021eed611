"""Interactive CLI application."""
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from grammar_tutor.config import get_settings
from grammar_tutor.dashboard import get_mastery_color, get_progress_stats, get_topic_rows
from grammar_tutor.engine import ProgressionEngine
from grammar_tutor.models import Difficulty, TopicProgress
from grammar_tutor.review import get_weak_topics

console = Console()

EXIT_WORDS = ("q", "quit", "menu")
LEVEL_CHOICES = {level.name.lower(): level for level in Difficulty}


class SessionExitRequested(Exception):
    """Raised when the learner leaves a practice session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_float_prompt(prompt: str, default: float = 0.0) -> float:
    while True:
        answer = session_prompt(prompt, default=str(default))
        try:
            return max(0.0, float(answer))
        except ValueError:
            console.print("[red]Please enter a number of seconds.[/red]")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]Filipino Grammar Tutor[/bold]\n[dim]Progress & Unlocks[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("practice", "Log a practice session"),
        ("dashboard", "Mastery + unlock overview"),
        ("review", "Questions due and weak topics"),
        ("modules", "Module unlock status"),
        ("unlock-all", "Unlock every tier and module"),
        ("lock-all", "Clear every unlock"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_topic(engine: ProgressionEngine) -> str:
    topics = list(engine.all_topic_progress())
    for i, topic in enumerate(topics, 1):
        console.print(f"  [cyan]{i}[/cyan]) {topic}")
    choice = session_prompt("Topic (number or name)")
    if choice.isdigit() and 1 <= int(choice) <= len(topics):
        return topics[int(choice) - 1]
    return choice.strip()


def next_question_id(progress: TopicProgress) -> int:
    """First id after every question already answered for the topic."""
    return max((qs.question_id for qs in progress.question_history), default=0) + 1


def run_practice_session(engine: ProgressionEngine, topic: str, level: Difficulty):
    """Record answers one by one until the learner submits a blank answer.

    Each answer is logged against a question id. Reusing an id continues that
    question's review schedule; pressing Enter takes the next unused id.
    """
    if not engine.is_accessible(topic, level):
        console.print(f"[yellow]{level.label} is still locked for {topic}.[/yellow]")
        return None
    stats = engine.start_session(topic, level)
    console.print(f"\n[bold]Practice[/bold] — {topic} ({level.label})")
    console.print("[dim]Give the question id, then y/n; blank answer to finish, q to abandon.[/dim]\n")
    next_id = next_question_id(engine.get_topic_progress(topic))
    while True:
        raw_id = session_prompt("Question id", default=str(next_id)).strip() or str(next_id)
        if not raw_id.isdigit():
            console.print("[red]Question ids are whole numbers.[/red]")
            continue
        question_id = int(raw_id)
        answer = session_prompt(f"Q{question_id} correct?", default="").strip().lower()
        if not answer:
            break
        if answer not in ("y", "n"):
            console.print("[red]Type y or n.[/red]")
            continue
        seconds = session_float_prompt("Response time (s)", default=3.0)
        correct = answer == "y"
        engine.record_answer(topic, question_id, level, correct, seconds)
        stats.record(correct, seconds)
        next_id = max(next_id, question_id + 1)

    if stats.total == 0:
        console.print("[yellow]No answers recorded.[/yellow]")
        return None
    outcome = engine.end_session(stats)
    console.print(
        f"[bold]Score: {stats.correct}/{stats.total} ({outcome.accuracy * 100:.0f}%), "
        f"avg {stats.average_response_time:.1f}s[/bold]"
    )
    if outcome.completed:
        console.print(f"[green]{level.label} completed for {topic}![/green]")
    for unlocked in sorted(outcome.unlocked_difficulties):
        console.print(f"[green]Unlocked {unlocked.label} for {topic}[/green]")
    for module in outcome.unlocked_modules:
        console.print(f"[green]Unlocked module {module}[/green]")
    return outcome


def cmd_practice(engine: ProgressionEngine):
    topic = choose_topic(engine)
    level_name = session_prompt("Difficulty", choices=list(LEVEL_CHOICES), default="easy")
    run_practice_session(engine, topic, LEVEL_CHOICES[level_name])


def cmd_dashboard(engine: ProgressionEngine):
    stats = get_progress_stats(engine)
    console.print(Panel(
        f"[bold]{stats['mastered']} of {stats['topics']} topics mastered[/bold]",
        title="Grammar Progress Dashboard", border_style="blue",
    ))
    bar_filled = int(stats["overall_progress"] / 5)
    bar = f"[green]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/green]"
    console.print(f"\n  Overall Progress: [bold]{stats['overall_progress']}%[/bold] {bar}\n")

    table = Table(title="Topics")
    table.add_column("Topic", style="cyan")
    table.add_column("Level")
    table.add_column("E/M/H")
    table.add_column("Mastery", justify="right")
    table.add_column("Unlocked")
    for row in get_topic_rows(engine):
        color = get_mastery_color(row["mastery"] / 100)
        table.add_row(
            row["topic"],
            row["current_level"],
            row["completed"],
            f"[{color}]{row['mastery']}% {row['label']}[/{color}]",
            ", ".join(row["unlocked"]) or "-",
        )
    console.print(table)
    console.print(f"\n  Answers: [bold]{stats['answers_recorded']}[/bold]  |  "
                  f"Accuracy: [bold]{stats['accuracy']}%[/bold]  |  "
                  f"Modules: [bold]{', '.join(stats['unlocked_modules']) or 'none'}[/bold]")


def cmd_review(engine: ProgressionEngine):
    console.print("\n[bold]Review[/bold]\n")
    any_due = False
    for topic in engine.all_topic_progress():
        for level in Difficulty:
            due = engine.get_questions_for_review(topic, level)
            if due:
                any_due = True
                console.print(f"  [cyan]{topic}[/cyan] {level.label}: questions {', '.join(map(str, due))}")
    if not any_due:
        console.print("[green]Nothing due for review right now.[/green]")

    weak = get_weak_topics(engine.all_topic_progress())
    if weak:
        console.print("\n[bold]Weakest Topics:[/bold]")
        for wt in weak[:5]:
            console.print(f"  [red]{wt['mastery_score'] * 100:.0f}% mastery[/red] — {wt['topic']} ({wt['current_level']})")


def cmd_modules(engine: ProgressionEngine):
    table = Table(title="Modules")
    table.add_column("Module", style="cyan")
    table.add_column("Status")
    for module in engine.settings.modules:
        unlocked = engine.is_module_unlocked(module)
        table.add_row(module, "[green]Unlocked[/green]" if unlocked else "[dim]Locked[/dim]")
    console.print(table)


def cmd_unlock_all(engine: ProgressionEngine):
    if Confirm.ask("Unlock every difficulty and module?", default=False):
        engine.unlock_all(save=True)
        console.print("[green]Everything unlocked.[/green]")


def cmd_lock_all(engine: ProgressionEngine):
    if Confirm.ask("Clear every unlock? Topic progress is kept.", default=False):
        engine.lock_all(save=True)
        console.print("[yellow]All unlocks cleared.[/yellow]")


COMMANDS = {
    "practice": cmd_practice,
    "dashboard": cmd_dashboard,
    "review": cmd_review,
    "modules": cmd_modules,
    "unlock-all": cmd_unlock_all,
    "lock-all": cmd_lock_all,
}


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    engine = ProgressionEngine(settings)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Ingat! See you next session.[/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(engine)
        except SessionExitRequested:
            console.print("[dim]Session abandoned; answers so far are saved.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
