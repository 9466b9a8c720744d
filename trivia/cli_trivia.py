"""CLI subcommand for playing TriviaParty in the terminal."""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from shared.utils.logging import setup_logger
from trivia.config import GameSettings, load_settings, resolve_data_dir
from trivia.director import ActionResult, DirectorState, SessionDirector
from trivia.questions import QuestionBank, infer_ranking_direction, ranking_prompt_text
from trivia.repository import YamlClueRepository
from trivia.stats import JsonFileStatsStore

app = typer.Typer(help="Play trivia boards and practice questions")
console = Console()
logger = logging.getLogger(__name__)


def _format_score(score: int) -> str:
    """Format score with parentheses for negative numbers (accounting notation)."""
    if score < 0:
        return f"({abs(score)})"
    return str(score)


def _split_csv(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _make_director(
    data_dir: Optional[str],
    user: Optional[str],
    stats_dir: str,
    seed: Optional[int],
    settings_file: Optional[str],
    load_questions: bool = False,
) -> SessionDirector:
    inputs = resolve_data_dir(data_dir)
    try:
        settings_path = Path(settings_file) if settings_file else inputs / "settings.yaml"
        settings = load_settings(settings_path) if settings_file or settings_path.exists() else GameSettings()
        repository = YamlClueRepository(inputs)
        bank = QuestionBank.from_yaml(inputs / "questions.yaml") if load_questions else None
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading data from {inputs}: {e}[/red]")
        raise typer.Exit(1)

    stats_store = JsonFileStatsStore(stats_dir, history_limit=settings.outcome_history_limit) if user else None
    return SessionDirector(
        repository,
        stats_store=stats_store,
        user_id=user,
        settings=settings,
        question_bank=bank,
        seed=seed,
    )


def _check(result: ActionResult) -> bool:
    if not result.ok:
        console.print(f"[red]{result.rejection.message}[/red]")
    return result.ok


def _display_board(state: Dict[str, Any]) -> None:
    board = state["board"]
    console.print(f"\n[bold]{board['round'].upper()} ROUND[/bold]  "
                  f"[dim]({board['revealed_count']}/{board['total_cells']} revealed)[/dim]")
    table = Table(show_header=True, show_lines=True)
    for index, column in enumerate(board["categories"]):
        table.add_column(f"{index}: {column['category']}", justify="center", min_width=12)

    depth = max(len(column["cells"]) for column in board["categories"])
    for row in range(depth):
        items = []
        for column in board["categories"]:
            if row >= len(column["cells"]):
                items.append("")
                continue
            cell = column["cells"][row]
            label = "FINAL" if cell["value"] is None else f"${cell['value']}"
            items.append("[dim]---[/dim]" if cell["revealed"] else f"[yellow]{label}[/yellow]")
        table.add_row(*items)
    console.print(table)


def _display_scores(state: Dict[str, Any]) -> None:
    scores = "  ".join(f"{team['name']}: {_format_score(team['score'])}" for team in state["teams"])
    console.print(f"[bold]Scores[/bold]  {scores}")


def _display_summary(summary: Dict[str, Any]) -> None:
    table = Table(title="Session Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Mode", summary["mode"])
    table.add_row("Final score", _format_score(summary["final_score"]))
    for name, score in summary["team_scores"].items():
        table.add_row(f"  {name}", _format_score(score))
    table.add_row("Correct", str(summary["correct"]))
    table.add_row("Incorrect", str(summary["incorrect"]))
    table.add_row("Skipped", str(summary["skipped"]))
    for question_type, tally in summary.get("type_points", {}).items():
        table.add_row(f"  {question_type}", f"{tally['earned']}/{tally['possible']}")
    console.print(table)


def _ask_responder(director: SessionDirector) -> None:
    if len(director.teams) <= 1:
        return
    names = ", ".join(f"{i}={team.name}" for i, team in enumerate(director.teams))
    while True:
        choice = console.input(f"Who answered? ({names}): ").strip()
        if choice.isdigit() and _check(director.set_responder(int(choice))):
            return


def _play_clue(director: SessionDirector) -> None:
    state = director.snapshot()
    if director.state is DirectorState.WAGER_CAPTURE:
        clue = state["active_clue"]
        console.print(f"\n[bold magenta]DAILY DOUBLE![/bold magenta] Category: {clue['category']}")
        while director.state is DirectorState.WAGER_CAPTURE:
            raw = console.input("Wager (blank for default): ").strip()
            _check(director.declare_wager(int(raw) if raw.isdigit() else None))
        state = director.snapshot()

    clue = state["active_clue"]
    console.print(f"\n[bold]{clue['category']}[/bold] for {clue['stake'] or 'FINAL'}")
    console.print(f"[cyan]{clue['prompt']}[/cyan]")
    answer = console.input("Your answer (blank to reveal): ").strip()

    if answer:
        _ask_responder(director)
        result = director.submit_answer(answer)
        if _check(result):
            verdict = "[green]Correct![/green]" if result.detail["correct"] else "[red]Incorrect.[/red]"
            console.print(f"{verdict} Answer: {result.detail['answer']}")
        return

    result = director.reveal_answer()
    console.print(f"Answer: [bold]{result.detail.get('answer')}[/bold]")
    while director.state is DirectorState.ANSWER_REVEALED:
        verdict = console.input("Mark (c)orrect, (i)ncorrect or (s)kip: ").strip().lower()
        outcome = {"c": "correct", "i": "incorrect", "s": "skip"}.get(verdict[:1])
        if outcome is None:
            continue
        if outcome != "skip":
            _ask_responder(director)
        _check(director.record_outcome(outcome))


def _start_logging(log_path: str, verbose: bool, director: SessionDirector) -> None:
    log_dir = Path(log_path)
    setup_logger(log_dir, verbose)
    run_id = datetime.now().strftime("%Y%m%dT%H%M%S")
    director.init_controllog(log_dir, run_id)


@app.command()
def board(
    strategy: str = typer.Argument("random", help="Board source: replay, random, custom or learn"),
    episode: Optional[int] = typer.Option(None, help="Episode id for replay"),
    categories: Optional[int] = typer.Option(None, help="Categories per round (2-8)"),
    search: Optional[str] = typer.Option(None, help="Custom: text search over prompt, answer and category"),
    daily_doubles_only: bool = typer.Option(False, help="Custom: daily doubles only"),
    triple_stumpers_only: bool = typer.Option(False, help="Random/custom: triple stumpers only"),
    final_only: bool = typer.Option(False, help="Custom: final clues only"),
    flagged_only: bool = typer.Option(False, help="Custom: flagged clues only"),
    tags: Optional[str] = typer.Option(None, help="Custom: comma-separated topic tags (all required)"),
    no_double: bool = typer.Option(False, help="Random: skip the double round"),
    no_final: bool = typer.Option(False, help="Random: skip the final clue"),
    teams: Optional[str] = typer.Option(None, help="Comma-separated team names (solo when omitted)"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name for stats tracking"),
    data_dir: Optional[str] = typer.Option(None, help="Inputs directory (default: $TRIVIA_DATA_DIR or ./inputs)"),
    stats_dir: str = typer.Option("stats", help="Directory for per-user stats files"),
    settings_file: Optional[str] = typer.Option(None, help="Settings YAML file"),
    seed: Optional[int] = typer.Option(None, help="Random seed for reproducible boards"),
    log_path: str = typer.Option("logs/trivia", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Play a board: pick cells, answer, and track the score."""
    director = _make_director(data_dir, user, stats_dir, seed, settings_file)
    _start_logging(log_path, verbose, director)

    params: Dict[str, Any] = {}
    if strategy == "replay":
        params["episode_id"] = episode
    elif strategy == "random":
        params.update(
            category_count=categories,
            include_double=False if no_double else None,
            include_final=False if no_final else None,
            triple_stumpers_only=triple_stumpers_only,
        )
    elif strategy == "custom":
        params["category_count"] = categories
        params["clue_filter"] = {
            "search": search,
            "daily_doubles_only": daily_doubles_only,
            "triple_stumpers_only": triple_stumpers_only,
            "final_only": final_only,
            "flagged_only": flagged_only,
            "topic_tags": _split_csv(tags),
        }
    elif strategy == "learn":
        params["category_count"] = categories

    result = director.build_board(strategy, teams=_split_csv(teams) or None, **params)
    if not _check(result):
        raise typer.Exit(1)

    episode_info = result.state.get("episode")
    if episode_info:
        console.print(f"[bold]Show #{episode_info['show_number']}[/bold] aired {episode_info['air_date']}")

    while director.state is DirectorState.ROUND_ACTIVE:
        state = director.snapshot()
        _display_board(state)
        _display_scores(state)
        command = console.input(
            "Pick 'category value' (or 'final [wager]'), 'round <name>', or 'q' to finish: "
        ).strip().lower()

        if command in ("q", "quit"):
            break
        if command.startswith("round "):
            _check(director.switch_round(command.split(None, 1)[1]))
            continue
        if command.split()[:1] == ["final"]:
            wager = command.split()[1:2]
            amount = int(wager[0]) if wager and wager[0].isdigit() else None
            if _check(director.select_cell(0, None, wager=amount)):
                _play_clue(director)
            continue

        parts = command.split()
        if len(parts) != 2 or not all(p.lstrip("$").isdigit() for p in parts):
            console.print("[yellow]Enter a category number and a value, e.g. '2 600'[/yellow]")
            continue
        if _check(director.select_cell(int(parts[0]), int(parts[1].lstrip("$")))):
            _play_clue(director)

    result = director.end_session()
    if _check(result):
        _display_summary(result.detail["summary"])


def _display_question(question: Dict[str, Any]) -> None:
    qtype = question["type"]
    if qtype == "ranking":
        top, bottom = infer_ranking_direction(question["prompt"])
        console.print(f"\n[cyan]{ranking_prompt_text(question['prompt'])}[/cyan]  [dim]{top}, {bottom}[/dim]")
    else:
        console.print(f"\n[cyan]{question['prompt']}[/cyan]")
    if question.get("hint"):
        console.print(f"Hint: [bold]{question['hint']}[/bold]")
    if question.get("media_url"):
        console.print(f"[dim]{question.get('media_type') or 'media'}: {question['media_url']}[/dim]")

    if question.get("options"):
        for index, option in enumerate(question["options"], 1):
            console.print(f"  {index}. {option}")
    elif qtype == "find_n_of_m":
        console.print(
            f"Found {question['found_count']} (need {question['min_required']}) "
            f"{', '.join(question['found'])}"
        )
        if question["remaining_seconds"] is not None:
            console.print(f"[dim]{question['remaining_seconds']:.0f}s left[/dim]")
    elif qtype == "classify_into_group":
        console.print(f"Pick items that are: [bold]{question['group_name']}[/bold]")
        for index, item in enumerate(question["grid"], 1):
            mark = "[dim]x[/dim]" if item in question["picked"] else " "
            console.print(f"  {mark} {index}. {item}")
    elif qtype == "this_or_that":
        labels = "  ".join(f"{key}) {label}" for key, label in question["labels"].items())
        console.print(f"{labels}\n  -> [bold]{question['current_item']}[/bold]")
    elif qtype == "ranking":
        for index, item in enumerate(question["order"], 1):
            lock = "[green]*[/green]" if index - 1 in question["locked"] else " "
            console.print(f"  {lock} {index}. {item}")


def _question_payload(question: Dict[str, Any], raw: str) -> Any:
    if question.get("options") and raw.isdigit():
        return int(raw) - 1
    if question["type"] == "classify_into_group" and raw.isdigit():
        index = int(raw) - 1
        return question["grid"][index] if 0 <= index < len(question["grid"]) else raw
    if question["type"] == "ranking":
        order = question["order"]
        picks = [p.strip() for p in raw.split(",")]
        if all(p.isdigit() and 1 <= int(p) <= len(order) for p in picks):
            return [order[int(p) - 1] for p in picks]
        return picks
    return raw


@app.command()
def question(
    count: int = typer.Option(5, help="Number of questions to play"),
    question_type: Optional[str] = typer.Option(None, "--type", "-t", help="Question type filter"),
    difficulty: Optional[str] = typer.Option(None, help="Difficulty filter (very_easy..very_hard)"),
    list_scoring: Optional[str] = typer.Option(None, help="Find-list scoring: target or as_many"),
    attempt_mode: Optional[str] = typer.Option(None, help="Find-list attempts: timed, strikes or unlimited"),
    grouping_mode: Optional[str] = typer.Option(None, help="Grouping: elimination or continuous"),
    this_or_that_mode: Optional[str] = typer.Option(None, help="This-or-that: standard or elimination"),
    ranking_mode: Optional[str] = typer.Option(None, help="Ranking: one_shot or anchor_adjust"),
    teams: Optional[str] = typer.Option(None, help="Comma-separated team names"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User name for stats tracking"),
    data_dir: Optional[str] = typer.Option(None, help="Inputs directory"),
    stats_dir: str = typer.Option("stats", help="Directory for per-user stats files"),
    settings_file: Optional[str] = typer.Option(None, help="Settings YAML file"),
    seed: Optional[int] = typer.Option(None, help="Random seed"),
    log_path: str = typer.Option("logs/trivia", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Practice typed questions. Type '?' to reveal, 'skip', 'done' or 'reroll'."""
    director = _make_director(data_dir, user, stats_dir, seed, settings_file, load_questions=True)
    _start_logging(log_path, verbose, director)
    if not _check(director.start_practice(_split_csv(teams) or None)):
        raise typer.Exit(1)

    modes = {
        "list_scoring": list_scoring,
        "attempt_mode": attempt_mode,
        "grouping_mode": grouping_mode,
        "this_or_that_mode": this_or_that_mode,
        "ranking_mode": ranking_mode,
    }
    modes = {k: v for k, v in modes.items() if v}

    for number in range(1, count + 1):
        result = director.start_question(question_type=question_type, difficulty=difficulty, **modes)
        if not _check(result):
            break
        console.print(f"\n[bold]Question {number}/{count}[/bold]")

        last_input = time.monotonic()
        while director.state is DirectorState.QUESTION_ACTIVE and not director.play.finalized:
            current = director.snapshot()["question"]
            _display_question(current)
            raw = console.input("> ").strip()
            director.tick(time.monotonic() - last_input)
            last_input = time.monotonic()
            if director.play.finalized:
                console.print("[yellow]Time's up![/yellow]")
                break

            if raw == "?":
                result = director.reveal_answer()
            elif raw.lower() == "skip":
                result = director.record_skip()
            elif raw.lower() == "done":
                result = director.finish_question()
            elif raw.lower() == "reroll":
                result = director.reroll_question()
            elif raw:
                result = director.submit_answer(_question_payload(current, raw))
            else:
                continue
            _check(result)

        if director.state is DirectorState.QUESTION_ACTIVE:
            director.finish_question()
        last = director.records[-1] if director.records else None
        answer = director.snapshot().get("question", {}).get("answer")
        if last is not None:
            console.print(
                f"{last.outcome.value.upper()}: {last.points_earned}/{last.points_possible} points"
                + (f"  Answer: {answer}" if answer else "")
            )

    result = director.end_session()
    if _check(result):
        _display_summary(result.detail["summary"])


@app.command()
def episodes(
    data_dir: Optional[str] = typer.Option(None, help="Inputs directory"),
):
    """List the archived episodes available for replay."""
    inputs = resolve_data_dir(data_dir)
    try:
        repository = YamlClueRepository(inputs)
    except FileNotFoundError as e:
        console.print(f"[red]Error: episodes directory not found ({e})[/red]")
        raise typer.Exit(1)

    table = Table(title="Episodes")
    table.add_column("Episode", style="cyan")
    table.add_column("Show #", justify="right")
    table.add_column("Air date")
    table.add_column("Season", justify="right")
    table.add_column("Special")
    for episode in repository.list_episodes():
        table.add_row(
            str(episode.episode_id),
            str(episode.show_number),
            episode.air_date,
            str(episode.season or ""),
            episode.tournament_type or ("yes" if episode.is_special else ""),
        )
    console.print(table)


@app.command()
def stats(
    user: str = typer.Option(..., "--user", "-u", help="User name"),
    stats_dir: str = typer.Option("stats", help="Directory for per-user stats files"),
):
    """Show a user's aggregate stats and clues to revisit."""
    store = JsonFileStatsStore(stats_dir)
    user_stats = store.get_user_stats(user)

    table = Table(title=f"Stats for {user}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Games played", str(user_stats.games_played))
    table.add_row("Total end money", _format_score(user_stats.total_end_money))
    table.add_row("Average end money", _format_score(user_stats.average_end_money))
    table.add_row("Episodes completed", str(user_stats.episodes_completed))
    table.add_row("Correct", str(user_stats.correct_answers))
    table.add_row("Incorrect", str(user_stats.incorrect_answers))
    table.add_row("Skipped", str(user_stats.skipped_questions))
    console.print(table)

    missed = store.get_missed_or_skipped(user)
    if missed:
        console.print(f"\n[bold]{len(missed)}[/bold] clues to revisit with 'trivia board learn -u {user}'")
