"""Command-line interface for TriviaParty.

Unified CLI entry point:
- `triviaparty trivia board` - Play a replay, random, custom or learn board
- `triviaparty trivia question` - Practice typed questions
- `triviaparty trivia episodes` - List archived episodes
- `triviaparty trivia stats` - Show a user's stats
"""

import typer
from rich.console import Console

from trivia.cli_trivia import app as trivia_app

# Main application
app = typer.Typer(
    help="TriviaParty - boards, practice questions and per-user stats",
    no_args_is_help=True,
)
console = Console()

# Register subcommands
app.add_typer(trivia_app, name="trivia", help="Play trivia boards and practice questions")


@app.callback()
def main():
    """TriviaParty - play trivia boards and practice questions in the terminal.

    Examples:

        # Random board, solo
        triviaparty trivia board random

        # Replay an archived episode with two teams
        triviaparty trivia board replay --episode 9001 --teams "Reds,Blues"

        # Custom board of science clues
        triviaparty trivia board custom --search atom

        # Revisit missed clues
        triviaparty trivia board learn --user sam

        # Five ranking questions, anchor/adjust mode
        triviaparty trivia question --type ranking --ranking-mode anchor_adjust
    """
    pass


@app.command()
def version():
    """Show version information."""
    from trivia import __version__ as trivia_version
    from shared import __version__ as shared_version

    console.print("[bold]TriviaParty[/bold]")
    console.print(f"  trivia: {trivia_version}")
    console.print(f"  shared: {shared_version}")


if __name__ == "__main__":
    app()
