import logging

import typer

from taskteller.core.teller_core.config import AppConfig
from .commands.core import parse, list_tasks, done, reopen, edit, delete, daily

app = typer.Typer(help="TaskTeller - turn what you say into scheduled tasks")


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=getattr(logging, AppConfig.load().log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def hello() -> None:
    """Sanity check command."""
    typer.echo("TaskTeller is alive.")


app.command()(parse)
app.command(name="list")(list_tasks)  # "list" is a Python builtin, so use name mapping
app.command()(done)
app.command()(reopen)
app.command()(edit)
app.command()(delete)
app.command()(daily)


# Entry point function for the CLI script
def cli() -> None:
    app()
