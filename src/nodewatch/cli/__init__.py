"""nodewatch CLI -- typer-based command interface.

Commands:
    nodewatch run         Poll node health every tick until interrupted
    nodewatch check       Run one poll cycle and report
    nodewatch validate    Parse the watch file and list its specs
"""

from __future__ import annotations

import typer

from nodewatch.cli import watch

app = typer.Typer(
    name="nodewatch",
    help="Watch Kubernetes node conditions and alert on fresh transitions.",
    no_args_is_help=True,
)

app.command("run")(watch.run)
app.command("check")(watch.check)
app.command("validate")(watch.validate)


def main() -> None:
    """Entry point for the nodewatch CLI."""
    app()
