from __future__ import annotations

import shutil
from pathlib import Path

import typer

from conduit_cli.config import config_app
from conduit_cli.destinations import destinations_app

app = typer.Typer(
    help="Conduit CLI: list and manage pipeline destinations.",
    invoke_without_command=True,  # force group mode
    no_args_is_help=True,
)

app.add_typer(destinations_app, name="destinations")
app.add_typer(config_app, name="config")


TEMPLATES_DIR = Path(__file__).parent / "config_templates"


def _copy_file(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    if dst.exists():
        typer.echo(f"skip: {dst} already exists")
        return
    shutil.copy2(src, dst)
    typer.echo(f"created: {dst}")


@app.callback()
def main() -> None:
    """
    Root command for the Conduit CLI.

    If you run `conduit` with no subcommand, help is shown.
    """
    return


@app.command("init")
def init_cmd(
    path: Path = typer.Option(
        Path("config"), "--path", "-p", help="Output config folder"
    ),
) -> None:
    """
    Create a starter config folder with an example destinations YAML.
    """
    if not TEMPLATES_DIR.exists():
        raise typer.BadParameter(
            f"Templates folder missing in package: {TEMPLATES_DIR}"
        )

    _copy_file(
        TEMPLATES_DIR / "destinations.example.yaml",
        path / "destinations.example.yaml",
    )

    typer.echo("\nDone. Next:")
    typer.echo("  conduit config validate -c config/destinations.example.yaml")
    typer.echo("  conduit destinations list -c config/destinations.example.yaml")


if __name__ == "__main__":
    app()
