from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from conduit_cli.common import load_settings, print_json
from conduit_common.config import load_yaml, missing_keys
from conduit_common.settings import Settings

config_app = typer.Typer(help="Inspect and validate client configuration.")

REQUIRED_KEYS = ["api_url", "project_id"]


@config_app.command("validate")
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Destinations YAML config file"),
) -> None:
    """
    Validate a config YAML is parseable, has the required keys and valid values.
    """
    try:
        cfg = load_yaml(config)
    except FileNotFoundError as e:
        raise typer.BadParameter(str(e))
    except (ValueError, yaml.YAMLError) as e:
        raise typer.BadParameter(f"Invalid YAML in {config}: {e}")

    missing = missing_keys(cfg, REQUIRED_KEYS)
    if missing:
        raise typer.BadParameter(f"Missing required fields: {', '.join(missing)}")

    try:
        Settings(**cfg)
    except ValidationError as e:
        raise typer.BadParameter(f"Invalid values: {e}")

    typer.echo("ok: config parsed and required fields present")


@config_app.command("show")
def show(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Destinations YAML config file"),
) -> None:
    """
    Print the effective settings (token masked).
    """
    settings = load_settings(config)
    data = settings.model_dump()
    if data.get("api_token"):
        data["api_token"] = data["api_token"][:4] + "***"
    print_json(data)
