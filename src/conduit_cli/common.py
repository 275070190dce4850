from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from conduit_common.logging import set_level
from conduit_common.settings import Settings, get_settings


def print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=False, default=str))


def load_settings(config: Optional[Path]) -> Settings:
    """Settings from ``--config`` when given, else from the environment."""
    try:
        settings = Settings.from_yaml(config) if config else get_settings()
    except FileNotFoundError as e:
        raise typer.BadParameter(str(e))
    except (ValueError, ValidationError) as e:
        raise typer.BadParameter(f"Invalid config {config}: {e}")
    set_level(settings.log_level)
    return settings
