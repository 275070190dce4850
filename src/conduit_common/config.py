from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import yaml


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML root must be a mapping/dict")
    return data


def missing_keys(cfg: Dict[str, Any], required: Iterable[str]) -> List[str]:
    """Return the required keys that are absent or empty in ``cfg``."""
    return [k for k in required if cfg.get(k) in (None, "")]
