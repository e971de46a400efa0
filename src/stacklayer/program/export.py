"""Settle and serialize the outputs map returned by a program run."""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict, Mapping

import structlog
import yaml

from stacklayer.program.output import unwrap

logger = structlog.get_logger()


def _to_plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _to_plain(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(key): _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_plain(item) for item in value]
    return value


async def settle_outputs(outputs: Mapping[str, Any]) -> Dict[str, Any]:
    """Wait for every Output in the map and return plain data."""
    settled = await unwrap(dict(outputs))
    return _to_plain(settled)


async def export_outputs(outputs: Mapping[str, Any], path: Path) -> Dict[str, Any]:
    """Write settled outputs as JSON (``.json``) or YAML (anything else)."""
    settled = await settle_outputs(outputs)
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == ".json":
        path.write_text(json.dumps(settled, indent=2, sort_keys=True, default=str) + "\n")
    else:
        with open(path, "w") as f:
            yaml.safe_dump(settled, f, default_flow_style=False, sort_keys=True)

    logger.info("outputs_exported", path=str(path), outputs=len(settled))
    return settled
