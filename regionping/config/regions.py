"""Region list models and YAML loader.

Provides the static target list probed by the ping endpoint. The list is
read from a YAML file with a top-level ``regions`` key; when the file is
missing or unusable the built-in AWS region list is used instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import yaml

from regionping.models.target import Target

logger = logging.getLogger(__name__)


DEFAULT_TARGETS: tuple[Target, ...] = tuple(
    Target(name=name, code=code)
    for name, code in (
        ("US-East (Virginia)", "us-east-1"),
        ("US-East (Ohio)", "us-east-2"),
        ("US-West (California)", "us-west-1"),
        ("US-West (Oregon)", "us-west-2"),
        ("Canada (Central)", "ca-central-1"),
        ("Europe (Ireland)", "eu-west-1"),
        ("Europe (London)", "eu-west-2"),
        ("Europe (Paris)", "eu-west-3"),
        ("Europe (Frankfurt)", "eu-central-1"),
        ("Europe (Milan)", "eu-south-1"),
        ("Europe (Stockholm)", "eu-north-1"),
        ("Middle East (Bahrain)", "me-south-1"),
        ("Africa (Cape Town)", "af-south-1"),
        ("Asia Pacific (Hong Kong)", "ap-east-1"),
        ("Asia Pacific (Mumbai)", "ap-south-1"),
        ("Asia Pacific (Osaka)", "ap-northeast-3"),
        ("Asia Pacific (Seoul)", "ap-northeast-2"),
        ("Asia Pacific (Singapore)", "ap-southeast-1"),
        ("Asia Pacific (Sydney)", "ap-southeast-2"),
        ("Asia Pacific (Tokyo)", "ap-northeast-1"),
        ("South America (São Paulo)", "sa-east-1"),
    )
)


def load_targets(yaml_path: str) -> list[Target]:
    """Parse a regions YAML file into typed Target objects.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        The configured targets in file order. Entries that fail validation
        and duplicate codes are skipped. If the file is missing, unparsable
        or yields no valid entries, returns the built-in default list.
    """
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("Regions file not found at %s, using built-in regions", yaml_path)
        return list(DEFAULT_TARGETS)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse regions YAML at %s: %s", yaml_path, exc)
        return list(DEFAULT_TARGETS)

    if not isinstance(raw, dict) or not isinstance(raw.get("regions"), list):
        logger.warning("Regions YAML missing 'regions' list, using built-in regions")
        return list(DEFAULT_TARGETS)

    targets: list[Target] = []
    seen: set[str] = set()
    for entry in raw["regions"]:
        try:
            target = Target.model_validate(entry)
        except Exception as exc:
            logger.error("Invalid region entry %r: %s, skipping", entry, exc)
            continue
        if target.code in seen:
            logger.warning("Duplicate region code '%s', skipping", target.code)
            continue
        seen.add(target.code)
        targets.append(target)

    if not targets:
        logger.warning("Regions YAML at %s has no valid entries, using built-in regions", yaml_path)
        return list(DEFAULT_TARGETS)

    return targets


class StaticTargetProvider:
    """Read-only provider handing out the same ordered target list."""

    def __init__(self, targets: Sequence[Target]) -> None:
        self._targets = tuple(targets)

    def get_targets(self) -> list[Target]:
        return list(self._targets)

    def __len__(self) -> int:
        return len(self._targets)
