"""Persisted filter policy — JSON file with versioned migration.

The file uses human-readable keys so server operators can edit it by hand:

    {
      "Version": "1.1.2",
      "Clean Up Existing Entities On Startup": false,
      "Policy Mode": "deny_exception",
      "Entity Keyword Blocklist (...)": ["chicken"],
      "Entity Keyword Allowlist (...)": [],
      "Entity Keyword Exception List (...)": []
    }

On every load the file is migrated to the running version and written back.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from spawnguard import __version__
from spawnguard.core.rules import PolicyMode, RuleSet

logger = structlog.get_logger()

BLOCKLIST_KEY = (
    "Entity Keyword Blocklist (prefab or type keywords to block from spawning or remove if spawned)"
)
ALLOWLIST_KEY = "Entity Keyword Allowlist (when not empty, only matching entities may spawn)"
EXCEPTION_KEY = "Entity Keyword Exception List (keywords to ignore even if matched in blocklist)"

# Files older than this are discarded and replaced by defaults
_RESET_BELOW_VERSION = "1.0.0"


class FilterConfigError(Exception):
    """Raised when the filter config file cannot be parsed or validated."""


class FilterConfig(BaseModel):
    """On-disk filter policy."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = Field(default="0.0.0", alias="Version")
    clean_up_existing_entities_on_startup: bool = Field(
        default=False, alias="Clean Up Existing Entities On Startup"
    )
    policy_mode: Optional[PolicyMode] = Field(default=None, alias="Policy Mode")
    entity_keyword_blocklist: list[str] = Field(default_factory=list, alias=BLOCKLIST_KEY)
    entity_keyword_allowlist: list[str] = Field(default_factory=list, alias=ALLOWLIST_KEY)
    entity_keyword_exception_list: list[str] = Field(default_factory=list, alias=EXCEPTION_KEY)

    @field_validator(
        "entity_keyword_blocklist",
        "entity_keyword_allowlist",
        "entity_keyword_exception_list",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [v for v in value if v is not None]
        return value

    @field_validator("version", mode="before")
    @classmethod
    def _version_default(cls, value: Any) -> Any:
        return "0.0.0" if value is None else value

    @model_validator(mode="after")
    def _infer_policy_mode(self) -> FilterConfig:
        # Files written before "Policy Mode" existed carry only their lists.
        if self.policy_mode is None:
            if self.entity_keyword_allowlist:
                self.policy_mode = PolicyMode.ALLOW_DENY
            else:
                self.policy_mode = PolicyMode.DENY_EXCEPTION
        return self

    def to_rule_set(self) -> RuleSet:
        """Build the immutable rule set the matcher evaluates."""
        return RuleSet(
            mode=self.policy_mode or PolicyMode.DENY_EXCEPTION,
            deny=self.entity_keyword_blocklist,  # type: ignore[arg-type]
            allow=self.entity_keyword_allowlist,  # type: ignore[arg-type]
            exceptions=self.entity_keyword_exception_list,  # type: ignore[arg-type]
        )


def parse_version(version: str) -> tuple[int, ...]:
    """Turn a dotted version string into a comparable tuple.

    Non-numeric parts count as 0, so "1.2.beta" parses as (1, 2, 0).
    """
    parts = []
    for part in version.strip().split("."):
        match = re.match(r"\d+", part)
        parts.append(int(match.group()) if match else 0)
    return tuple(parts)


def is_older(version: str, other: str) -> bool:
    """Compare two dotted versions, padding the shorter one with zeros."""
    a, b = parse_version(version), parse_version(other)
    width = max(len(a), len(b))
    return a + (0,) * (width - len(a)) < b + (0,) * (width - len(b))


def default_filter_config(version: str = __version__) -> FilterConfig:
    return FilterConfig(
        version=version,
        clean_up_existing_entities_on_startup=False,
        policy_mode=PolicyMode.DENY_EXCEPTION,
    )


def migrate_filter_config(
    config: FilterConfig,
    current_version: str = __version__,
) -> tuple[FilterConfig, bool]:
    """Bring a loaded config up to the running version.

    Args:
        config: Config as read from disk.
        current_version: Version of the running filter.

    Returns:
        Tuple of (migrated config, whether anything changed).
    """
    if not is_older(config.version, current_version):
        return config, False

    logger.warning("filter_config_update_started", from_version=config.version)
    from_version = config.version

    if is_older(config.version, _RESET_BELOW_VERSION):
        config = default_filter_config(current_version)

    config = config.model_copy(update={"version": current_version})
    logger.warning(
        "filter_config_update_complete",
        from_version=from_version,
        to_version=current_version,
    )
    return config, True


def save_filter_config(config: FilterConfig, path: str | Path) -> None:
    """Write the config as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(by_alias=True, mode="json")
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def load_filter_config(path: str | Path, current_version: str = __version__) -> FilterConfig:
    """Load, migrate and re-save the filter config.

    A missing file is created with defaults.

    Raises:
        FilterConfigError: If the file is not valid JSON or fails validation.
    """
    path = Path(path)

    if not path.exists():
        logger.warning("filter_config_missing", path=str(path), action="writing_defaults")
        config = default_filter_config(current_version)
        save_filter_config(config, path)
        return config

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        config = FilterConfig.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise FilterConfigError(f"Invalid filter config at {path}: {exc}") from exc

    config, _ = migrate_filter_config(config, current_version)
    save_filter_config(config, path)

    logger.info(
        "filter_config_loaded",
        path=str(path),
        version=config.version,
        policy_mode=config.policy_mode.value if config.policy_mode else None,
        blocklist=len(config.entity_keyword_blocklist),
        allowlist=len(config.entity_keyword_allowlist),
        exceptions=len(config.entity_keyword_exception_list),
        startup_sweep=config.clean_up_existing_entities_on_startup,
    )
    return config
