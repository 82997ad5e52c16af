"""
Configuration Loader - YAML Files, Profile Overlays and Overrides.

Resolution order (later wins):
    1. Model defaults
    2. Base YAML file
    3. Profile overlay (<profiles_dir>/<profile>.yaml), e.g. low_memory
    4. Explicit overrides passed by the caller

The merged mapping is validated once by PerfEngineConfig.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from journal_perf.config.models import PerfEngineConfig
from journal_perf.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge overlay into a copy of base; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """
    Loads PerfEngineConfig from YAML.

    Usage:
        loader = ConfigLoader(base_path=Path("settings"))
        config = loader.load("perf.yaml", profile="low_memory")
        caches = build_caches(config)
    """

    def __init__(
        self,
        base_path: Optional[Path] = None,
        profiles_dir: Optional[Path] = None,
    ) -> None:
        """
        Args:
            base_path: Directory relative config paths are resolved against
            profiles_dir: Directory holding <profile>.yaml overlays
                (default: <base_path>/config/profiles)
        """
        self._base_path = base_path or Path(".")
        self._profiles_dir = profiles_dir or self._base_path / "config" / "profiles"

    def load(
        self,
        config_path: PathLike,
        profile: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> PerfEngineConfig:
        """
        Load, merge and validate configuration.

        Raises:
            FileNotFoundError: If the config file or profile doesn't exist
            InvalidConfiguration: If a file's top level is not a mapping
            pydantic.ValidationError: If a value violates a field constraint
        """
        path = Path(config_path)
        if not path.is_absolute():
            path = self._base_path / path

        settings = self._read(path)
        if profile:
            settings = deep_merge(settings, self._read(self._profile_path(profile)))
        if overrides:
            settings = deep_merge(settings, overrides)

        config = PerfEngineConfig.model_validate(settings)
        logger.debug(
            f"Loaded config from {path}"
            + (f" with profile '{profile}'" if profile else "")
        )
        return config

    def load_from_dict(self, config_dict: Mapping[str, Any]) -> PerfEngineConfig:
        """Validate configuration given as a mapping."""
        return PerfEngineConfig.model_validate(dict(config_dict))

    def available_profiles(self) -> List[str]:
        """Names of the profile overlays on disk, sorted."""
        if not self._profiles_dir.is_dir():
            return []
        return sorted(p.stem for p in self._profiles_dir.glob("*.yaml"))

    def _profile_path(self, profile: str) -> Path:
        path = self._profiles_dir / f"{profile}.yaml"
        if not path.exists():
            raise FileNotFoundError(
                f"Profile not found: {profile} (available: {', '.join(self.available_profiles()) or 'none'})"
            )
        return path

    def _read(self, path: Path) -> Dict[str, Any]:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise InvalidConfiguration(
                f"{path}: expected a mapping at top level, got {type(data).__name__}"
            )
        return data


def load_config(
    config_path: PathLike,
    profile: Optional[str] = None,
    base_path: Optional[Path] = None,
) -> PerfEngineConfig:
    """Load configuration with a one-off ConfigLoader."""
    return ConfigLoader(base_path=base_path).load(config_path, profile)
