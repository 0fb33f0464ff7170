"""Manifest loading and per-environment build/package profiles."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import yaml

from .cleanup import ResourceRegistry
from .config import (
    BUILD_SCRIPT_HEADER,
    DEFAULT_PROFILE,
    ENV_PLACEHOLDER,
    TEMP_PREFIX_BUILD,
    TEMP_PREFIX_PACKAGE,
)
from .errors import ManifestLoadError, UnknownEnvironment

logger = logging.getLogger(__name__)

# $DEPLOYER_ENV or ${DEPLOYER_ENV}; everything else is left as written
ENV_PATTERN = re.compile(r"\$(?:\{" + ENV_PLACEHOLDER + r"\}|" + ENV_PLACEHOLDER + r"(?![A-Za-z0-9_]))")


def _join_section(value: Any, section: str) -> str:
    """Accept a section as a block string or a list of lines."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(line, str) for line in value):
        return "\n".join(value) + "\n"
    raise ManifestLoadError(f"section {section!r} must be a string or a list of strings")


@dataclass
class Profile:
    """Build and package templates for one environment."""
    name: str
    build: str = ""
    package: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "Profile":
        """Create Profile from a manifest entry."""
        if not isinstance(data, dict):
            raise ManifestLoadError(f"profile {name!r} must be a mapping")

        return cls(
            name=name,
            build=_join_section(data.get("build"), f"{name}.build"),
            package=_join_section(data.get("package"), f"{name}.package"),
        )

    def _render(self, template: str, env: str) -> str:
        return ENV_PATTERN.sub(lambda _: env, template)

    def render_build(self, env: str) -> str:
        """Render the build script for an environment."""
        return BUILD_SCRIPT_HEADER + self._render(self.build, env)

    def render_package(self, env: str) -> str:
        """Render the Dockerfile for an environment."""
        return self._render(self.package, env)


@dataclass
class Manifest:
    """Environment name to Profile mapping."""
    profiles: Dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ManifestLoadError("manifest must be a mapping of environment names to profiles")

        profiles = {}
        for name, entry in data.items():
            name = str(name)
            profiles[name] = Profile.from_dict(name, entry)
        return cls(profiles=profiles)

    def profile(self, env: str) -> Profile:
        """
        Select the profile for an environment.

        Falls back to the ``default`` profile when the environment has none.

        Raises:
            UnknownEnvironment: If neither exists
        """
        if env in self.profiles:
            return self.profiles[env]
        if DEFAULT_PROFILE in self.profiles:
            logger.debug(f"No profile for {env}, using {DEFAULT_PROFILE}")
            return self.profiles[DEFAULT_PROFILE]
        raise UnknownEnvironment(f"environment {env!r} not found in manifest")


def load_manifest(path: str) -> Manifest:
    """
    Load a manifest file.

    Raises:
        ManifestLoadError: If the file is unreadable or malformed
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ManifestLoadError(f"failed to load manifest {path}: {e}") from e

    return Manifest.from_dict(data)


def generate_files(profile: Profile, env: str, resources: ResourceRegistry) -> Tuple[str, str]:
    """
    Write the rendered build script and Dockerfile to temporary files.

    Both files are registered with ``resources`` for removal.

    Returns:
        Tuple of (build script path, Dockerfile path)
    """
    build_file = resources.write_file(
        profile.render_build(env).encode("utf-8"), TEMP_PREFIX_BUILD, ".sh"
    )
    package_file = resources.write_file(
        profile.render_package(env).encode("utf-8"), TEMP_PREFIX_PACKAGE, ".dockerfile"
    )
    return build_file, package_file
