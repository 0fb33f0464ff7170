"""Per-cluster presets: registry, credentials and resource defaults."""

import base64
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

from .config import (
    DEFAULT_CPU_LIMIT,
    DEFAULT_CPU_REQUEST,
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_MEMORY_REQUEST,
    PRESET_DIR,
    PRESET_SUFFIXES,
)
from .errors import UnknownCluster

logger = logging.getLogger(__name__)


def _secret_names(cluster: str, value: Any) -> List[str]:
    """Pull secrets may be given as a list or a comma separated string."""
    if not value:
        return []
    if isinstance(value, str):
        return value.split(",")
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise UnknownCluster(
        f"preset for cluster {cluster!r}: image_pull_secrets must be a list or a comma separated string"
    )


def _mapping(cluster: str, value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise UnknownCluster(f"preset for cluster {cluster!r}: {key} must be a mapping")
    return value


def _flag(cluster: str, value: Any, key: str) -> bool:
    """YAML booleans, or the strings true/false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise UnknownCluster(f"preset for cluster {cluster!r}: {key} must be true or false")


@dataclass
class Preset:
    """Parsed cluster preset."""
    cluster: str
    registry: str
    registry_username: str = ""
    registry_password: str = ""
    server: str = ""
    certificate_authority_data: str = ""
    token: str = ""
    insecure_skip_tls_verify: bool = False
    requests_cpu: str = DEFAULT_CPU_REQUEST
    requests_mem: str = DEFAULT_MEMORY_REQUEST
    limits_cpu: str = DEFAULT_CPU_LIMIT
    limits_mem: str = DEFAULT_MEMORY_LIMIT
    image_pull_secrets: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, cluster: str, data: Dict[str, Any]) -> "Preset":
        """Create Preset from a preset document."""
        if not isinstance(data, dict) or not data.get("registry"):
            raise UnknownCluster(f"preset for cluster {cluster!r} has no registry")

        resources = _mapping(cluster, data.get("resources"), "resources")
        requests = _mapping(cluster, resources.get("requests"), "resources.requests")
        limits = _mapping(cluster, resources.get("limits"), "resources.limits")

        return cls(
            cluster=cluster,
            registry=str(data["registry"]),
            registry_username=str(data.get("registry_username", "")),
            registry_password=str(data.get("registry_password", "")),
            server=str(data.get("server", "")),
            certificate_authority_data=str(data.get("certificate_authority_data", "")),
            token=str(data.get("token", "")),
            insecure_skip_tls_verify=_flag(cluster, data.get("insecure_skip_tls_verify", False), "insecure_skip_tls_verify"),
            requests_cpu=str(requests.get("cpu", DEFAULT_CPU_REQUEST)),
            requests_mem=str(requests.get("memory", DEFAULT_MEMORY_REQUEST)),
            limits_cpu=str(limits.get("cpu", DEFAULT_CPU_LIMIT)),
            limits_mem=str(limits.get("memory", DEFAULT_MEMORY_LIMIT)),
            image_pull_secrets=_secret_names(cluster, data.get("image_pull_secrets")),
        )

    def generate_dockerconfig(self) -> bytes:
        """
        Render a docker ``config.json`` holding the registry credentials.

        Returns:
            JSON document as bytes
        """
        auths: Dict[str, Dict[str, str]] = {}
        if self.registry_username or self.registry_password:
            credential = f"{self.registry_username}:{self.registry_password}"
            auths[self.registry] = {
                "auth": base64.b64encode(credential.encode("utf-8")).decode("ascii")
            }
        return json.dumps({"auths": auths}, indent=2).encode("utf-8")

    def generate_kubeconfig(self) -> bytes:
        """
        Render a single-cluster kubeconfig for this preset.

        Returns:
            YAML document as bytes
        """
        cluster: Dict[str, Any] = {"server": self.server}
        if self.certificate_authority_data:
            cluster["certificate-authority-data"] = self.certificate_authority_data
        if self.insecure_skip_tls_verify:
            cluster["insecure-skip-tls-verify"] = True

        user: Dict[str, Any] = {}
        if self.token:
            user["token"] = self.token

        document = {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": self.cluster, "cluster": cluster}],
            "users": [{"name": self.cluster, "user": user}],
            "contexts": [
                {"name": self.cluster, "context": {"cluster": self.cluster, "user": self.cluster}}
            ],
            "current-context": self.cluster,
        }
        return yaml.safe_dump(document, default_flow_style=False, sort_keys=False).encode("utf-8")


def load_preset(cluster: str, preset_dir: str = PRESET_DIR) -> Preset:
    """
    Load the preset for a cluster from ``<preset_dir>/<cluster>.yml``.

    Args:
        cluster: Cluster identifier from the workload address
        preset_dir: Directory holding one preset file per cluster

    Returns:
        The parsed Preset

    Raises:
        UnknownCluster: If no readable preset exists for the cluster
    """
    if not cluster or os.sep in cluster or cluster.startswith("."):
        raise UnknownCluster(f"invalid cluster name {cluster!r}")

    for suffix in PRESET_SUFFIXES:
        path = os.path.join(preset_dir, cluster + suffix)
        if not os.path.isfile(path):
            continue

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise UnknownCluster(f"failed to load preset for cluster {cluster!r}: {e}") from e

        logger.debug(f"Loaded preset {path}")
        return Preset.from_dict(cluster, data)

    raise UnknownCluster(f"no preset found for cluster {cluster!r} in {preset_dir}")
