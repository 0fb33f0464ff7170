"""External collaborators: build shell, docker CLI and the Kubernetes API."""

import json
import logging
import subprocess
from typing import List, Optional, Type

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .config import DOCKER_BIN, SHELL_BIN
from .errors import BuildFailed, DeployerError, PackageFailed, PatchFailed, PushFailed

logger = logging.getLogger(__name__)

# Workload kind -> AppsV1Api patch method
PATCH_METHODS = {
    "deployment": "patch_namespaced_deployment",
    "deployments": "patch_namespaced_deployment",
    "deploy": "patch_namespaced_deployment",
    "statefulset": "patch_namespaced_stateful_set",
    "statefulsets": "patch_namespaced_stateful_set",
    "sts": "patch_namespaced_stateful_set",
    "daemonset": "patch_namespaced_daemon_set",
    "daemonsets": "patch_namespaced_daemon_set",
    "ds": "patch_namespaced_daemon_set",
}


class Executor:
    """Runs the real build, docker and cluster operations."""

    def __init__(self, docker_bin: str = DOCKER_BIN, shell_bin: str = SHELL_BIN, context_dir: str = "."):
        """
        Initialize the executor.

        Args:
            docker_bin: Docker CLI executable
            shell_bin: Shell used for build scripts
            context_dir: Docker build context
        """
        self.docker_bin = docker_bin
        self.shell_bin = shell_bin
        self.context_dir = context_dir

    def _run(self, args: List[str], error: Type[DeployerError]) -> None:
        logger.debug(f"Running: {' '.join(args)}")
        try:
            result = subprocess.run(args, check=False)
        except OSError as e:
            raise error(f"cannot run {args[0]}: {e}") from e
        if result.returncode != 0:
            raise error(f"{' '.join(args)} exited with status {result.returncode}")

    def build(self, script_path: str) -> None:
        self._run([self.shell_bin, script_path], BuildFailed)

    def package(self, dockerfile_path: str, tag: str) -> None:
        self._run(
            [self.docker_bin, "build", "-t", tag, "-f", dockerfile_path, self.context_dir],
            PackageFailed,
        )

    def remove_image(self, tag: str) -> None:
        self._run([self.docker_bin, "rmi", tag], DeployerError)

    def tag_image(self, source: str, target: str) -> None:
        self._run([self.docker_bin, "tag", source, target], PushFailed)

    def push_image(self, tag: str, config_dir: Optional[str] = None) -> None:
        args = [self.docker_bin]
        if config_dir:
            args += ["--config", config_dir]
        self._run(args + ["push", tag], PushFailed)

    def patch_workload(
        self,
        kubeconfig: str,
        namespace: str,
        name: str,
        kind: str,
        patch_json: bytes
    ) -> None:
        """
        Apply a strategic merge patch to a workload.

        Args:
            kubeconfig: Path of the kubeconfig for the target cluster
            namespace: Workload namespace
            name: Workload name
            kind: Workload kind, e.g. deployment or sts
            patch_json: Serialized patch document

        Raises:
            PatchFailed: On an unsupported kind or an API error
        """
        method = PATCH_METHODS.get(kind.lower())
        if method is None:
            raise PatchFailed(f"unsupported workload kind {kind!r}")

        try:
            api_client = config.new_client_from_config(config_file=kubeconfig)
        except ConfigException as e:
            raise PatchFailed(f"invalid kubeconfig {kubeconfig}: {e}") from e

        try:
            apps = client.AppsV1Api(api_client)
            getattr(apps, method)(name=name, namespace=namespace, body=json.loads(patch_json))
            logger.debug(f"Patched {kind} {namespace}/{name}")
        except ApiException as e:
            raise PatchFailed(f"error patching {kind} {namespace}/{name}: {e.status} {e.reason}") from e
        finally:
            api_client.close()
