"""Construction of the pod-template patch sent to the cluster."""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from .config import IMAGE_PULL_POLICY, TIMESTAMP_ANNOTATION
from .preset import Preset
from .utils import LimitOption, WorkloadAddress, format_cpu, format_memory


def rollout_timestamp(now: Optional[datetime] = None) -> str:
    """Timezone aware RFC 3339 timestamp, seconds precision."""
    if now is None:
        now = datetime.now()
    return now.astimezone().isoformat(timespec="seconds")


def build_resources(
    preset: Preset,
    cpu: LimitOption,
    mem: LimitOption
) -> Dict[str, Dict[str, str]]:
    """
    Resolve container resources.

    A non-zero override replaces both request and limit of its dimension,
    otherwise the preset values pass through.
    """
    requests = {"cpu": preset.requests_cpu, "memory": preset.requests_mem}
    limits = {"cpu": preset.limits_cpu, "memory": preset.limits_mem}

    if not cpu.is_zero():
        requests["cpu"] = format_cpu(cpu.min)
        limits["cpu"] = format_cpu(cpu.max)

    if not mem.is_zero():
        requests["memory"] = format_memory(mem.min)
        limits["memory"] = format_memory(mem.max)

    return {"requests": requests, "limits": limits}


def build_patch(
    image: str,
    workload: WorkloadAddress,
    preset: Preset,
    cpu: Optional[LimitOption] = None,
    mem: Optional[LimitOption] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Build the patch for a workload.

    Args:
        image: Registry qualified primary image tag
        workload: Target workload
        preset: Preset of the workload's cluster
        cpu: CPU override in millicores
        mem: Memory override in mebibytes
        now: Time used for the rollout annotation

    Returns:
        Patch document
    """
    cpu = cpu or LimitOption()
    mem = mem or LimitOption()

    pod_spec: Dict[str, Any] = {}

    secrets = [{"name": name.strip()} for name in preset.image_pull_secrets if name.strip()]
    if secrets:
        pod_spec["imagePullSecrets"] = secrets

    container: Dict[str, Any] = {
        "image": image,
        "name": workload.container,
        "imagePullPolicy": IMAGE_PULL_POLICY,
    }

    if workload.is_init:
        pod_spec["initContainers"] = [container]
    else:
        container["resources"] = build_resources(preset, cpu, mem)
        pod_spec["containers"] = [container]

    return {
        "spec": {
            "template": {
                "metadata": {
                    "annotations": {TIMESTAMP_ANNOTATION: rollout_timestamp(now)}
                },
                "spec": pod_spec,
            }
        }
    }


def patch_to_json(patch: Dict[str, Any]) -> bytes:
    """Serialize a patch for transmission."""
    return json.dumps(patch, separators=(",", ":")).encode("utf-8")
