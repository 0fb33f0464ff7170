"""Utility functions for workload addresses and resource overrides."""

import re
from dataclasses import dataclass

from .config import CPU_UNIT, MEMORY_UNIT
from .errors import MalformedAddress, MalformedLimit


@dataclass(frozen=True)
class WorkloadAddress:
    """Target of a deployment: CLUSTER/NAMESPACE/KIND/NAME[/CONTAINER]."""
    cluster: str
    namespace: str
    kind: str
    name: str
    container: str = ""
    is_init: bool = False

    def __str__(self) -> str:
        parts = [self.cluster, self.namespace, self.kind, self.name]
        if self.container:
            parts.append(self.container)
        address = "/".join(parts)
        return f"{address} (init)" if self.is_init else address


def parse_workload(value: str, is_init: bool = False) -> WorkloadAddress:
    """
    Parse a workload address.

    Examples:
        "prod/default/deployment/web" -> container ""
        "prod/default/deployment/web/app" -> container "app"

    Args:
        value: Slash separated address
        is_init: Whether the container is an init container

    Returns:
        Parsed WorkloadAddress

    Raises:
        MalformedAddress: On a segment count other than 4 or 5, or an
            empty cluster/namespace/kind/name
    """
    segments = value.split("/")
    if len(segments) not in (4, 5) or not all(segments[:4]):
        raise MalformedAddress(
            f"invalid workload {value!r}, expected CLUSTER/NAMESPACE/TYPE/NAME[/CONTAINER]"
        )

    container = segments[4] if len(segments) == 5 else ""
    return WorkloadAddress(
        cluster=segments[0],
        namespace=segments[1],
        kind=segments[2],
        name=segments[3],
        container=container,
        is_init=is_init,
    )


@dataclass(frozen=True)
class LimitOption:
    """
    A MIN:MAX resource override.

    The default instance is the "no override" sentinel. ``supplied`` tells it
    apart from an explicit ``0:0``; both report ``is_zero()``.
    """
    min: int = 0
    max: int = 0
    supplied: bool = False

    @classmethod
    def parse(cls, value: str) -> "LimitOption":
        """
        Parse a MIN:MAX string.

        Examples:
            "" -> LimitOption()
            "100:200" -> LimitOption(100, 200, supplied=True)

        Raises:
            MalformedLimit: If value is not two non-negative integers
        """
        if not value:
            return cls()

        parts = value.split(":")
        if len(parts) != 2:
            raise MalformedLimit(f"invalid limit {value!r}, expected MIN:MAX")

        numbers = []
        for part in parts:
            if not re.fullmatch(r"[0-9]+", part):
                raise MalformedLimit(f"invalid limit {value!r}, {part!r} is not a non-negative integer")
            numbers.append(int(part))

        return cls(min=numbers[0], max=numbers[1], supplied=True)

    def is_zero(self) -> bool:
        """True when both bounds are 0."""
        return self.min == 0 and self.max == 0

    def __str__(self) -> str:
        return f"{self.min}:{self.max}"


def format_cpu(millicores: int) -> str:
    """
    Format millicores to Kubernetes string.

    Examples:
        100 -> "100m"
    """
    return f"{millicores}{CPU_UNIT}"


def format_memory(mebibytes: int) -> str:
    """
    Format mebibytes to Kubernetes string.

    Examples:
        256 -> "256Mi"
    """
    return f"{mebibytes}{MEMORY_UNIT}"
