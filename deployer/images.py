"""Image tag ledger: the primary tag and its per-registry equivalents."""

from typing import Iterator, List, Optional

from .errors import EmptyImageNames


class ImageNames:
    """Ordered list of image tags, the first one is the primary tag."""

    def __init__(self, names: Optional[List[str]] = None):
        self._names: List[str] = list(names or [])

    @classmethod
    def for_build(cls, image: str, env: str, build_number: str = "") -> "ImageNames":
        """
        Compute the tags for a build.

        Examples:
            ("svc", "prod", "42") -> ["svc:prod-build-42", "svc:prod"]
            ("svc", "prod", "") -> ["svc:prod"]
        """
        names = cls()
        if build_number:
            names.append(f"{image}:{env}-build-{build_number}")
        names.append(f"{image}:{env}")
        return names

    def append(self, name: str) -> None:
        self._names.append(name)

    def primary(self) -> str:
        if not self._names:
            raise EmptyImageNames("no image names available")
        return self._names[0]

    def derive(self, registry: str) -> "ImageNames":
        """
        Qualify every tag with a registry host, keeping order.

        Args:
            registry: Registry host, e.g. "reg.example.com"

        Returns:
            A new ImageNames, the receiver is left untouched
        """
        if not self._names:
            raise EmptyImageNames("no image names to derive from")
        registry = registry.rstrip("/")
        return ImageNames([f"{registry}/{name}" for name in self._names])

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other) -> bool:
        if isinstance(other, ImageNames):
            return self._names == other._names
        if isinstance(other, list):
            return self._names == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ImageNames({self._names!r})"
