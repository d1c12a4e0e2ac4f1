"""Explicit type registry mapping group/version/kind to resource classes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Type

from hubspoke.models import CapabilityError


@dataclass(frozen=True)
class GroupVersionKind:
    """Identifies a resource type on the wire."""

    group: str
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        """Split an ``apiVersion`` string (``group/version`` or ``version``)."""
        group, _, version = api_version.rpartition("/")
        if not version:
            raise ValueError(f"Invalid apiVersion: {api_version!r}")
        return cls(group=group, version=version, kind=kind)

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


class Scheme:
    """Registry of known resource types, built by the caller and passed in.

    Instances are owned by the caller; nothing is registered globally.
    """

    def __init__(self) -> None:
        self._types: Dict[GroupVersionKind, Type[Any]] = {}
        self._kinds: Dict[Type[Any], GroupVersionKind] = {}

    def add_known_types(self, group_version: str, *types: Type[Any]) -> None:
        """Register classes under ``group_version``; kind is the class name.

        Raises:
            ValueError: If a kind is already registered to a different class.
        """
        for tp in types:
            gvk = GroupVersionKind.from_api_version(group_version, tp.__name__)
            existing = self._types.get(gvk)
            if existing is not None and existing is not tp:
                raise ValueError(
                    f"Double registration of different types for {gvk}: "
                    f"{existing.__module__}.{existing.__qualname__} and "
                    f"{tp.__module__}.{tp.__qualname__}"
                )
            self._types[gvk] = tp
            self._kinds.setdefault(tp, gvk)

    def recognizes(self, gvk: GroupVersionKind) -> bool:
        return gvk in self._types

    def new(self, gvk: GroupVersionKind) -> Any:
        """Return a fresh, empty instance of the type registered for ``gvk``."""
        try:
            tp = self._types[gvk]
        except KeyError:
            raise CapabilityError(f"No type registered for {gvk}") from None
        return tp()

    def object_kind(self, obj: Any) -> GroupVersionKind:
        """Return the registered kind of ``obj``'s class.

        Raises:
            CapabilityError: If the class was never registered.
        """
        try:
            return self._kinds[type(obj)]
        except KeyError:
            raise CapabilityError(
                f"{type(obj).__qualname__} is not registered in scheme"
            ) from None

    def known_types(self) -> Dict[GroupVersionKind, Type[Any]]:
        return dict(self._types)
