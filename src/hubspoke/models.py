"""Core data models and capability contracts for hubspoke."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, TypeVar, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# int-or-string union used by ports, percentages and similar fields
IntOrString = Union[int, str]

# Zero value of a timestamp field (0001-01-01T00:00:00Z)
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_T = TypeVar("_T", bound="KubeObject")


class KubeModel(BaseModel):
    """Base for wire models: camelCase JSON names, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ObjectMeta(KubeModel):
    """Identity metadata every resource carries."""

    name: str = Field(default="", description="Object name, unique within a namespace")
    namespace: str = Field(default="", description="Namespace the object lives in")
    uid: str = Field(default="", description="Server-assigned unique identifier")
    resource_version: str = Field(default="", description="Opaque version for optimistic concurrency")
    generation: int = Field(default=0, description="Sequence number of the desired state")
    creation_timestamp: Optional[datetime] = Field(
        default=None, description="When the object was created"
    )
    labels: Optional[Dict[str, str]] = Field(
        default=None, description="Identifying key/value pairs"
    )
    annotations: Optional[Dict[str, str]] = Field(
        default=None, description="Non-identifying key/value pairs"
    )


class Condition(KubeModel):
    """One observation of an aspect of a resource's current state."""

    type: str = Field(default="", description="Condition type in CamelCase")
    status: str = Field(default="", description="One of True, False, Unknown")
    observed_generation: int = Field(default=0)
    last_transition_time: datetime = Field(default=ZERO_TIME)
    reason: str = Field(default="")
    message: str = Field(default="")


class KubeObject(KubeModel):
    """Resource base model carrying identity metadata.

    Subclasses add ``spec``/``status`` and either the conversion methods of a
    spoke or the ``hub()`` marker. This class implements neither.
    """

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)

    def __repr__(self) -> str:
        """Human-readable representation."""
        return (
            f"{type(self).__name__}(name={self.metadata.name!r}, "
            f"namespace={self.metadata.namespace!r})"
        )

    def get_name(self) -> str:
        return self.metadata.name

    def get_namespace(self) -> str:
        return self.metadata.namespace

    def get_labels(self) -> Optional[Dict[str, str]]:
        return self.metadata.labels

    def set_labels(self, labels: Optional[Dict[str, str]]) -> None:
        self.metadata.labels = labels

    def get_annotations(self) -> Optional[Dict[str, str]]:
        """Return the live annotation map (not a copy), or None if absent."""
        return self.metadata.annotations

    def set_annotations(self, annotations: Optional[Dict[str, str]]) -> None:
        self.metadata.annotations = annotations

    def deep_copy(self: _T) -> _T:
        return self.model_copy(deep=True)


@runtime_checkable
class Copyable(Protocol):
    """Anything that can hand out an independent deep copy of itself."""

    def deep_copy(self) -> Any: ...


@runtime_checkable
class Annotatable(Protocol):
    """Anything with an annotation map; where conversion data is stashed."""

    def get_annotations(self) -> Optional[Dict[str, str]]: ...

    def set_annotations(self, annotations: Optional[Dict[str, str]]) -> None: ...


@runtime_checkable
class Object(Annotatable, Copyable, Protocol):
    """Anything with an annotation map that can be deep-copied."""


@runtime_checkable
class Hub(Copyable, Protocol):
    """The canonical version of a resource. Carries a marker only."""

    def hub(self) -> None: ...


@runtime_checkable
class Convertible(Copyable, Protocol):
    """A version that converts to and from its hub."""

    def convert_to(self, hub: Any) -> None: ...

    def convert_from(self, hub: Any) -> None: ...


# Custom Exceptions
class HubSpokeError(Exception):
    """Base exception for all library errors."""
    pass


class StashError(HubSpokeError):
    """Conversion data could not be stored or restored."""
    pass


class StashEncodeError(StashError):
    """Source object could not be serialized into the data annotation."""
    pass


class StashDecodeError(StashError):
    """Data annotation holds content that does not decode into the target."""
    pass


class CapabilityError(HubSpokeError, TypeError):
    """An object handed to the harness lacks a required capability."""
    pass


class ConversionError(HubSpokeError):
    """A resource's convert_to/convert_from raised during a round trip."""

    def __init__(self, phase: str, direction: str, cause: BaseException) -> None:
        self.phase = phase
        self.direction = direction
        super().__init__(f"{phase}: {direction} failed: {cause!r}")


class RoundTripMismatch(HubSpokeError, AssertionError):
    """Value after a round trip differs from the value before it."""

    def __init__(self, message: str, diff: str) -> None:
        self.diff = diff
        super().__init__(f"{message}\n{diff}" if diff else message)
