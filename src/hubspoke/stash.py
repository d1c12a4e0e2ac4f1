"""Conversion data stash.

A down-conversion from the hub to an older spoke drops whatever the spoke
cannot represent. ``marshal_data`` parks the hub object (minus its metadata)
as JSON in one annotation on the spoke; ``unmarshal_data`` reads it back
during the up-conversion and removes the annotation.

Example:
    >>> def convert_from(self, hub):
    ...     ...  # field-by-field copy
    ...     marshal_data(hub, self)
    >>> def convert_to(self, hub):
    ...     restored = HubKind()
    ...     if unmarshal_data(self, restored):
    ...         hub.spec.new_field = restored.spec.new_field
"""

import json
import logging
import math
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from hubspoke.models import Annotatable, CapabilityError, StashDecodeError, StashEncodeError

logger = logging.getLogger("hubspoke.stash")

DATA_ANNOTATION = "cluster.x-k8s.io/conversion-data"
"""Annotation under which conversions retain hub data across a down-conversion."""

_METADATA_FIELD = "metadata"


def _require_annotations(obj: Any) -> None:
    if not isinstance(obj, Annotatable):
        raise CapabilityError(
            f"{type(obj).__qualname__} has no annotations to hold conversion data"
        )


def _check_finite(value: Any, path: str) -> None:
    """Reject NaN and infinities, which have no JSON representation."""
    if isinstance(value, float):
        if not math.isfinite(value):
            raise StashEncodeError(f"cannot represent {value!r} at {path} in JSON")
    elif isinstance(value, Mapping):
        for key, item in value.items():
            _check_finite(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple, set, frozenset)):
        for i, item in enumerate(value):
            _check_finite(item, f"{path}[{i}]")


def _to_unstructured(src: Any) -> Dict[str, Any]:
    if isinstance(src, BaseModel):
        # JSON mode may turn non-finite floats into null; check the raw values first.
        _check_finite(src.model_dump(by_alias=True), "$")
        return src.model_dump(mode="json", by_alias=True)
    if isinstance(src, Mapping):
        return dict(src)
    raise StashEncodeError(
        f"failed to convert source to unstructured: unsupported type {type(src).__name__}"
    )


def marshal_data(src: Any, dst: Annotatable) -> None:
    """Store ``src`` as JSON in ``dst``'s annotations, ignoring its metadata.

    Any previous value under :data:`DATA_ANNOTATION` is overwritten; other
    annotations are left as they are.

    Raises:
        StashEncodeError: If ``src`` cannot be serialized, including
            NaN or infinite floats.
        CapabilityError: If ``dst`` has no annotations.
    """
    _require_annotations(dst)
    try:
        u = _to_unstructured(src)
    except PydanticSerializationError as e:
        raise StashEncodeError(f"failed to convert source to unstructured: {e}") from e

    u.pop(_METADATA_FIELD, None)

    try:
        data = json.dumps(
            u, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        )
    except (TypeError, ValueError) as e:
        raise StashEncodeError(f"failed to marshal source object: {e}") from e

    annotations = dst.get_annotations()
    if annotations is None:
        annotations = {}

    annotations[DATA_ANNOTATION] = data
    dst.set_annotations(annotations)
    logger.debug("Stored %d bytes of conversion data on %r", len(data), dst)


def peek_data(obj: Annotatable) -> Optional[str]:
    """Return the stashed payload of ``obj`` without removing it."""
    _require_annotations(obj)
    annotations = obj.get_annotations()
    if not annotations:
        return None
    return annotations.get(DATA_ANNOTATION)


def drop_data(obj: Annotatable) -> bool:
    """Remove the stashed payload from ``obj``; report whether one was there."""
    _require_annotations(obj)
    annotations = obj.get_annotations()
    if not annotations or DATA_ANNOTATION not in annotations:
        return False
    del annotations[DATA_ANNOTATION]
    obj.set_annotations(annotations)
    return True


def _decode_into(data: str, target: Any) -> None:
    if isinstance(target, BaseModel):
        restored = type(target).model_validate_json(data)
        # Fields missing from the payload keep their current value on target.
        for name in restored.model_fields_set:
            setattr(target, name, getattr(restored, name))
        return
    if isinstance(target, MutableMapping):
        decoded = json.loads(data)
        if not isinstance(decoded, dict):
            raise ValueError(f"expected a JSON object, got {type(decoded).__name__}")
        target.update(decoded)
        return
    raise TypeError(
        f"cannot unmarshal conversion data into {type(target).__name__}; "
        f"expected a pydantic model or a mutable mapping"
    )


def unmarshal_data(src: Annotatable, target: Any) -> bool:
    """Restore stashed data from ``src`` into ``target``.

    Args:
        src: Object whose annotations may hold :data:`DATA_ANNOTATION`.
        target: A pydantic model instance or a mutable mapping, updated in
            place with the fields present in the payload.

    Returns:
        False if no data was stashed on ``src``; True if it was decoded into
        ``target``, in which case the annotation is removed from ``src``.

    Raises:
        StashDecodeError: If the payload is malformed. ``src`` and
            ``target`` are left unchanged.
        TypeError: If ``target`` is neither a model nor a mapping.
        CapabilityError: If ``src`` has no annotations.
    """
    data = peek_data(src)
    if data is None:
        logger.debug("No conversion data on %r", src)
        return False

    try:
        _decode_into(data, target)
    except (PydanticValidationError, ValueError) as e:
        raise StashDecodeError(f"failed to unmarshal data annotation: {e}") from e

    drop_data(src)
    logger.debug("Restored conversion data from %r", src)
    return True
