"""
hubspoke: lossless-conversion tooling for versioned resources.

A resource family has one canonical "hub" version and any number of older
"spoke" versions that convert through it. This library provides:

- a data stash that lets a lossy hub -> spoke conversion park the fields the
  spoke cannot represent in an annotation, and recover them on the way back;
- a fuzz harness (``hubspoke.testing``) that drives spoke -> hub -> spoke and
  hub -> spoke -> hub round trips with random values and reports the first
  structural difference.

Example:
    >>> from hubspoke import marshal_data, unmarshal_data
    >>> marshal_data(hub_obj, spoke_obj)          # inside convert_from
    >>> restored = HubKind()
    >>> unmarshal_data(spoke_obj, restored)       # inside convert_to
    True
"""

__version__ = "0.3.0"

# Core data models
from hubspoke.models import (
    ZERO_TIME,
    Annotatable,
    CapabilityError,
    Condition,
    ConversionError,
    Convertible,
    Copyable,
    Hub,
    HubSpokeError,
    IntOrString,
    KubeModel,
    KubeObject,
    Object,
    ObjectMeta,
    RoundTripMismatch,
    StashDecodeError,
    StashEncodeError,
    StashError,
)

# Type registry
from hubspoke.scheme import GroupVersionKind, Scheme

# Conversion data stash
from hubspoke.stash import (
    DATA_ANNOTATION,
    drop_data,
    marshal_data,
    peek_data,
    unmarshal_data,
)

# Semantic equality
from hubspoke.equality import object_diff, semantic_deep_equal

# Random value generation
from hubspoke.fuzzer import (
    INT_OR_STRING_BOUND,
    Fuzzer,
    FuzzerFuncs,
    StrategyFactory,
    builtin_funcs,
    get_fuzzer,
    meta_funcs,
)

__all__ = [
    # Version
    "__version__",
    # Core data models
    "Annotatable",
    "CapabilityError",
    "Condition",
    "ConversionError",
    "Convertible",
    "Copyable",
    "Hub",
    "HubSpokeError",
    "IntOrString",
    "KubeModel",
    "KubeObject",
    "Object",
    "ObjectMeta",
    "RoundTripMismatch",
    "StashDecodeError",
    "StashEncodeError",
    "StashError",
    "ZERO_TIME",
    # Type registry
    "GroupVersionKind",
    "Scheme",
    # Conversion data stash
    "DATA_ANNOTATION",
    "drop_data",
    "marshal_data",
    "peek_data",
    "unmarshal_data",
    # Semantic equality
    "object_diff",
    "semantic_deep_equal",
    # Random value generation
    "INT_OR_STRING_BOUND",
    "Fuzzer",
    "FuzzerFuncs",
    "StrategyFactory",
    "builtin_funcs",
    "get_fuzzer",
    "meta_funcs",
]
