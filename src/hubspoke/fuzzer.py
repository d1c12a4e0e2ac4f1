"""Randomized value generation for round-trip fuzzing.

A :class:`Fuzzer` turns a field *shape* (a type annotation such as ``str``,
``Optional[datetime]`` or a model class) into a Hypothesis search strategy.
Rules keyed by shape take precedence over the generic resolution, and the
last rule registered for a shape wins, so callers can replace any built-in.

Caller overrides are :data:`FuzzerFuncs`: functions that receive the scheme
and return a mapping of shape to strategy factory::

    def my_funcs(scheme: Scheme) -> Dict[Any, StrategyFactory]:
        return {
            MyResourceSpec: lambda f: st.builds(
                MyResourceSpec,
                name=f.strategy_for(str),
                old_field=st.none() | st.text(min_size=1),
            ),
        }

    fuzzer = get_fuzzer(scheme, my_funcs)
"""
import enum
import logging
import types
from collections import abc
from datetime import datetime, timedelta, timezone
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    Literal,
    Mapping,
    Optional,
    Union,
    get_args,
    get_origin,
)

from hypothesis import strategies as st
from hypothesis.strategies import SearchStrategy
from pydantic import BaseModel

from hubspoke.models import ZERO_TIME, CapabilityError, Condition, IntOrString, ObjectMeta
from hubspoke.scheme import Scheme

logger = logging.getLogger("hubspoke.fuzzer")

StrategyFactory = Callable[["Fuzzer"], SearchStrategy[Any]]
FuzzerFuncs = Callable[[Scheme], Mapping[Any, StrategyFactory]]
Draw = Callable[[SearchStrategy[Any]], Any]

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_UINT32_MAX = 2**32 - 1

# Upper bound (exclusive) for generated int-or-string integers
INT_OR_STRING_BOUND = 50

_MAX_COLLECTION_SIZE = 4
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Label/annotation keys never contain "/", so they cannot collide with
# prefixed keys such as the conversion-data annotation.
_KEY_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-._"
_NAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-"


def _canonical(shape: Any) -> Any:
    """Spell ``X | Y`` as ``Union[X, Y]`` so both forms hit the same rule."""
    if isinstance(shape, types.UnionType):
        return Union[get_args(shape)]
    return shape


def _unix(seconds: int) -> datetime:
    return _EPOCH + timedelta(seconds=seconds)


def _rfc3339_times() -> SearchStrategy[datetime]:
    # Whole seconds only: sub-second precision does not survive the wire.
    return st.integers(min_value=0, max_value=_UINT32_MAX).map(_unix)


def _optional_time(_: "Fuzzer") -> SearchStrategy[Optional[datetime]]:
    return st.one_of(st.none(), st.just(ZERO_TIME), _rfc3339_times())


def _optional_int_or_string(_: "Fuzzer") -> SearchStrategy[Optional[IntOrString]]:
    return st.one_of(
        st.none(),
        st.just(0),
        st.integers(min_value=0, max_value=INT_OR_STRING_BOUND - 1),
    )


def _string_maps() -> SearchStrategy[Optional[Dict[str, str]]]:
    return st.one_of(
        st.none(),
        st.dictionaries(
            st.text(alphabet=_KEY_ALPHABET, min_size=1, max_size=20),
            st.text(max_size=20),
            max_size=_MAX_COLLECTION_SIZE,
        ),
    )


def _object_meta(f: "Fuzzer") -> SearchStrategy[ObjectMeta]:
    names = st.text(alphabet=_NAME_ALPHABET, max_size=20)
    return st.builds(
        ObjectMeta.model_construct,
        name=names,
        namespace=names,
        uid=st.one_of(st.just(""), st.uuids().map(str)),
        resource_version=st.one_of(
            st.just(""), st.integers(min_value=1, max_value=_UINT32_MAX).map(str)
        ),
        generation=st.integers(min_value=0, max_value=_INT32_MAX),
        creation_timestamp=f.strategy_for(Optional[datetime]),
        labels=_string_maps(),
        annotations=_string_maps(),
    )


def _condition(f: "Fuzzer") -> SearchStrategy[Condition]:
    return st.builds(
        Condition.model_construct,
        type=st.text(min_size=1, max_size=20),
        status=st.sampled_from(["True", "False", "Unknown"]),
        observed_generation=st.integers(min_value=0, max_value=_INT32_MAX),
        last_transition_time=f.strategy_for(datetime),
        reason=f.strategy_for(str),
        message=f.strategy_for(str),
    )


def meta_funcs(_: Scheme) -> Dict[Any, StrategyFactory]:
    """Rules for identity metadata and other shared API types."""
    return {
        ObjectMeta: _object_meta,
        Condition: _condition,
    }


def builtin_funcs(_: Scheme) -> Dict[Any, StrategyFactory]:
    """Rules for shapes a naive generator gets wrong across a round trip."""
    return {
        datetime: lambda _f: _rfc3339_times(),
        Optional[datetime]: _optional_time,
        Optional[IntOrString]: _optional_int_or_string,
    }


class Fuzzer:
    """Resolves field shapes to strategies and fills models in place.

    Holds no random state of its own: every value is drawn through the
    ``draw`` callable of the running Hypothesis example.
    """

    def __init__(self, scheme: Scheme, rules: Mapping[Any, StrategyFactory]) -> None:
        self.scheme = scheme
        self._rules: Dict[Any, StrategyFactory] = dict(rules)
        self._cache: Dict[Any, SearchStrategy[Any]] = {}

    def has_rule(self, shape: Any) -> bool:
        return shape in self._rules

    def strategy_for(self, shape: Any) -> SearchStrategy[Any]:
        """Return the strategy for ``shape``, preferring a registered rule."""
        shape = _canonical(shape)
        try:
            cached = self._cache.get(shape)
        except TypeError:
            # unhashable annotation metadata; resolve without caching
            return self._resolve(shape)
        if cached is not None:
            return cached
        # Deferred so that recursive models resolve to the cached strategy.
        strategy = st.deferred(lambda: self._resolve(shape))
        self._cache[shape] = strategy
        return strategy

    def fill(self, obj: Any, draw: Draw) -> None:
        """Overwrite every field of the model ``obj`` with random values."""
        if not isinstance(obj, BaseModel):
            raise CapabilityError(
                f"cannot fill {type(obj).__qualname__}: not a pydantic model"
            )
        value = draw(self.strategy_for(type(obj)))
        for name in type(obj).model_fields:
            setattr(obj, name, getattr(value, name))

    def _resolve(self, shape: Any) -> SearchStrategy[Any]:
        factory = self._rules.get(shape)
        if factory is not None:
            return factory(self)
        return self._generic(shape)

    def _generic(self, shape: Any) -> SearchStrategy[Any]:
        origin = get_origin(shape)
        args = get_args(shape)

        if shape is Any:
            return st.one_of(st.none(), st.booleans(), self.strategy_for(int), st.text())

        if origin is Annotated:
            return self.strategy_for(args[0])

        if origin is Union or origin is types.UnionType:
            branches = [self.strategy_for(a) for a in args if a is not type(None)]
            if len(branches) < len(args):
                branches.insert(0, st.none())
            return st.one_of(branches)

        if origin is Literal:
            return st.sampled_from(args)

        if origin in (list, abc.Sequence, abc.MutableSequence):
            item = args[0] if args else Any
            return st.lists(self.strategy_for(item), max_size=_MAX_COLLECTION_SIZE)

        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return st.lists(
                    self.strategy_for(args[0]), max_size=_MAX_COLLECTION_SIZE
                ).map(tuple)
            return st.tuples(*(self.strategy_for(a) for a in args))

        if origin in (dict, abc.Mapping, abc.MutableMapping):
            key, value = args if args else (str, Any)
            return st.dictionaries(
                self.strategy_for(key),
                self.strategy_for(value),
                max_size=_MAX_COLLECTION_SIZE,
            )

        if origin in (set, frozenset, abc.Set, abc.MutableSet):
            item = args[0] if args else str
            items = st.sets(self.strategy_for(item), max_size=_MAX_COLLECTION_SIZE)
            return items.map(frozenset) if origin is frozenset else items

        if isinstance(shape, type):
            if issubclass(shape, BaseModel):
                return self._model(shape)
            if issubclass(shape, enum.Enum):
                return st.sampled_from(list(shape))
            if shape is bool:
                return st.booleans()
            if shape is int:
                return st.integers(min_value=_INT32_MIN, max_value=_INT32_MAX)
            if shape is float:
                return st.floats(allow_nan=False, allow_infinity=False)
            if shape is str:
                return st.text()
            if shape is bytes:
                return st.binary()

        logger.debug("No rule for %r, falling back to from_type", shape)
        return st.from_type(shape)

    def _model(self, model: type) -> SearchStrategy[Any]:
        fields = {
            name: self.strategy_for(info.annotation)
            for name, info in model.model_fields.items()  # type: ignore[attr-defined]
        }
        return st.builds(model.model_construct, **fields)  # type: ignore[attr-defined]


def get_fuzzer(scheme: Scheme, *funcs: FuzzerFuncs) -> Fuzzer:
    """Build a fuzzer from the built-in rules followed by ``funcs``.

    Rules are applied in order (:func:`meta_funcs`, :func:`builtin_funcs`,
    then each caller func); a later rule for the same shape replaces the
    earlier one.
    """
    rules: Dict[Any, StrategyFactory] = {}
    for fn in (meta_funcs, builtin_funcs, *funcs):
        for shape, factory in fn(scheme).items():
            shape = _canonical(shape)
            if shape in rules:
                logger.debug(
                    "Fuzzer rule for %r replaced by %s",
                    shape, getattr(fn, "__name__", repr(fn)),
                )
            rules[shape] = factory
    return Fuzzer(scheme, rules)
