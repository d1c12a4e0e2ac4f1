"""Round-trip fuzz harness for hub/spoke conversions.

Usage (module level of a test file)::

    test_my_resource_conversion = fuzz_test_func(
        FuzzTestInput(
            hub=v1.MyResource(),
            spoke=v1alpha1.MyResource(),
            fuzzer_funcs=[v1alpha1.fuzzer_funcs],
        )
    )

pytest collects one test item per phase: ``spoke-hub-spoke`` and
``hub-spoke-hub``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Type

import pytest
from hypothesis import HealthCheck, given, seed, settings
from hypothesis import strategies as st
from pydantic import BaseModel, ConfigDict, Field

from hubspoke.equality import object_diff, semantic_deep_equal
from hubspoke.fuzzer import Fuzzer, get_fuzzer
from hubspoke.models import (
    Annotatable,
    CapabilityError,
    ConversionError,
    Convertible,
    Hub,
    RoundTripMismatch,
)
from hubspoke.scheme import Scheme
from hubspoke.stash import drop_data

logger = logging.getLogger("hubspoke.testing.harness")

SPOKE_HUB_SPOKE = "spoke-hub-spoke"
HUB_SPOKE_HUB = "hub-spoke-hub"

DEFAULT_ITERATIONS = 10000


class FuzzTestInput(BaseModel):
    """Inputs of one hub/spoke round-trip test."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    hub: Any = Field(..., description="Empty reference instance of the hub version")
    spoke: Any = Field(..., description="Empty reference instance of the spoke version")
    scheme: Optional[Scheme] = Field(
        None,
        description="Type registry; defaults to a scheme holding only hub and spoke",
    )
    spoke_after_mutation: Optional[Callable[[Any], None]] = Field(
        None,
        description="Normalizes each spoke after spoke-hub-spoke, before comparison",
    )
    skip_spoke_annotation_cleanup: bool = Field(
        False,
        description="Keep the conversion-data annotation on the converted spoke; required for spokes without annotations",
    )
    fuzzer_funcs: List[Callable[..., Any]] = Field(
        default_factory=list,
        description="Caller fuzzer rules, applied after the built-in ones",
    )
    n: int = Field(
        DEFAULT_ITERATIONS,
        ge=1,
        description="Iterations per phase",
    )
    seed: Optional[int] = Field(
        None,
        description="Fixed seed; each phase seeds its own random source from it",
    )


def _default_scheme(fuzz_input: FuzzTestInput) -> Scheme:
    scheme = Scheme()
    for obj in (fuzz_input.hub, fuzz_input.spoke):
        version = type(obj).__module__.rpartition(".")[2]
        scheme.add_known_types(version, type(obj))
    return scheme


def _preflight(fuzz_input: FuzzTestInput, cleans_spoke: bool = False) -> Fuzzer:
    """Check capabilities of the reference objects and build the fuzzer.

    Raises:
        CapabilityError: If the hub is not a Hub, the spoke not Convertible,
            either is unknown to the scheme, or ``cleans_spoke`` is set and
            the spoke has no annotations.
    """
    if not isinstance(fuzz_input.hub, Hub):
        raise CapabilityError(
            f"fuzz_input.hub ({type(fuzz_input.hub).__qualname__}) does not implement Hub"
        )
    if not isinstance(fuzz_input.spoke, Convertible):
        raise CapabilityError(
            f"fuzz_input.spoke ({type(fuzz_input.spoke).__qualname__}) does not implement Convertible"
        )
    if cleans_spoke and not isinstance(fuzz_input.spoke, Annotatable):
        raise CapabilityError(
            f"fuzz_input.spoke ({type(fuzz_input.spoke).__qualname__}) has no annotations to clean up; "
            "set skip_spoke_annotation_cleanup=True"
        )

    scheme = fuzz_input.scheme if fuzz_input.scheme is not None else _default_scheme(fuzz_input)
    scheme.object_kind(fuzz_input.hub)
    scheme.object_kind(fuzz_input.spoke)
    return get_fuzzer(scheme, *fuzz_input.fuzzer_funcs)


def _copy(reference: Any, capability: Type[Any], label: str) -> Any:
    copied = reference.deep_copy()
    if not isinstance(copied, capability):
        raise CapabilityError(f"{label} does not implement {capability.__name__}")
    return copied


def _convert(phase: str, direction: str, fn: Callable[[Any], None], arg: Any) -> None:
    try:
        fn(arg)
    except Exception as e:
        raise ConversionError(phase, direction, e) from e


def _expect_equal(phase: str, before: Any, after: Any) -> None:
    if not semantic_deep_equal(before, after):
        raise RoundTripMismatch(
            f"{phase}: {type(before).__qualname__} changed across the round trip",
            object_diff(before, after),
        )


def _fuzz(fuzz_input: FuzzTestInput, test: Callable[..., None]) -> Callable[[], None]:
    """Wrap ``test(data)`` into a Hypothesis run of ``fuzz_input.n`` examples."""
    run = given(data=st.data())(test)
    run = settings(
        max_examples=fuzz_input.n,
        deadline=None,
        database=None,
        suppress_health_check=[
            HealthCheck.too_slow,
            HealthCheck.data_too_large,
            HealthCheck.large_base_example,
        ],
    )(run)
    if fuzz_input.seed is not None:
        run = seed(fuzz_input.seed)(run)
    return run


def run_spoke_hub_spoke(fuzz_input: FuzzTestInput) -> None:
    """Fuzz spoke -> hub -> spoke and require the spoke to come back unchanged.

    Raises:
        CapabilityError: Configuration defect in ``fuzz_input``.
        ConversionError: A conversion raised.
        RoundTripMismatch: The spoke changed; carries the diff.
    """
    fuzzer = _preflight(fuzz_input, cleans_spoke=not fuzz_input.skip_spoke_annotation_cleanup)
    phase = SPOKE_HUB_SPOKE

    def iteration(data: st.DataObject) -> None:
        spoke_before = _copy(fuzz_input.spoke, Convertible, "fuzz_input.spoke")
        fuzzer.fill(spoke_before, data.draw)

        hub_copy = _copy(fuzz_input.hub, Hub, "fuzz_input.hub")
        _convert(phase, "convert_to", spoke_before.convert_to, hub_copy)

        spoke_after = _copy(fuzz_input.spoke, Convertible, "fuzz_input.spoke")
        _convert(phase, "convert_from", spoke_after.convert_from, hub_copy)

        # convert_from may stash hub data on the spoke; not a structural change.
        if not fuzz_input.skip_spoke_annotation_cleanup:
            drop_data(spoke_after)

        if fuzz_input.spoke_after_mutation is not None:
            fuzz_input.spoke_after_mutation(spoke_after)

        _expect_equal(phase, spoke_before, spoke_after)

    logger.info(
        "Running %s for %s <-> %s (%d iterations)",
        phase, type(fuzz_input.spoke).__qualname__, type(fuzz_input.hub).__qualname__, fuzz_input.n,
    )
    _fuzz(fuzz_input, iteration)()
    logger.info("%s passed for %s", phase, type(fuzz_input.spoke).__qualname__)


def run_hub_spoke_hub(fuzz_input: FuzzTestInput) -> None:
    """Fuzz hub -> spoke -> hub and require the hub to come back unchanged.

    Raises:
        CapabilityError: Configuration defect in ``fuzz_input``.
        ConversionError: A conversion raised.
        RoundTripMismatch: The hub changed; carries the diff.
    """
    fuzzer = _preflight(fuzz_input)
    phase = HUB_SPOKE_HUB

    def iteration(data: st.DataObject) -> None:
        hub_before = _copy(fuzz_input.hub, Hub, "fuzz_input.hub")
        fuzzer.fill(hub_before, data.draw)

        spoke_copy = _copy(fuzz_input.spoke, Convertible, "fuzz_input.spoke")
        _convert(phase, "convert_from", spoke_copy.convert_from, hub_before)

        hub_after = _copy(fuzz_input.hub, Hub, "fuzz_input.hub")
        _convert(phase, "convert_to", spoke_copy.convert_to, hub_after)

        _expect_equal(phase, hub_before, hub_after)

    logger.info(
        "Running %s for %s <-> %s (%d iterations)",
        phase, type(fuzz_input.hub).__qualname__, type(fuzz_input.spoke).__qualname__, fuzz_input.n,
    )
    _fuzz(fuzz_input, iteration)()
    logger.info("%s passed for %s", phase, type(fuzz_input.hub).__qualname__)


PHASES: Dict[str, Callable[[FuzzTestInput], None]] = {
    SPOKE_HUB_SPOKE: run_spoke_hub_spoke,
    HUB_SPOKE_HUB: run_hub_spoke_hub,
}


def fuzz_test_func(fuzz_input: FuzzTestInput) -> Callable[[str], None]:
    """Return a pytest test function checking that conversions are not lossy.

    The returned function is parametrized over both phases, so each phase is
    reported as its own test item and a failure in one does not stop the
    other. Assign it to a ``test_*`` name at module level.
    """

    @pytest.mark.parametrize("phase", list(PHASES))
    def test_fuzzy_conversion(phase: str) -> None:
        PHASES[phase](fuzz_input)

    return test_fuzzy_conversion
