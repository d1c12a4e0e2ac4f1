"""Round-trip fuzz testing for hub/spoke conversions.

Requires pytest: pip install 'hubspoke[testing]'
"""
from hubspoke.testing.harness import (
    DEFAULT_ITERATIONS,
    HUB_SPOKE_HUB,
    SPOKE_HUB_SPOKE,
    FuzzTestInput,
    fuzz_test_func,
    run_hub_spoke_hub,
    run_spoke_hub_spoke,
)
from hubspoke.testing.pytest_helpers import (
    assert_semantically_equal,
    assert_stash_round_trip,
)

__all__ = [
    "DEFAULT_ITERATIONS",
    "FuzzTestInput",
    "HUB_SPOKE_HUB",
    "SPOKE_HUB_SPOKE",
    "assert_semantically_equal",
    "assert_stash_round_trip",
    "fuzz_test_func",
    "run_hub_spoke_hub",
    "run_spoke_hub_spoke",
]
