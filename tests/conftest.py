"""Shared pytest fixtures for all tests."""
import pytest

from hubspoke import Scheme

from example_api import v1, v1alpha1


@pytest.fixture
def example_scheme() -> Scheme:
    """Scheme holding the example hub and spoke."""
    scheme = Scheme()
    v1.add_to_scheme(scheme)
    v1alpha1.add_to_scheme(scheme)
    return scheme
