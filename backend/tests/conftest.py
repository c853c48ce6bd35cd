"""Pytest configuration and fixtures."""

import os

# Set DEBUG=true for all tests BEFORE any package imports
# This must be done before journey_planner.core.config loads settings
os.environ["DEBUG"] = "true"
os.environ["OTEL_ENABLED"] = "false"

import pytest
from journey_planner.helpers.path_search import PlannerBudgets
from journey_planner.services.journey_cache import JourneyCache
from journey_planner.services.journey_service import JourneyPlanner
from journey_planner.services.network_source import StaticNetworkSource

from tests.helpers.railway_network import TestMetroNetwork

pytest_plugins = ["tests.fixtures.otel"]


@pytest.fixture
def interchange_network() -> StaticNetworkSource:
    """Two lines sharing a single interchange: R1 A-B-C and R2 B-D-E."""
    return TestMetroNetwork.create_interchange_network()


@pytest.fixture
def metro_network() -> StaticNetworkSource:
    """Three-line network with a hub, a shortcut line, and an isolated station."""
    return TestMetroNetwork.create_metro_network()


@pytest.fixture
def default_budgets() -> PlannerBudgets:
    """Default search budgets, independent of environment overrides."""
    return PlannerBudgets()


@pytest.fixture
def journey_cache() -> JourneyCache:
    """Fresh, empty journey cache."""
    return JourneyCache()


@pytest.fixture
def interchange_planner(
    interchange_network: StaticNetworkSource,
    journey_cache: JourneyCache,
    default_budgets: PlannerBudgets,
) -> JourneyPlanner:
    """Planner over the two-line interchange network."""
    return JourneyPlanner(interchange_network, interchange_network, cache=journey_cache, budgets=default_budgets)


@pytest.fixture
def metro_planner(
    metro_network: StaticNetworkSource,
    journey_cache: JourneyCache,
    default_budgets: PlannerBudgets,
) -> JourneyPlanner:
    """Planner over the three-line metro network."""
    return JourneyPlanner(metro_network, metro_network, cache=journey_cache, budgets=default_budgets)
