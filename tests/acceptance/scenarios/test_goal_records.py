"""
Provides the scenario bindings for the Goal records feature file.
"""

from pytest_bdd import scenarios

from tests.acceptance.steps.goal_records import *  # noqa: F403 - Required to import all Goal record steps.

scenarios("goal_records.feature")
