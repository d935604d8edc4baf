"""Conformance harness for pkgfs backends.

Example:
    >>> import pytest
    >>> from pkgfs import MemoryFilesystem
    >>> from pkgfs.conformance import ProjectFixture, Suite
    >>> suite = Suite("memory", lambda: MemoryFilesystem(ProjectFixture.default().config()))
    >>> @pytest.mark.parametrize("scenario", suite.pytest_params())
    ... def test_memory(scenario):
    ...     result = suite.run_scenario(scenario)
    ...     assert result.passed, result.summary()
"""

from .fixture import ProjectFixture, real_walk
from .reporting import build_table, print_report
from .runner import (
    CaseResult,
    ScenarioContext,
    ScenarioResult,
    Suite,
    SuiteReport,
)
from .scenarios import SCENARIOS, scenario

__all__ = [
    "Suite",
    "ScenarioContext",
    "CaseResult",
    "ScenarioResult",
    "SuiteReport",
    "SCENARIOS",
    "scenario",
    "ProjectFixture",
    "real_walk",
    "build_table",
    "print_report",
]
