"""
Runs the conformance suite against both reference backends.

Each scenario is reported as its own pytest item; a failing item lists the
failing sub-cases by name.
"""

import pytest

from pkgfs import DiskFilesystem, FilesystemConfig, MemoryFilesystem
from pkgfs.conformance import ProjectFixture, Suite

FIXTURE = ProjectFixture.default()


def memory_factory():
    return MemoryFilesystem(FIXTURE.config())


MEMORY_SUITE = Suite("memory", memory_factory, fixture=FIXTURE)


@pytest.mark.parametrize("scenario", MEMORY_SUITE.pytest_params())
def test_memory_conformance(scenario):
    result = MEMORY_SUITE.run_scenario(scenario)
    assert result.passed, result.summary()


@pytest.mark.parametrize("scenario", Suite("disk", None).pytest_params())
def test_disk_conformance(scenario, tmp_path_factory):
    def factory():
        root = tmp_path_factory.mktemp("ns")
        return DiskFilesystem(FilesystemConfig.for_namespace(FIXTURE.namespace, dir=str(root)))

    suite = Suite("disk", factory, fixture=FIXTURE)
    result = suite.run_scenario(scenario)
    assert result.passed, result.summary()


def test_memory_suite_reverse_order_isolation():
    """Running all scenarios in reverse order yields the same outcomes."""
    forward = MEMORY_SUITE.run()
    backward = MEMORY_SUITE.run(reverse=True)

    assert forward.passed
    assert forward.outcomes() == backward.outcomes()
    assert [r.name for r in backward.scenarios] == list(reversed(MEMORY_SUITE.scenario_names()))


def test_every_scenario_reports_sub_cases():
    report = MEMORY_SUITE.run()

    for result in report.scenarios:
        for case in result.cases:
            assert case.name.startswith(f"{result.name}/")
