"""
Tests for the pkgfs.conformance.runner module.

This module tests:
- Suite configuration errors and empty discovery
- Sub-case naming, capture and continuation
- ScenarioContext checks
- Detection of backends that break the contract
"""

import pytest

from pkgfs import MemoryFilesystem
from pkgfs.base import Filesystem
from pkgfs.conformance import ProjectFixture, SCENARIOS, Suite, scenario
from pkgfs.conformance.runner import ScenarioContext, SuiteReport
from pkgfs.exceptions import (
    NoScenariosError,
    NotFoundError,
    ScenarioFailure,
    SuiteConfigurationError,
)

FIXTURE = ProjectFixture.default()


def memory_factory():
    return MemoryFilesystem(FIXTURE.config())


# =============================================================================
# Suite configuration
# =============================================================================

class TestSuiteConfiguration:
    """Tests for factories and scenario discovery."""

    def test_make_without_factory(self):
        suite = Suite("broken", None)

        with pytest.raises(SuiteConfigurationError, match="missing factory"):
            suite.make()

    def test_make_with_failing_factory(self):
        def factory():
            raise RuntimeError("no backend today")

        with pytest.raises(SuiteConfigurationError, match="no backend today"):
            Suite("broken", factory).make()

    def test_make_returns_fresh_instances(self):
        suite = Suite("memory", memory_factory)

        assert suite.make() is not suite.make()

    def test_default_scenarios_are_registered(self):
        names = Suite("memory", memory_factory).scenario_names()

        assert names == list(SCENARIOS)
        for expected in (
            "Create",
            "CreateWithoutMkdirAll",
            "Current",
            "Info",
            "MkdirAll",
            "OpenFile",
            "Parse",
            "StatError",
            "StatDir",
            "StatFile",
            "Walk",
            "Remove",
            "RemoveAll",
        ):
            assert expected in names

    def test_zero_scenarios_is_a_failure(self):
        suite = Suite("empty", memory_factory, scenarios={})

        with pytest.raises(NoScenariosError):
            suite.run()
        with pytest.raises(NoScenariosError):
            suite.pytest_params()

    def test_pytest_params_ids(self):
        params = Suite("memory", memory_factory).pytest_params()

        assert params[0].id == f"memory/{next(iter(SCENARIOS))}"
        assert len(params) == len(SCENARIOS)

    def test_duplicate_registration_rejected(self):
        name = next(iter(SCENARIOS))

        with pytest.raises(ValueError, match="registered twice"):
            scenario(name)(lambda ctx: None)

    def test_scenario_errors_in_factory_are_reported(self):
        suite = Suite("broken", None, scenarios={"Current": SCENARIOS["Current"]})
        result = suite.run_scenario("Current")

        assert not result.passed
        assert result.error_type == "SuiteConfigurationError"


# =============================================================================
# Sub-cases
# =============================================================================

class TestSubCases:
    """Tests for ScenarioContext.run() bookkeeping."""

    def test_failures_are_captured_and_later_cases_run(self):
        order = []

        def flaky(ctx: ScenarioContext) -> None:
            ctx.run("first", order.append, "first")
            ctx.run("second", ctx.equal, 1, 2, "numbers")
            ctx.run("third", order.append, "third")

        suite = Suite("custom", memory_factory, scenarios={"Flaky": flaky})
        result = suite.run_scenario("Flaky")

        assert order == ["first", "third"]
        assert not result.passed
        assert [c.name for c in result.cases] == ["Flaky/first", "Flaky/second", "Flaky/third"]
        assert [c.passed for c in result.cases] == [True, False, True]
        assert result.cases[1].error_type == "ScenarioFailure"
        assert "Flaky/second" in result.summary()

    def test_shared_backend_persists_across_cases(self):
        def shared(ctx: ScenarioContext) -> None:
            fs = ctx.make()
            ctx.run("populate", fs.mkdir_all, "/kept")
            ctx.run("observe", fs.stat, "/kept")

        result = Suite("custom", memory_factory, scenarios={"Shared": shared}).run_scenario("Shared")

        assert result.passed

    def test_top_level_error_fails_scenario(self):
        def explode(ctx: ScenarioContext) -> None:
            raise KeyError("boom")

        result = Suite("custom", memory_factory, scenarios={"Explode": explode}).run_scenario(
            "Explode"
        )

        assert not result.passed
        assert result.error_type == "KeyError"
        assert result.cases == []

    def test_report_serializes(self):
        report = Suite("memory", memory_factory, scenarios={"Current": SCENARIOS["Current"]}).run()
        data = report.model_dump()

        assert data["name"] == "memory"
        assert data["scenarios"][0]["name"] == "Current"
        assert data["scenarios"][0]["passed"] is True
        assert isinstance(report, SuiteReport)


# =============================================================================
# Checks
# =============================================================================

class TestChecks:
    """Tests for ScenarioContext check helpers."""

    @pytest.fixture
    def ctx(self):
        return ScenarioContext(Suite("memory", memory_factory), "Checks")

    def test_equal(self, ctx):
        ctx.equal([1], [1])
        with pytest.raises(ScenarioFailure, match="expected"):
            ctx.equal([1], [2], "list")

    def test_not_zero(self, ctx):
        ctx.not_zero("x")
        with pytest.raises(ScenarioFailure):
            ctx.not_zero("")
        with pytest.raises(ScenarioFailure):
            ctx.not_zero(None)

    def test_true(self, ctx):
        ctx.true(True, "unused")
        with pytest.raises(ScenarioFailure, match="nope"):
            ctx.true(False, "nope")

    def test_expect_error_returns_exception(self, ctx):
        fs = ctx.make()
        exc = ctx.expect_error(NotFoundError, fs.stat, "/missing")

        assert isinstance(exc, NotFoundError)

    def test_expect_error_nothing_raised(self, ctx):
        with pytest.raises(ScenarioFailure, match="nothing raised"):
            ctx.expect_error(NotFoundError, lambda: None)

    def test_expect_error_wrong_type(self, ctx):
        def wrong():
            raise KeyError("k")

        with pytest.raises(ScenarioFailure, match="got KeyError"):
            ctx.expect_error(NotFoundError, wrong)


# =============================================================================
# Broken backends
# =============================================================================

class ReverseOrderFilesystem(MemoryFilesystem):
    """Walks children in reverse name order."""

    def _walk(self, path, info, visitor):
        visitor(path, info)
        if info.is_dir:
            for child, child_info in sorted(self._children(path), key=lambda item: item[0].base, reverse=True):
                self._walk(child, child_info, visitor)


class AutoParentFilesystem(MemoryFilesystem):
    """Creates missing parents on create()."""

    def create(self, ref):
        self.mkdir_all(self.parse(ref).parent)
        return super().create(ref)


class TestBrokenBackends:
    """The suite must catch contract violations."""

    def _run(self, cls, name):
        suite = Suite("broken", lambda: cls(FIXTURE.config()))
        return suite.run_scenario(name)

    def test_unsorted_walk_detected(self):
        result = self._run(ReverseOrderFilesystem, "Walk")

        assert not result.passed
        failed = [c.name for c in result.failed_cases()]
        assert "Walk//" in failed

    def test_auto_parent_detected(self):
        result = self._run(AutoParentFilesystem, "CreateWithoutMkdirAll")

        assert not result.passed
        assert len(result.cases) == 6
        assert len(result.failed_cases()) == len(result.cases)

    def test_correct_backend_passes_same_scenarios(self):
        assert self._run(MemoryFilesystem, "Walk").passed
        assert self._run(MemoryFilesystem, "CreateWithoutMkdirAll").passed

    def test_broken_backend_is_still_a_filesystem(self):
        assert issubclass(ReverseOrderFilesystem, Filesystem)
