"""
Suite runner for the conformance scenarios.

A Suite binds a name to a backend factory. Each registered scenario runs as an
isolated unit that obtains its own backend(s) from the factory; sub-cases inside
a scenario are named, timed and reported individually.

Example:
    >>> suite = Suite("memory", lambda: MemoryFilesystem(ProjectFixture.default().config()))
    >>> report = suite.run()
    >>> report.passed
    True
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, Field

from ..base import Filesystem
from ..exceptions import (
    NoScenariosError,
    ScenarioFailure,
    SuiteConfigurationError,
)
from .fixture import ProjectFixture

logger = logging.getLogger(__name__)

Factory = Callable[[], Filesystem]
ScenarioFn = Callable[["ScenarioContext"], None]
E = TypeVar("E", bound=BaseException)

ZERO_TIMES = (datetime.min, datetime.fromtimestamp(0, tz=timezone.utc))


# =============================================================================
# Results
# =============================================================================

class CaseResult(BaseModel):
    """Outcome of one named sub-case."""
    name: str
    passed: bool
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    duration: float = 0.0


class ScenarioResult(BaseModel):
    """Outcome of one scenario, including its sub-cases."""
    name: str
    passed: bool
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    duration: float = 0.0
    cases: List[CaseResult] = Field(default_factory=list)

    def failed_cases(self) -> List[CaseResult]:
        return [case for case in self.cases if not case.passed]

    def summary(self) -> str:
        """Multi-line description of what failed, for assertion messages."""
        if self.passed:
            return f"{self.name}: ok ({len(self.cases)} cases)"
        lines = [f"{self.name}: FAILED"]
        if self.error_type:
            lines.append(f"  {self.error_type}: {self.error_message}")
        for case in self.failed_cases():
            lines.append(f"  {case.name}: {case.error_type}: {case.error_message}")
        return "\n".join(lines)


class SuiteReport(BaseModel):
    """Outcome of a whole suite run."""
    name: str
    scenarios: List[ScenarioResult] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.scenarios)

    def failures(self) -> List[ScenarioResult]:
        return [result for result in self.scenarios if not result.passed]

    def outcomes(self) -> Dict[str, bool]:
        """Pass/fail per scenario name, independent of run order."""
        return {result.name: result.passed for result in self.scenarios}


# =============================================================================
# Scenario context
# =============================================================================

class ScenarioContext:
    """
    Handle a scenario uses to obtain backends, run sub-cases and check results.

    Check helpers raise ScenarioFailure. Sub-cases run through run() capture
    their own failure so the next sub-case still executes.
    """

    def __init__(self, suite: "Suite", name: str) -> None:
        self.suite = suite
        self.name = name
        self.fixture = suite.fixture
        self.cases: List[CaseResult] = []

    def make(self) -> Filesystem:
        """A fresh backend from the suite's factory."""
        return self.suite.make()

    def run(self, case: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """
        Run one named sub-case.

        Returns:
            True if the sub-case passed
        """
        name = f"{self.name}/{case}"
        start = time.perf_counter()
        try:
            fn(*args, **kwargs)
        except Exception as exc:
            result = CaseResult(
                name=name,
                passed=False,
                error_type=type(exc).__name__,
                error_message=str(exc),
                duration=time.perf_counter() - start,
            )
            logger.warning(f"[{self.suite.name}] {name} failed: {type(exc).__name__}: {exc}")
        else:
            result = CaseResult(name=name, passed=True, duration=time.perf_counter() - start)
        self.cases.append(result)
        return result.passed

    # ========== Checks ==========

    def equal(self, expected: Any, actual: Any, what: str = "value") -> None:
        if expected != actual:
            raise ScenarioFailure(
                f"{what}: expected {expected!r}, got {actual!r}",
                expected=expected,
                actual=actual,
            )

    def true(self, condition: Any, message: str) -> None:
        if not condition:
            raise ScenarioFailure(message)

    def not_zero(self, value: Any, what: str = "value") -> None:
        if not value or value in ZERO_TIMES:
            raise ScenarioFailure(f"{what}: expected a non-zero value, got {value!r}", actual=value)

    def expect_error(
        self, exc_type: Type[E], fn: Callable[..., Any], *args: Any, **kwargs: Any
    ) -> E:
        """
        Call ``fn`` and require it to raise ``exc_type``.

        Returns:
            The raised exception
        """
        label = getattr(fn, "__name__", repr(fn))
        try:
            fn(*args, **kwargs)
        except exc_type as exc:
            return exc
        except Exception as exc:
            raise ScenarioFailure(
                f"{label}{args!r}: expected {exc_type.__name__}, "
                f"got {type(exc).__name__}: {exc}"
            ) from exc
        raise ScenarioFailure(f"{label}{args!r}: expected {exc_type.__name__}, nothing raised")


# =============================================================================
# Suite
# =============================================================================

class Suite:
    """
    Runs the registered conformance scenarios against one backend factory.

    Args:
        name: Name used as the prefix of every reported scenario and sub-case
        factory: Zero-argument callable returning a new backend
        fixture: Project fixture used as the oracle (default: the packaged one)
        scenarios: Scenario table to run (default: every registered scenario)
    """

    def __init__(
        self,
        name: str,
        factory: Optional[Factory],
        fixture: Optional[ProjectFixture] = None,
        scenarios: Optional[Mapping[str, ScenarioFn]] = None,
    ) -> None:
        if scenarios is None:
            from .scenarios import SCENARIOS
            scenarios = SCENARIOS

        self.name = name
        self.factory = factory
        self.fixture = fixture or ProjectFixture.default()
        self._scenarios: Dict[str, ScenarioFn] = dict(scenarios)

    def make(self) -> Filesystem:
        """Return a new backend instance from the factory."""
        if self.factory is None:
            raise SuiteConfigurationError("missing factory function", suite_name=self.name)
        try:
            return self.factory()
        except Exception as exc:
            raise SuiteConfigurationError(
                f"factory failed: {type(exc).__name__}: {exc}", suite_name=self.name
            ) from exc

    def scenario_names(self) -> List[str]:
        """Registered scenario names, in registration order."""
        return list(self._scenarios)

    def run_scenario(self, name: str) -> ScenarioResult:
        """Run one scenario in isolation and return its result."""
        fn = self._scenarios[name]
        ctx = ScenarioContext(self, name)
        full_name = f"{self.name}/{name}"

        logger.info(f"Running {full_name}")
        start = time.perf_counter()
        error: Optional[Exception] = None
        try:
            fn(ctx)
        except Exception as exc:
            error = exc
            logger.warning(f"{full_name} failed: {type(exc).__name__}: {exc}")
        duration = time.perf_counter() - start

        result = ScenarioResult(
            name=name,
            passed=error is None and all(case.passed for case in ctx.cases),
            error_type=type(error).__name__ if error else None,
            error_message=str(error) if error else None,
            duration=duration,
            cases=ctx.cases,
        )
        logger.info(f"Finished {full_name}: {'ok' if result.passed else 'FAILED'} in {duration:.3f}s")
        return result

    def run(self, reverse: bool = False) -> SuiteReport:
        """
        Run every scenario.

        Args:
            reverse: Run scenarios in reverse registration order

        Raises:
            NoScenariosError: If no scenarios are registered
        """
        names = self.scenario_names()
        if not names:
            raise NoScenariosError(f"no scenarios found for {self.name}", suite_name=self.name)
        if reverse:
            names.reverse()
        return SuiteReport(name=self.name, scenarios=[self.run_scenario(n) for n in names])

    def pytest_params(self) -> List[Any]:
        """
        One ``pytest.param`` per scenario, for ``@pytest.mark.parametrize``.

        Raises:
            NoScenariosError: If no scenarios are registered
        """
        import pytest

        names = self.scenario_names()
        if not names:
            raise NoScenariosError(f"no scenarios found for {self.name}", suite_name=self.name)
        return [pytest.param(n, id=f"{self.name}/{n}") for n in names]
