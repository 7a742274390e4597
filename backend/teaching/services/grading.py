"""Simulated grading of submitted solutions.

No code is executed. The runner draws a pass/fail outcome and a score from an
injectable random source so tests can pin the outcome with a seed or a fake.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import random
from typing import Protocol

PASS_PROBABILITY = 0.7


@dataclass(frozen=True)
class GradingResult:
    passed: bool
    score: int
    message: str
    execution_time_ms: int

    def as_dict(self) -> dict:
        return {
            "passed": self.passed,
            "score": self.score,
            "message": self.message,
            "executionTime": self.execution_time_ms,
        }


class SolutionRunner(Protocol):
    def run(self, code: str, *, test_cases: object = None) -> GradingResult:
        ...


@dataclass
class SimulatedRunner:
    rng: random.Random = field(default_factory=random.Random)
    pass_probability: float = PASS_PROBABILITY

    def run(self, code: str, *, test_cases: object = None) -> GradingResult:
        passed = self.rng.random() < self.pass_probability
        if passed:
            score = self.rng.randint(70, 99)
        else:
            score = self.rng.randint(0, 59)
        return GradingResult(
            passed=passed,
            score=score,
            message="All tests passed!" if passed else "Some tests failed",
            execution_time_ms=self.rng.randint(100, 1099),
        )
