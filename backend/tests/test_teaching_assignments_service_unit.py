"""
Unit tests for AssignmentsService and the simulated grader (no FastAPI).
"""
from __future__ import annotations

import random

import pytest

from backend.teaching.repo_memory import MemoryTeachingRepo
from backend.teaching.services.assignments import DEFAULT_POINTS, AssignmentsService
from backend.teaching.services.grading import GradingResult, SimulatedRunner


class _AlwaysPass:
    def run(self, code, *, test_cases=None):
        return GradingResult(passed=True, score=80, message="All tests passed!", execution_time_ms=200)


def _svc(runner=None) -> AssignmentsService:
    return AssignmentsService(MemoryTeachingRepo(), runner=runner or _AlwaysPass())


def _create(svc: AssignmentsService, **overrides):
    data = dict(title="  FizzBuzz ", description="Print numbers", difficulty="Medium", category="Loops")
    data.update(overrides)
    return svc.create_assignment(**data)


def test_create_assignment_trims_and_defaults_points():
    a = _create(_svc())
    assert a.title == "FizzBuzz"
    assert a.points == DEFAULT_POINTS
    assert a.examples is None and a.test_cases is None


@pytest.mark.parametrize(
    "field,value,code",
    [
        ("title", "", "invalid_title"),
        ("title", "x" * 201, "invalid_title"),
        ("description", None, "invalid_description"),
        ("difficulty", "easy", "invalid_difficulty"),
        ("category", "c" * 101, "invalid_category"),
        ("points", 0, "invalid_points"),
        ("points", True, "invalid_points"),
        ("points", "many", "invalid_points"),
    ],
)
def test_create_assignment_validation(field: str, value, code: str):
    with pytest.raises(ValueError) as exc:
        _create(_svc(), **{field: value})
    assert str(exc.value) == code


def test_json_fields_are_copied_not_shared():
    svc = _svc()
    cases = [{"input": 1, "expected": 2}]
    a = _create(svc, test_cases=cases)
    cases.append({"input": 3})
    assert svc.get_assignment(a.id).test_cases == [{"input": 1, "expected": 2}]


def test_get_assignment_unknown():
    with pytest.raises(LookupError):
        _svc().get_assignment("00000000-0000-0000-0000-000000000000")


def test_submit_solution_checks_code_before_lookup():
    svc = _svc()
    with pytest.raises(ValueError) as exc:
        svc.submit_solution(assignment_id="missing", code="   ", student_id="s1")
    assert str(exc.value) == "invalid_code"
    with pytest.raises(LookupError):
        svc.submit_solution(assignment_id="missing", code="print(1)", student_id="s1")


def test_submit_solution_records_grading_result():
    svc = _svc()
    a = _create(svc)
    sub = svc.submit_solution(assignment_id=a.id, code="print(1)", student_id="s1")
    assert sub.status == "passed"
    assert sub.score == 80
    assert sub.result == {"passed": True, "score": 80, "message": "All tests passed!", "executionTime": 200}
    assert [s.id for s in svc.list_submissions(a.id)] == [sub.id]


def test_list_submissions_unknown_assignment():
    with pytest.raises(LookupError):
        _svc().list_submissions("missing")


def test_simulated_runner_ranges_hold():
    runner = SimulatedRunner(rng=random.Random(1234))
    outcomes = [runner.run("code") for _ in range(200)]
    for o in outcomes:
        if o.passed:
            assert 70 <= o.score <= 99
            assert o.message == "All tests passed!"
        else:
            assert 0 <= o.score <= 59
            assert o.message == "Some tests failed"
        assert 100 <= o.execution_time_ms <= 1099
    assert any(o.passed for o in outcomes) and not all(o.passed for o in outcomes)


def test_simulated_runner_is_reproducible_with_seed():
    a = [SimulatedRunner(rng=random.Random(7)).run("x") for _ in range(1)]
    b = [SimulatedRunner(rng=random.Random(7)).run("x") for _ in range(1)]
    assert a == b


@pytest.mark.parametrize("probability,expected", [(1.0, True), (0.0, False)])
def test_simulated_runner_pass_probability_bounds(probability: float, expected: bool):
    runner = SimulatedRunner(rng=random.Random(0), pass_probability=probability)
    assert all(runner.run("x").passed is expected for _ in range(20))
