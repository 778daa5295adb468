"""Deterministic daily arithmetic problems.

Problems are never stored. Each (day, learner) pair hashes to a 32-bit
seed that drives a mulberry32 stream, so the server can re-derive the
expected answer when a submission arrives.
"""

from __future__ import annotations

import math
from typing import Literal, Tuple

from pydantic import BaseModel

from .errors import InvalidArgumentError, UnsupportedProblemTypeError

PROBLEM_TYPES: Tuple[str, ...] = ("addition", "subtraction", "multiplication", "division")
DAILY_PROBLEM_TYPES: Tuple[str, ...] = ("addition", "subtraction")

_MASK_32 = 0xFFFFFFFF


class MathProblem(BaseModel):
    a: int
    b: int
    operator: Literal["+", "-"]
    answer: int

    @property
    def question(self) -> str:
        return f"{self.a} {self.operator} {self.b}"


class DailyMathProblems(BaseModel):
    addition: MathProblem
    subtraction: MathProblem

    def for_type(self, problem_type: str) -> MathProblem:
        validate_problem_type(problem_type)
        if problem_type == "addition":
            return self.addition
        if problem_type == "subtraction":
            return self.subtraction
        raise UnsupportedProblemTypeError(f"Question type not yet supported: {problem_type}")


def create_seed(day: str, learner_id: str) -> int:
    """31-multiplier hash over UTF-16 code units, folded to a signed 32-bit int, then abs()."""
    encoded = (day + learner_id).encode("utf-16-le")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + unit) & _MASK_32
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


class Mulberry32:
    """32-bit mixing generator; every call advances the state."""

    def __init__(self, seed: int) -> None:
        self._state = seed & _MASK_32

    def next_uint32(self) -> int:
        self._state = (self._state + 0x6D2B79F5) & _MASK_32
        t = self._state
        t = ((t ^ (t >> 15)) * (t | 1)) & _MASK_32
        t = (t ^ ((t + (((t ^ (t >> 7)) * (t | 61)) & _MASK_32)) & _MASK_32)) & _MASK_32
        return (t ^ (t >> 14)) & _MASK_32

    def random(self) -> float:
        return self.next_uint32() / 4294967296

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in ``[low, high]``."""
        return math.floor(self.random() * (high - low + 1)) + low


def generate_daily_problems(day: str, learner_id: str) -> DailyMathProblems:
    rng = Mulberry32(create_seed(day, learner_id))

    add_a = rng.randint(1, 98)
    add_b = rng.randint(1, 99 - add_a)

    sub_a = rng.randint(2, 100)
    sub_b = rng.randint(1, sub_a - 1)

    return DailyMathProblems(
        addition=MathProblem(a=add_a, b=add_b, operator="+", answer=add_a + add_b),
        subtraction=MathProblem(a=sub_a, b=sub_b, operator="-", answer=sub_a - sub_b),
    )


def validate_problem_type(problem_type: str) -> str:
    if problem_type not in PROBLEM_TYPES:
        raise InvalidArgumentError(f"Invalid question type: {problem_type!r}")
    return problem_type


__all__ = [
    "DAILY_PROBLEM_TYPES",
    "DailyMathProblems",
    "MathProblem",
    "Mulberry32",
    "PROBLEM_TYPES",
    "create_seed",
    "generate_daily_problems",
    "validate_problem_type",
]
