"""
Step contract shared by every step in the cog.

A step declares how the host should present and parse it (name, matching
expression, expected fields) and turns one invocation into a
:class:`RunStepResponse`.
"""

from __future__ import annotations
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence


class FieldType(str, Enum):
    """Value types the host uses to parse and validate step fields."""
    STRING = "STRING"
    EMAIL = "EMAIL"
    NUMERIC = "NUMERIC"
    ANYSCALAR = "ANYSCALAR"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    URL = "URL"


class FieldOptionality(str, Enum):
    REQUIRED = "REQUIRED"
    OPTIONAL = "OPTIONAL"


class StepType(str, Enum):
    ACTION = "ACTION"
    VALIDATION = "VALIDATION"


class Outcome(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Field:
    """One expected input of a step."""

    field: str
    type: FieldType
    description: str
    optionality: FieldOptionality = FieldOptionality.REQUIRED

    def to_dict(self) -> Dict[str, str]:
        return {
            "key": self.field,
            "type": self.type.value,
            "description": self.description,
            "optionality": self.optionality.value,
        }


@dataclass(frozen=True)
class StepDefinition:
    """What the host needs to list, match and validate a step."""

    step_id: str
    name: str
    expression: str
    type: StepType
    expected_fields: Sequence[Field] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stepId": self.step_id,
            "name": self.name,
            "expression": self.expression,
            "type": self.type.value,
            "expectedFields": [f.to_dict() for f in self.expected_fields],
        }


@dataclass(frozen=True)
class Step:
    """A single invocation sent by the host: the step id and its input data."""

    step_id: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RunStepResponse:
    """
    Outcome of a step run.

    ``message_format`` is a printf-style string; ``message`` renders it with
    ``message_args``. A format without arguments is returned as-is.
    """

    outcome: Outcome
    message_format: str
    message_args: List[Any] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.message_args:
            return self.message_format
        return self.message_format % tuple(self.message_args)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "messageFormat": self.message_format,
            "messageArgs": [_arg_value(a) for a in self.message_args],
            "message": self.message,
        }


def _arg_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class BaseStep(ABC):
    """
    Base class for steps.

    Subclasses set the class attributes below and implement
    :meth:`execute_step`. The authenticated client is injected by whoever
    builds the step (the registry, or a test).
    """

    step_name: str = ""
    step_expression: str = ""
    step_type: StepType = StepType.ACTION
    expected_fields: Sequence[Field] = ()

    def __init__(self, client) -> None:
        self.client = client
        self._pattern = re.compile(self.step_expression) if self.step_expression else None

    @classmethod
    def get_id(cls) -> str:
        return cls.__name__

    def get_definition(self) -> StepDefinition:
        return StepDefinition(
            step_id=self.get_id(),
            name=self.step_name,
            expression=self.step_expression,
            type=self.step_type,
            expected_fields=tuple(self.expected_fields),
        )

    def match(self, text: str) -> Optional[Dict[str, str]]:
        """
        Parse free text into step data using the step expression.

        Returns:
            Named groups of a full match (whitespace-stripped), or None
        """
        if self._pattern is None:
            return None
        m = self._pattern.fullmatch(text.strip())
        if not m:
            return None
        return {k: v.strip() for k, v in m.groupdict().items() if v is not None}

    def pass_(self, message: str, args: Optional[Sequence[Any]] = None) -> RunStepResponse:
        return RunStepResponse(Outcome.PASSED, message, list(args or []))

    def fail(self, message: str, args: Optional[Sequence[Any]] = None) -> RunStepResponse:
        return RunStepResponse(Outcome.FAILED, message, list(args or []))

    def error(self, message: str, args: Optional[Sequence[Any]] = None) -> RunStepResponse:
        return RunStepResponse(Outcome.ERROR, message, list(args or []))

    @abstractmethod
    async def execute_step(self, step: Step) -> RunStepResponse:
        """Run the step once and report its outcome."""
        raise NotImplementedError
