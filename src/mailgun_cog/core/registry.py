"""
Step registry: the surface the host runtime talks to.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type

from mailgun_cog.auth import AUTH_FIELDS, AuthField
from mailgun_cog.core.base_step import BaseStep, Outcome, RunStepResponse, Step, StepDefinition
from mailgun_cog.logging import logger
from mailgun_cog.steps.email_field_validation import EmailFieldValidationStep

COG_NAME = "mailgun"
COG_LABEL = "Mailgun"
COG_VERSION = "0.1.0"

#: Steps shipped with the cog, in matching order.
STEP_CLASSES: tuple[Type[BaseStep], ...] = (
    EmailFieldValidationStep,
)


@dataclass(frozen=True)
class CogManifest:
    name: str
    label: str
    version: str
    auth_fields: Sequence[AuthField]
    step_definitions: Sequence[StepDefinition]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "version": self.version,
            "authFields": [
                {"key": f.key, "type": f.type, "description": f.description}
                for f in self.auth_fields
            ],
            "stepDefinitions": [d.to_dict() for d in self.step_definitions],
        }


class StepRegistry:
    """
    Builds every step around one shared client and dispatches runs to them.
    """

    def __init__(self, client, step_classes: Optional[Sequence[Type[BaseStep]]] = None) -> None:
        self.client = client
        self._steps: Dict[str, BaseStep] = {}
        for cls in step_classes or STEP_CLASSES:
            step = cls(client)
            self._steps[step.get_id()] = step

    @property
    def steps(self) -> List[BaseStep]:
        return list(self._steps.values())

    def get(self, step_id: str) -> Optional[BaseStep]:
        return self._steps.get(step_id)

    def get_manifest(self) -> CogManifest:
        return CogManifest(
            name=COG_NAME,
            label=COG_LABEL,
            version=COG_VERSION,
            auth_fields=AUTH_FIELDS,
            step_definitions=[s.get_definition() for s in self.steps],
        )

    async def run_step(self, step_id: str, data: Optional[Mapping[str, Any]] = None) -> RunStepResponse:
        """
        Run a step by id with structured data.

        Unknown ids are reported as an ERROR outcome rather than raised.
        """
        step = self.get(step_id)
        if step is None:
            logger.warning(f"Unknown step requested: {step_id}")
            return _error_response("Unknown step %s", [step_id])

        logger.info(f"Running step {step_id}")
        response = await step.execute_step(Step(step_id=step_id, data=dict(data or {})))
        logger.info(f"Step {step_id} finished: {response.outcome.value}")
        return response

    def match(self, text: str) -> Optional[tuple[BaseStep, Dict[str, str]]]:
        """Return the first step whose expression matches ``text`` and its parsed data."""
        for step in self.steps:
            data = step.match(text)
            if data is not None:
                return step, data
        return None

    async def run_text(self, text: str) -> RunStepResponse:
        """Run the first step whose expression matches free text."""
        matched = self.match(text)
        if matched is None:
            logger.warning(f"No step matches: {text}")
            return _error_response("No step matches: %s", [text])

        step, data = matched
        return await self.run_step(step.get_id(), data)


def _error_response(message: str, args: Sequence[Any]) -> RunStepResponse:
    return RunStepResponse(Outcome.ERROR, message, list(args))
