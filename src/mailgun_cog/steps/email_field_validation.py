"""
Check the content of a stored Mailgun email.

The inbox is the recipient's list of ``stored`` events. Position N is taken
from the inbox listing *after* reversing it, so position 1 is the last item
Mailgun returned.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping

from mailgun_cog.core.base_step import (
    BaseStep,
    Field,
    FieldType,
    RunStepResponse,
    Step,
    StepType,
)
from mailgun_cog.core.errors import (
    DomainMismatchError,
    InboxUnavailableError,
    MessageUnavailableError,
    PositionOutOfRangeError,
    StepError,
    UpstreamError,
)
from mailgun_cog.logging import logger
from mailgun_cog.utils.validation import (
    email_domain,
    parse_position,
    validate_email_address,
    validate_field_name,
    validate_operator,
)

#: Message fields a check can read.
EMAIL_FIELDS: tuple[str, ...] = ("subject", "body-html", "body-plain", "from")

OPERATORS: tuple[str, ...] = ("should contain", "should not contain", "should be")


class _Missing:
    """Marker for a field the message does not carry."""

    def __repr__(self) -> str:
        return "MISSING"

    def __str__(self) -> str:
        return "not present"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def _as_text(value: Any) -> str:
    """String form of a scalar as the host renders it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def lookup_field(message: Mapping[str, Any], field: str) -> Any:
    """
    Read one of :data:`EMAIL_FIELDS` from a stored message.

    Returns:
        The field value, or :data:`MISSING` when the name is not a known
        field or the message lacks it
    """
    if field not in EMAIL_FIELDS or field not in message:
        return MISSING
    value = message[field]
    return MISSING if value is None else value


def compare(expected: Any, actual: Any, operator: str) -> bool:
    """
    Evaluate ``actual <operator> expected``.

    ``should be`` is exact and case-sensitive; ``should contain`` and
    ``should not contain`` ignore case. A missing actual value or an
    unknown operator never passes.

    Raises:
        ValueError: If there is no expectation to compare against
    """
    if expected is None:
        raise ValueError("expectation is required")
    if actual is MISSING or actual is None:
        return False

    expected_text = _as_text(expected)
    actual_text = _as_text(actual)

    if operator == "should be":
        return expected_text == actual_text
    if operator == "should contain":
        return expected_text.lower() in actual_text.lower()
    if operator == "should not contain":
        return expected_text.lower() not in actual_text.lower()

    return False


@dataclass(frozen=True)
class EmailFieldCheck:
    """Parsed input of one email field check."""

    email: Any
    position: int
    field: Any
    operator: Any
    expectation: Any

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "EmailFieldCheck":
        return cls(
            email=data.get("email"),
            position=parse_position(data.get("position")),
            field=data.get("field"),
            operator=data.get("operator"),
            expectation=data.get("expectation"),
        )


class EmailFieldValidationStep(BaseStep):
    """Assert on the subject, body or sender of the nth stored email for an address."""

    step_name = "Check the content of an email"
    step_expression = (
        r"the (?P<field>subject|body-html|body-plain|from) of the (?P<position>\d+)(?:st|nd|rd|th)? "
        r"mailgun email for (?P<email>.+) (?P<operator>should contain|should not contain|should be) "
        r"(?P<expectation>.+)"
    )
    step_type = StepType.VALIDATION
    expected_fields = (
        Field("email", FieldType.EMAIL, "The inbox's email address"),
        Field("position", FieldType.NUMERIC, "The nth message to check from the email's inbox"),
        Field("field", FieldType.STRING, "Field name to check"),
        Field(
            "operator",
            FieldType.STRING,
            "The operator to use when performing the validation. "
            "Current supported values are: should contain, should not contain, and should be",
        ),
        Field("expectation", FieldType.ANYSCALAR, "Expected field value"),
    )

    async def execute_step(self, step: Step) -> RunStepResponse:
        check = EmailFieldCheck.from_data(step.data or {})

        # Warn only; unknown fields and operators end in FAILED below
        validate_email_address(check.email)
        validate_field_name(check.field, EMAIL_FIELDS)
        validate_operator(check.operator, OPERATORS)

        try:
            message = await self._fetch_message(check)
        except StepError as e:
            logger.info(f"{self.get_id()} errored: {e}")
            return self.error(e.message_format, e.message_args)
        except Exception as e:
            logger.exception(f"{self.get_id()} failed while fetching email: {e}")
            return self.error("There was an error retrieving email messages: %s", [str(e)])

        logger.debug(f"Comparing {check.field}: {check.operator} {check.expectation!r}")
        try:
            actual = lookup_field(message, check.field)
            matched = compare(check.expectation, actual, check.operator)
        except Exception as e:
            logger.exception(f"{self.get_id()} comparison failed: {e}")
            return self.error("There was an error retrieving email messages: %s", [str(e)])

        if matched:
            return self.pass_('Check on email %s passed: %s %s "%s"', [
                check.field,
                check.field,
                check.operator,
                check.expectation,
            ])
        return self.fail('Check on email %s failed: %s %s "%s", but it was actually %s', [
            check.field,
            check.field,
            check.operator,
            check.expectation,
            actual,
        ])

    async def _fetch_message(self, check: EmailFieldCheck) -> Mapping[str, Any]:
        """
        Resolve the stored message a check targets.

        Raises:
            StepError: For every expected way the lookup can come up empty
        """
        auth_domain = str(self.client.auth.get("domain"))
        if email_domain(check.email) != auth_domain:
            raise DomainMismatchError(check.email, auth_domain)

        inbox = await self.client.get_inbox(check.email)
        if inbox is None:
            raise InboxUnavailableError(check.email)
        if inbox.get("message"):
            raise UpstreamError(inbox["message"])

        items = list(inbox["items"])
        if check.position < 1 or check.position > len(items):
            raise PositionOutOfRangeError(check.position)

        items.reverse()
        storage_url = items[check.position - 1]["storage"]["url"]
        message = await self.client.get_email_by_storage_url(storage_url)
        if message is None:
            raise MessageUnavailableError(check.position)

        return message
