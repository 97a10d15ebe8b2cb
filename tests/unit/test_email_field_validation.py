"""
Unit tests for EmailFieldValidationStep.
"""

import pytest
import requests

from mailgun_cog.core.base_step import Outcome, Step, StepType, FieldType
from mailgun_cog.steps.email_field_validation import EmailFieldValidationStep
from tests.mocks.mailgun_mock import MockMailgunClient

M1 = "https://storage.mailgun.net/v3/domains/b.com/messages/M1"
M2 = "https://storage.mailgun.net/v3/domains/b.com/messages/M2"


def _step(client):
    return EmailFieldValidationStep(client)


def _run(client, data):
    return _step(client).execute_step(Step(step_id="EmailFieldValidationStep", data=data))


class TestDefinition:
    """Tests for the step definition handed to the host."""

    def test_definition(self):
        definition = _step(MockMailgunClient()).get_definition()

        assert definition.step_id == "EmailFieldValidationStep"
        assert definition.name == "Check the content of an email"
        assert definition.type is StepType.VALIDATION
        assert [f.field for f in definition.expected_fields] == [
            "email", "position", "field", "operator", "expectation",
        ]
        types = {f.field: f.type for f in definition.expected_fields}
        assert types["email"] is FieldType.EMAIL
        assert types["position"] is FieldType.NUMERIC
        assert types["expectation"] is FieldType.ANYSCALAR

    def test_expression_matches_sentence(self):
        data = _step(MockMailgunClient()).match(
            "the body-plain of the 2nd mailgun email for qa@b.com should not contain Unsubscribe"
        )

        assert data == {
            "field": "body-plain",
            "position": "2",
            "email": "qa@b.com",
            "operator": "should not contain",
            "expectation": "Unsubscribe",
        }

    def test_expression_rejects_unknown_field(self):
        step = _step(MockMailgunClient())
        assert step.match("the cc of the 1st mailgun email for qa@b.com should be x") is None


class TestExecuteStep:
    """Scenarios for a full step run against a mocked client."""

    @pytest.mark.asyncio
    async def test_pass_uses_reversed_inbox(self, inbox, stored_messages, check_data):
        """Position 1 resolves to the oldest raw item (M2) after reversal."""
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.PASSED
        assert response.message == 'Check on email subject passed: subject should contain "Hi"'
        assert client.inbox_calls == ["a@b.com"]
        assert client.message_calls == [M2]

    @pytest.mark.asyncio
    async def test_fail_includes_actual_value(self, inbox, stored_messages, check_data):
        stored_messages[M2]["subject"] = "Hello"
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.FAILED
        assert "Hello" in response.message
        assert response.message_args[-1] == "Hello"

    @pytest.mark.asyncio
    async def test_position_two_is_newest(self, inbox, stored_messages, check_data):
        check_data.update(position=2, operator="should be", expectation="Your receipt")
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.PASSED
        assert client.message_calls == [M1]

    @pytest.mark.asyncio
    async def test_domain_mismatch_skips_inbox(self, inbox, check_data):
        check_data["email"] = "a@c.com"
        client = MockMailgunClient(domain="b.com", inbox=inbox)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "Can't check inbox for a@c.com: email domain doesn't match b.com"
        assert client.inbox_calls == []

    @pytest.mark.asyncio
    async def test_email_without_at_is_domain_mismatch(self, check_data):
        check_data["email"] = "not-an-address"
        client = MockMailgunClient()

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert "email domain doesn't match" in response.message
        assert client.inbox_calls == []

    @pytest.mark.asyncio
    async def test_upstream_message_surfaced_verbatim(self, check_data):
        client = MockMailgunClient(inbox={"message": "rate limited"})

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "rate limited"

    @pytest.mark.asyncio
    async def test_missing_inbox(self, check_data):
        client = MockMailgunClient(inbox=None)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "Cannot fetch inbox for: a@b.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [3, 10, -1])
    async def test_position_out_of_range(self, inbox, stored_messages, check_data, position):
        check_data["position"] = position
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == f"Cannot fetch email in position: {position}"
        assert client.message_calls == []

    @pytest.mark.asyncio
    async def test_missing_message(self, inbox, check_data):
        client = MockMailgunClient(inbox=inbox, messages={})

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "Cannot fetch email in position: 1"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error(self, check_data):
        client = MockMailgunClient(inbox_error=requests.ConnectionError("connection refused"))

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "There was an error retrieving email messages: connection refused"

    @pytest.mark.asyncio
    async def test_malformed_inbox_becomes_error(self, check_data):
        client = MockMailgunClient(inbox={"paging": {}})

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message.startswith("There was an error retrieving email messages:")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [None, "abc", 0, "1st"])
    async def test_position_defaults_to_one(self, inbox, stored_messages, check_data, position):
        check_data["position"] = position
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.PASSED
        assert client.message_calls == [M2]

    @pytest.mark.asyncio
    async def test_missing_field_fails(self, inbox, stored_messages, check_data):
        del stored_messages[M2]["subject"]
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.FAILED
        assert response.message.endswith("but it was actually not present")

    @pytest.mark.asyncio
    async def test_unknown_operator_fails(self, inbox, stored_messages, check_data):
        check_data["operator"] = "should start with"
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.FAILED

    @pytest.mark.asyncio
    async def test_from_field(self, inbox, stored_messages, check_data):
        check_data.update(field="from", expectation="hello@app.com")
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.PASSED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operator", ["should contain", "should not contain", "should be"])
    async def test_absent_expectation_is_error(self, inbox, stored_messages, check_data, operator):
        del check_data["expectation"]
        check_data["operator"] = operator
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message == "There was an error retrieving email messages: expectation is required"

    @pytest.mark.asyncio
    async def test_none_expectation_is_error(self, inbox, stored_messages, check_data):
        check_data.update(operator="should not contain", expectation=None)
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR

    @pytest.mark.asyncio
    async def test_empty_message_fails_as_not_present(self, inbox, stored_messages, check_data):
        stored_messages[M2] = {}
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.FAILED
        assert response.message.endswith("but it was actually not present")
        assert client.message_calls == [M2]

    @pytest.mark.asyncio
    async def test_empty_inbox_payload_is_error(self, check_data):
        client = MockMailgunClient(inbox={})

        response = await _run(client, check_data)

        assert response.outcome is Outcome.ERROR
        assert response.message.startswith("There was an error retrieving email messages:")
        assert client.message_calls == []

    @pytest.mark.asyncio
    async def test_numeric_field_value(self, inbox, stored_messages, check_data):
        stored_messages[M2]["subject"] = 42
        check_data.update(operator="should be", expectation="42")
        client = MockMailgunClient(inbox=inbox, messages=stored_messages)

        response = await _run(client, check_data)

        assert response.outcome is Outcome.PASSED
        assert response.message == 'Check on email subject passed: subject should be "42"'
