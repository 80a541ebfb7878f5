"""
Unit tests for the WhatsApp fallback dispatcher.
"""

import pytest
from unittest.mock import Mock

from clawdbot_notify.notifications.credentials import CredentialResolver
from clawdbot_notify.notifications.dispatcher import WhatsAppDispatcher, EXHAUSTED_MESSAGE
from clawdbot_notify.notifications.models import (
    NotificationRequest, DeliveryResult, DeliveryFailure, FailureKind, DispatchState
)


TWILIO_ENV = {
    'TWILIO_ACCOUNT_SID': 'AC123',
    'TWILIO_AUTH_TOKEN': 'test_token',
    'NOTIFY_WHATSAPP_TO': '+15551234567',
}

CALLMEBOT_ENV = {
    'CALLMEBOT_PHONE': '+15557654321',
    'CALLMEBOT_APIKEY': '123456',
}


def rejected(provider, status_code=401):
    return DeliveryFailure(
        kind=FailureKind.PROVIDER_REJECTED,
        message=f"{provider} error: {status_code} - denied",
        provider_name=provider,
        status_code=status_code,
        response_body='denied'
    )


@pytest.fixture
def twilio_sender():
    sender = Mock()
    sender.send.return_value = DeliveryResult(provider_name='twilio', status_code=201)
    return sender


@pytest.fixture
def callmebot_sender():
    sender = Mock()
    sender.send.return_value = DeliveryResult(provider_name='callmebot', status_code=200)
    return sender


@pytest.fixture
def message():
    return NotificationRequest.whatsapp("Task complete")


def make_dispatcher(config, twilio_sender, callmebot_sender):
    return WhatsAppDispatcher(
        resolver=CredentialResolver(config),
        twilio_sender=twilio_sender,
        callmebot_sender=callmebot_sender
    )


class TestFallbackChain:
    """Test ordered provider fallback."""

    def test_twilio_success_skips_callmebot(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message)

        assert outcome.provider_name == 'twilio'
        assert twilio_sender.send.call_count == 1
        assert callmebot_sender.send.call_count == 0

    def test_twilio_rejection_falls_back_to_callmebot(self, twilio_sender, callmebot_sender, message):
        twilio_sender.send.return_value = rejected('twilio', 401)
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message)

        assert isinstance(outcome, DeliveryResult)
        assert outcome.provider_name == 'callmebot'
        callmebot_sender.send.assert_called_once()

    def test_twilio_transport_error_falls_back(self, twilio_sender, callmebot_sender, message):
        twilio_sender.send.return_value = DeliveryFailure(
            kind=FailureKind.TRANSPORT_ERROR, message="timed out", provider_name='twilio'
        )
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        assert dispatcher.dispatch(message).provider_name == 'callmebot'

    def test_recipient_override_completes_twilio(self, twilio_sender, callmebot_sender):
        config = {k: v for k, v in TWILIO_ENV.items() if k != 'NOTIFY_WHATSAPP_TO'}
        dispatcher = make_dispatcher({**config, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)
        request = NotificationRequest(body="hi", recipient_override=" +15559998888 ")

        run = dispatcher.run(request)

        assert run.attempted == ['twilio']
        credentials = twilio_sender.send.call_args[0][1]
        assert credentials['to_number'] == '+15559998888'
        callmebot_sender.send.assert_not_called()

    def test_blank_recipient_override_does_not_complete_twilio(self, twilio_sender, callmebot_sender):
        config = {k: v for k, v in TWILIO_ENV.items() if k != 'NOTIFY_WHATSAPP_TO'}
        dispatcher = make_dispatcher({**config, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        run = dispatcher.run(NotificationRequest(body="hi", recipient_override="   "))

        assert run.attempted == ['callmebot']
        twilio_sender.send.assert_not_called()

    def test_unconfigured_twilio_is_skipped(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher(CALLMEBOT_ENV, twilio_sender, callmebot_sender)

        run = dispatcher.run(message)

        assert run.outcome.provider_name == 'callmebot'
        assert run.attempted == ['callmebot']
        twilio_sender.send.assert_not_called()

    def test_nothing_configured(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher({}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message)

        assert isinstance(outcome, DeliveryFailure)
        assert outcome.kind == FailureKind.PROVIDERS_EXHAUSTED
        assert outcome.message == EXHAUSTED_MESSAGE
        twilio_sender.send.assert_not_called()
        callmebot_sender.send.assert_not_called()

    def test_all_providers_fail(self, twilio_sender, callmebot_sender, message):
        twilio_sender.send.return_value = rejected('twilio', 500)
        callmebot_sender.send.return_value = rejected('callmebot', 403)
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message)

        assert outcome.kind == FailureKind.PROVIDERS_EXHAUSTED
        assert outcome.message == EXHAUSTED_MESSAGE
        assert twilio_sender.send.call_count == 1
        assert callmebot_sender.send.call_count == 1

    def test_senders_receive_resolved_credentials(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher(TWILIO_ENV, twilio_sender, callmebot_sender)

        dispatcher.dispatch(message)

        request, credentials = twilio_sender.send.call_args[0]
        assert request is message
        assert credentials['account_sid'] == 'AC123'


class TestDispatchRun:
    """Test the state record of a dispatch."""

    def test_success_transitions(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        run = dispatcher.run(message)

        assert run.state == DispatchState.SUCCEEDED
        assert run.transitions == [
            (DispatchState.NOT_ATTEMPTED, DispatchState.TRYING_TWILIO),
            (DispatchState.TRYING_TWILIO, DispatchState.SUCCEEDED),
        ]

    def test_fallback_transitions(self, twilio_sender, callmebot_sender, message):
        twilio_sender.send.return_value = rejected('twilio')
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        run = dispatcher.run(message)

        assert run.attempted == ['twilio', 'callmebot']
        assert run.transitions == [
            (DispatchState.NOT_ATTEMPTED, DispatchState.TRYING_TWILIO),
            (DispatchState.TRYING_TWILIO, DispatchState.TRYING_CALLMEBOT),
            (DispatchState.TRYING_CALLMEBOT, DispatchState.SUCCEEDED),
        ]

    def test_nothing_attempted_transitions(self, twilio_sender, callmebot_sender, message):
        run = make_dispatcher({}, twilio_sender, callmebot_sender).run(message)

        assert run.state == DispatchState.EXHAUSTED_FAILURE
        assert run.attempted == []
        assert run.transitions == [(DispatchState.NOT_ATTEMPTED, DispatchState.EXHAUSTED_FAILURE)]

    def test_runs_are_independent(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher(TWILIO_ENV, twilio_sender, callmebot_sender)

        first = dispatcher.run(message)
        second = dispatcher.run(message)

        assert first is not second
        assert len(second.transitions) == 2


class TestProviderOverride:
    """Test forcing a single provider."""

    def test_forced_callmebot_skips_twilio(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message, provider='callmebot')

        assert outcome.provider_name == 'callmebot'
        twilio_sender.send.assert_not_called()

    def test_forced_provider_failure_has_no_fallback(self, twilio_sender, callmebot_sender, message):
        twilio_sender.send.return_value = rejected('twilio', 400)
        dispatcher = make_dispatcher({**TWILIO_ENV, **CALLMEBOT_ENV}, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message, provider='twilio')

        assert outcome.kind == FailureKind.PROVIDER_REJECTED
        assert outcome.status_code == 400
        callmebot_sender.send.assert_not_called()

    def test_forced_twilio_with_recipient_override(self, twilio_sender, callmebot_sender):
        config = {k: v for k, v in TWILIO_ENV.items() if k != 'NOTIFY_WHATSAPP_TO'}
        dispatcher = make_dispatcher(config, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(
            NotificationRequest(body="hi", recipient_override="+15559998888"), provider='twilio'
        )

        assert outcome.provider_name == 'twilio'

    def test_forced_unconfigured_provider(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher(CALLMEBOT_ENV, twilio_sender, callmebot_sender)

        outcome = dispatcher.dispatch(message, provider='twilio')

        assert outcome.kind == FailureKind.CONFIG_MISSING
        assert outcome.field_name == 'account_sid'
        twilio_sender.send.assert_not_called()
        callmebot_sender.send.assert_not_called()

    def test_provider_name_is_case_insensitive(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher(CALLMEBOT_ENV, twilio_sender, callmebot_sender)

        assert dispatcher.dispatch(message, provider='CallMeBot').provider_name == 'callmebot'

    def test_unknown_provider(self, twilio_sender, callmebot_sender, message):
        dispatcher = make_dispatcher({}, twilio_sender, callmebot_sender)

        with pytest.raises(ValueError, match="Unknown WhatsApp provider"):
            dispatcher.dispatch(message, provider='telegram')

    def test_provider_names(self, twilio_sender, callmebot_sender):
        dispatcher = make_dispatcher({}, twilio_sender, callmebot_sender)

        assert dispatcher.provider_names == ('twilio', 'callmebot')
