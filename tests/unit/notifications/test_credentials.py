"""
Unit tests for the credential resolver.
"""

import pytest
from unittest.mock import patch

from clawdbot_notify.notifications.credentials import (
    CredentialResolver, SENDGRID, TWILIO, CALLMEBOT, mask_secret
)
from clawdbot_notify.notifications.models import ProviderCredentials, DeliveryFailure, FailureKind


@pytest.fixture
def full_config():
    return {
        'SENDGRID_API_KEY': 'SG.test_key',
        'NOTIFY_EMAIL_TO': 'owner@example.com',
        'NOTIFY_EMAIL_FROM': 'bot@example.com',
        'TWILIO_ACCOUNT_SID': 'AC123',
        'TWILIO_AUTH_TOKEN': 'secret_token',
        'NOTIFY_WHATSAPP_TO': '+15551234567',
        'CALLMEBOT_PHONE': '+15557654321',
        'CALLMEBOT_APIKEY': '123456',
    }


class TestCredentialResolver:
    """Test credential lookup and completeness."""

    def test_resolve_complete_credentials(self, full_config):
        resolver = CredentialResolver(full_config)

        credentials = resolver.resolve(TWILIO)

        assert isinstance(credentials, ProviderCredentials)
        assert credentials.provider == 'twilio'
        assert credentials['account_sid'] == 'AC123'
        assert credentials['auth_token'] == 'secret_token'
        assert credentials['to_number'] == '+15551234567'
        assert credentials.get('from_number') is None

    def test_optional_field_included_when_present(self, full_config):
        credentials = CredentialResolver(full_config).resolve(SENDGRID)

        assert credentials['from_email'] == 'bot@example.com'

    def test_missing_field_reports_config_missing(self, full_config):
        del full_config['TWILIO_AUTH_TOKEN']

        failure = CredentialResolver(full_config).resolve(TWILIO)

        assert isinstance(failure, DeliveryFailure)
        assert failure.kind == FailureKind.CONFIG_MISSING
        assert failure.provider_name == 'twilio'
        assert failure.field_name == 'auth_token'
        assert 'TWILIO_AUTH_TOKEN' in failure.message

    def test_key_fields_reported_before_recipient_fields(self):
        failure = CredentialResolver({}).resolve(SENDGRID)

        assert failure.field_name == 'api_key'

        failure = CredentialResolver({'SENDGRID_API_KEY': 'key'}).resolve(SENDGRID)

        assert failure.field_name == 'to_email'

    def test_callmebot_api_key_checked_before_phone(self):
        failure = CredentialResolver({}).resolve(CALLMEBOT)

        assert failure.field_name == 'api_key'
        assert 'CALLMEBOT_APIKEY' in failure.message

    def test_blank_values_count_as_missing(self, full_config):
        full_config['CALLMEBOT_APIKEY'] = '   '

        failure = CredentialResolver(full_config).resolve(CALLMEBOT)

        assert failure.kind == FailureKind.CONFIG_MISSING
        assert failure.field_name == 'api_key'

    def test_none_values_count_as_missing(self, full_config):
        full_config['NOTIFY_EMAIL_TO'] = None

        assert not CredentialResolver(full_config).is_complete(SENDGRID)

    def test_override_takes_precedence(self, full_config):
        credentials = CredentialResolver(full_config).resolve(
            SENDGRID, overrides={'to_email': 'someone@example.com'}
        )

        assert credentials['to_email'] == 'someone@example.com'

    def test_override_fills_missing_recipient(self):
        resolver = CredentialResolver({'SENDGRID_API_KEY': 'key'})

        credentials = resolver.resolve(SENDGRID, overrides={'to_email': 'someone@example.com'})

        assert isinstance(credentials, ProviderCredentials)

    def test_none_override_falls_back_to_config(self, full_config):
        credentials = CredentialResolver(full_config).resolve(SENDGRID, overrides={'to_email': None})

        assert credentials['to_email'] == 'owner@example.com'

    def test_providers_evaluated_independently(self):
        resolver = CredentialResolver({
            'CALLMEBOT_PHONE': '+15557654321',
            'CALLMEBOT_APIKEY': '123456',
            'TWILIO_ACCOUNT_SID': 'AC123',
        })

        assert resolver.status() == {
            'sendgrid': False,
            'twilio': False,
            'callmebot': True,
        }

    def test_defaults_to_process_environment(self):
        with patch.dict('os.environ', {'CALLMEBOT_PHONE': '+1555', 'CALLMEBOT_APIKEY': 'k'}, clear=True):
            assert CredentialResolver().is_complete(CALLMEBOT)

    def test_resolve_does_not_modify_config(self, full_config):
        snapshot = dict(full_config)

        CredentialResolver(full_config).resolve(SENDGRID, overrides={'to_email': 'x@example.com'})

        assert full_config == snapshot


class TestProviderCredentials:
    """Test the credentials bag."""

    def test_first_missing_in_given_order(self):
        credentials = ProviderCredentials('twilio', {'auth_token': 'tok'})

        assert credentials.first_missing(('account_sid', 'auth_token', 'to_number')) == 'account_sid'
        assert credentials.first_missing(('auth_token',)) is None

    def test_values_are_read_only(self):
        values = {'phone': '+1555', 'api_key': 'k'}
        credentials = ProviderCredentials('callmebot', values)

        values['phone'] = '+1999'

        assert credentials['phone'] == '+1555'
        with pytest.raises(TypeError):
            credentials.values['phone'] = '+1999'

    def test_getitem_raises_for_missing(self):
        credentials = ProviderCredentials('callmebot', {'phone': ''})

        with pytest.raises(KeyError):
            credentials['phone']


def test_mask_secret():
    assert mask_secret('secret_token') == '********oken'
    assert mask_secret('abc') == '***'
    assert mask_secret(None) == '<unset>'
