"""
TelephonyGateway のテスト
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

from ivr_relay.errors import ConfigurationError, ProviderRejected
from ivr_relay.telephony import TelephonyGateway


def make_gateway(client=None, **overrides):
    values = dict(
        account_sid="ACtest",
        auth_token="token",
        from_number="+15005550006",
        answer_url="https://relay.example.com/ivr",
        client=client,
    )
    values.update(overrides)
    return TelephonyGateway(**values)


class TestPlaceCall:

    def test_place_call_returns_sid(self):
        client = MagicMock()
        client.calls.create.return_value = SimpleNamespace(sid="CA123", status="queued")

        call = make_gateway(client).place_call("+15551234567")

        assert call.call_sid == "CA123"
        assert call.to == "+15551234567"
        assert call.status == "queued"
        client.calls.create.assert_called_once_with(
            to="+15551234567",
            from_="+15005550006",
            url="https://relay.example.com/ivr"
        )

    def test_provider_error_message_is_kept_verbatim(self):
        client = MagicMock()
        client.calls.create.side_effect = TwilioRestException(
            status=400,
            uri="/Calls",
            msg="The 'To' number 123 is not a valid phone number.",
            code=21211
        )

        with pytest.raises(ProviderRejected) as exc_info:
            make_gateway(client).place_call("123")

        assert exc_info.value.message == "The 'To' number 123 is not a valid phone number."
        assert exc_info.value.status_code == 400
        assert exc_info.value.code == 21211

    @pytest.mark.parametrize("missing", ["account_sid", "auth_token", "from_number"])
    def test_missing_credentials_fail_before_calling(self, missing):
        client = MagicMock()
        gateway = make_gateway(client, **{missing: ""})

        assert gateway.is_configured is False
        with pytest.raises(ConfigurationError):
            gateway.place_call("+15551234567")

        client.calls.create.assert_not_called()

    def test_client_created_lazily_once(self):
        with patch("ivr_relay.telephony.Client") as mock_client_cls:
            mock_client_cls.return_value.calls.create.return_value = SimpleNamespace(sid="CA1", status="queued")
            gateway = make_gateway()

            mock_client_cls.assert_not_called()
            gateway.place_call("+15551234567")
            gateway.place_call("+15551234568")

        mock_client_cls.assert_called_once_with("ACtest", "token")
