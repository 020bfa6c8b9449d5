"""
電話ゲートウェイモジュール (Telephony Gateway Module)

Twilio REST API で発信通話を作成します。
"""

from typing import Optional

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.rest import Client

from .errors import ConfigurationError, ProviderRejected
from .models import OutboundCall


class TelephonyGateway:
    """
    Twilio 発信ゲートウェイ

    Twilio クライアントは最初の発信時に一度だけ生成します。

    Attributes:
        account_sid: Twilio アカウント SID
        auth_token: Twilio 認証トークン
        from_number: 発信元番号
        answer_url: 相手が応答したときに Twilio が取得する TwiML の URL
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        answer_url: str,
        client: Optional[Client] = None
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.answer_url = answer_url
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _get_client(self) -> Client:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def place_call(self, to: str) -> OutboundCall:
        """
        発信通話を作成

        Args:
            to: 発信先番号 (E.164)

        Returns:
            OutboundCall: 作成された通話

        Raises:
            ConfigurationError: 認証情報が未設定の場合
            ProviderRejected: Twilio が発信を拒否した場合（メッセージはそのまま保持）
        """
        if not self.is_configured:
            raise ConfigurationError("Twilio credentials missing")

        try:
            call = self._get_client().calls.create(
                to=to,
                from_=self.from_number,
                url=self.answer_url
            )
        except TwilioRestException as e:
            raise ProviderRejected(e.msg, status_code=e.status, code=e.code) from e
        except TwilioException as e:
            raise ProviderRejected(str(e)) from e

        return OutboundCall(call_sid=call.sid, to=to, status=getattr(call, "status", None))
