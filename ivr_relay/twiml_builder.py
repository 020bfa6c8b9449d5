"""
TwiML Builder モジュール (TwiML Builder Module)

Twilio の通話フローを制御する TwiML (call-control XML) を構築します。
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from twilio.twiml.voice_response import VoiceResponse

if TYPE_CHECKING:
    from ivr_relay.config import Config


@dataclass
class SayAction:
    """
    <Say> 要素

    発信者にテキストを読み上げます。

    Attributes:
        text: 読み上げるテキスト (必須)
    """
    text: str

    def apply(self, response: VoiceResponse) -> None:
        """VoiceResponse に <Say> を追加"""
        response.say(self.text)


@dataclass
class RecordAction:
    """
    <Record> 要素

    発信者の音声を録音し、完了後に action へ RecordingUrl を POST させます。

    Attributes:
        action: 録音完了時のコールバックパス (必須)
        timeout: 無音で録音を終了するまでの秒数 (デフォルト: 5)
        maxLength: 最大録音時間（秒） (デフォルト: 10)
    """
    action: str
    timeout: int = 5
    maxLength: int = 10

    def apply(self, response: VoiceResponse) -> None:
        """VoiceResponse に <Record> を追加"""
        response.record(timeout=self.timeout, max_length=self.maxLength, action=self.action)


@dataclass
class PlayAction:
    """
    <Play> 要素

    Attributes:
        url: 再生する音声の URL (必須)
    """
    url: str

    def apply(self, response: VoiceResponse) -> None:
        response.play(self.url)


class TwiMLBuilder:
    """
    TwiML を構築するビルダークラス

    着信時の挨拶と録音、応答音声の再生、エラー時の謝罪メッセージを生成します。

    Attributes:
        config: アプリケーション設定オブジェクト
    """

    def __init__(self, config: 'Config'):
        self.config = config

    def build_greeting(self) -> str:
        """
        着信時の TwiML を構築

        挨拶 (<Say>) の後に録音 (<Record>) を行い、
        録音完了後は処理エンドポイントへ遷移させます。

        Returns:
            TwiML 文字列
        """
        response = VoiceResponse()
        SayAction(text=self.config.greeting_message).apply(response)
        RecordAction(
            action=self.config.process_path,
            timeout=self.config.record_timeout,
            maxLength=self.config.record_max_length
        ).apply(response)
        return str(response)

    def build_play(self, url: str) -> str:
        """応答音声を再生する TwiML を構築"""
        response = VoiceResponse()
        PlayAction(url=url).apply(response)
        return str(response)

    def build_apology(self, message: str) -> str:
        """
        謝罪メッセージを読み上げて通話を終了する TwiML を構築

        Args:
            message: 読み上げるメッセージ

        Returns:
            TwiML 文字列
        """
        response = VoiceResponse()
        SayAction(text=message).apply(response)
        response.hangup()
        return str(response)

    def build_error(self) -> str:
        return self.build_apology(self.config.error_message)

    def build_missing_recording(self) -> str:
        return self.build_apology(self.config.missing_recording_message)

    def build_empty_transcript(self) -> str:
        return self.build_apology(self.config.empty_transcript_message)
