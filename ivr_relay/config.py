"""
設定管理モジュール (Configuration Management Module)

環境変数からアプリケーション設定を読み込み、検証を行います。
認証情報の欠落では起動を止めず、実際に使用されたリクエストで失敗させます。
"""

from dataclasses import dataclass, field
from typing import Dict, List
import os

from .errors import ConfigurationError


def _int_env(name: str, default: int) -> int:
    """整数の環境変数を読み込む"""
    raw = os.environ.get(name, "")
    if raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} は整数である必要があります: {raw}")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "")
    if raw == "":
        return default
    return raw.lower() in ("true", "1", "yes")


@dataclass
class Config:
    """
    アプリケーション設定

    起動時に一度だけ構築し、パイプラインのコンストラクタへ明示的に渡します。
    実行中に変更されることはありません。
    """
    # Twilio 認証情報
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str

    # OpenAI 設定
    openai_api_key: str
    openai_transcription_model: str
    openai_chat_model: str

    # ElevenLabs 設定
    eleven_api_key: str
    eleven_voice_id: str
    eleven_api_base: str

    # 外部から到達可能なベース URL
    public_base_url: str

    # 音声メッセージ
    greeting_message: str
    error_message: str
    missing_recording_message: str
    empty_transcript_message: str

    # 録音設定
    record_timeout: int
    record_max_length: int
    process_path: str
    recording_format: str

    # 音声ファイル保存設定
    audio_dir: str
    reply_ttl_seconds: int
    delete_reply_after_serve: bool

    # 空の認識結果でパイプラインを打ち切るかどうか
    skip_empty_transcript: bool

    http_timeout: int
    log_level: str

    DEFAULT_GREETING_MESSAGE: str = field(
        default="Hello! This is your AI IVR. Please say something after the beep.",
        init=False,
        repr=False
    )
    DEFAULT_ERROR_MESSAGE: str = field(default="Sorry, an error occurred.", init=False, repr=False)
    DEFAULT_MISSING_RECORDING_MESSAGE: str = field(default="Recording URL missing.", init=False, repr=False)
    DEFAULT_EMPTY_TRANSCRIPT_MESSAGE: str = field(
        default="Sorry, I didn't catch that. Please call again.",
        init=False,
        repr=False
    )
    DEFAULT_RECORD_TIMEOUT: int = field(default=5, init=False, repr=False)
    DEFAULT_RECORD_MAX_LENGTH: int = field(default=10, init=False, repr=False)
    DEFAULT_RECORDING_FORMAT: str = field(default="wav", init=False, repr=False)
    DEFAULT_LOG_LEVEL: str = field(default="INFO", init=False, repr=False)

    @classmethod
    def from_env(cls) -> 'Config':
        """
        環境変数から設定を読み込む

        認証情報の環境変数（すべて未設定可）:
            - TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE_NUMBER
            - OPENAI_API_KEY
            - ELEVEN_API_KEY / ELEVEN_VOICE_ID

        オプションの環境変数:
            - PUBLIC_BASE_URL: 外部公開 URL（未設定時は RENDER_URL、さらに未設定なら http://localhost:<PORT>）
            - OPENAI_TRANSCRIPTION_MODEL (デフォルト: whisper-1)
            - OPENAI_CHAT_MODEL (デフォルト: gpt-3.5-turbo)
            - ELEVEN_API_BASE (デフォルト: https://api.elevenlabs.io/v1)
            - GREETING_MESSAGE / ERROR_MESSAGE / MISSING_RECORDING_MESSAGE / EMPTY_TRANSCRIPT_MESSAGE
            - RECORD_TIMEOUT (デフォルト: 5) / RECORD_MAX_LENGTH (デフォルト: 10)
            - RECORDING_FORMAT (デフォルト: wav)
            - AUDIO_DIR (デフォルト: audio)
            - REPLY_TTL_SECONDS (デフォルト: 3600, 0 で無効)
            - DELETE_REPLY_AFTER_SERVE (デフォルト: true)
            - SKIP_EMPTY_TRANSCRIPT (デフォルト: false)
            - HTTP_TIMEOUT (デフォルト: 60)
            - LOG_LEVEL (デフォルト: INFO)

        Returns:
            Config: 設定オブジェクト

        Raises:
            ConfigurationError: 値が不正な場合
        """
        port = _int_env("PORT", 3000)
        public_base_url = (
            os.environ.get("PUBLIC_BASE_URL")
            or os.environ.get("RENDER_URL")
            or f"http://localhost:{port}"
        )

        config = cls(
            twilio_account_sid=os.environ.get("TWILIO_ACCOUNT_SID", ""),
            twilio_auth_token=os.environ.get("TWILIO_AUTH_TOKEN", ""),
            twilio_phone_number=os.environ.get("TWILIO_PHONE_NUMBER", ""),
            openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
            openai_transcription_model=os.environ.get("OPENAI_TRANSCRIPTION_MODEL", "whisper-1"),
            openai_chat_model=os.environ.get("OPENAI_CHAT_MODEL", "gpt-3.5-turbo"),
            eleven_api_key=os.environ.get("ELEVEN_API_KEY", ""),
            eleven_voice_id=os.environ.get("ELEVEN_VOICE_ID", ""),
            eleven_api_base=os.environ.get("ELEVEN_API_BASE", "https://api.elevenlabs.io/v1"),
            public_base_url=public_base_url.rstrip("/"),
            greeting_message=os.environ.get("GREETING_MESSAGE", cls.DEFAULT_GREETING_MESSAGE),
            error_message=os.environ.get("ERROR_MESSAGE", cls.DEFAULT_ERROR_MESSAGE),
            missing_recording_message=os.environ.get(
                "MISSING_RECORDING_MESSAGE", cls.DEFAULT_MISSING_RECORDING_MESSAGE
            ),
            empty_transcript_message=os.environ.get(
                "EMPTY_TRANSCRIPT_MESSAGE", cls.DEFAULT_EMPTY_TRANSCRIPT_MESSAGE
            ),
            record_timeout=_int_env("RECORD_TIMEOUT", cls.DEFAULT_RECORD_TIMEOUT),
            record_max_length=_int_env("RECORD_MAX_LENGTH", cls.DEFAULT_RECORD_MAX_LENGTH),
            process_path=os.environ.get("PROCESS_PATH", "/process"),
            recording_format=os.environ.get("RECORDING_FORMAT", cls.DEFAULT_RECORDING_FORMAT),
            audio_dir=os.environ.get("AUDIO_DIR", "audio"),
            reply_ttl_seconds=_int_env("REPLY_TTL_SECONDS", 3600),
            delete_reply_after_serve=_bool_env("DELETE_REPLY_AFTER_SERVE", True),
            skip_empty_transcript=_bool_env("SKIP_EMPTY_TRANSCRIPT", False),
            http_timeout=_int_env("HTTP_TIMEOUT", 60),
            log_level=os.environ.get("LOG_LEVEL", cls.DEFAULT_LOG_LEVEL),
        )

        config.validate()

        return config

    def missing_credentials(self) -> Dict[str, List[str]]:
        """
        未設定の認証情報をグループごとに返す

        Returns:
            グループ名 (twilio, openai, elevenlabs) から欠落している環境変数名へのマップ。
            すべて設定済みのグループは含まれません。
        """
        groups = {
            "twilio": [
                ("TWILIO_ACCOUNT_SID", self.twilio_account_sid),
                ("TWILIO_AUTH_TOKEN", self.twilio_auth_token),
                ("TWILIO_PHONE_NUMBER", self.twilio_phone_number),
            ],
            "openai": [("OPENAI_API_KEY", self.openai_api_key)],
            "elevenlabs": [
                ("ELEVEN_API_KEY", self.eleven_api_key),
                ("ELEVEN_VOICE_ID", self.eleven_voice_id),
            ],
        }
        missing = {}
        for group, entries in groups.items():
            names = [name for name, value in entries if not value]
            if names:
                missing[group] = names
        return missing

    def validate(self) -> None:
        """
        設定の妥当性を検証

        認証情報の欠落はここでは検証しません（起動時はログ出力のみ）。

        Raises:
            ConfigurationError: 数値や列挙値が無効な場合
        """
        if self.record_timeout <= 0:
            raise ConfigurationError(
                f"RECORD_TIMEOUT は正の整数である必要があります: {self.record_timeout}"
            )

        if self.record_max_length <= 0:
            raise ConfigurationError(
                f"RECORD_MAX_LENGTH は正の整数である必要があります: {self.record_max_length}"
            )

        if self.reply_ttl_seconds < 0:
            raise ConfigurationError(
                f"REPLY_TTL_SECONDS は0以上の整数である必要があります: {self.reply_ttl_seconds}"
            )

        if self.http_timeout <= 0:
            raise ConfigurationError(
                f"HTTP_TIMEOUT は正の整数である必要があります: {self.http_timeout}"
            )

        valid_formats = ["wav", "mp3"]
        if self.recording_format.lower() not in valid_formats:
            raise ConfigurationError(
                f"RECORDING_FORMAT は {valid_formats} のいずれかである必要があります: {self.recording_format}"
            )

        if not self.public_base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"PUBLIC_BASE_URL は http:// または https:// で始まる必要があります: {self.public_base_url}"
            )

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                f"LOG_LEVEL は {valid_log_levels} のいずれかである必要があります: {self.log_level}"
            )
