"""
Config クラスのユニットテスト
"""

import os
import pytest
from unittest import mock

from ivr_relay.config import Config
from ivr_relay.errors import ConfigurationError


class TestConfigFromEnv:
    """Config.from_env() メソッドのテスト"""

    @pytest.fixture
    def full_env_vars(self):
        """すべての認証情報を含む環境変数のセット"""
        return {
            "TWILIO_ACCOUNT_SID": "ACxxxx",
            "TWILIO_AUTH_TOKEN": "token",
            "TWILIO_PHONE_NUMBER": "+15005550006",
            "OPENAI_API_KEY": "sk-test",
            "ELEVEN_API_KEY": "eleven",
            "ELEVEN_VOICE_ID": "voice",
            "PUBLIC_BASE_URL": "https://relay.example.com/",
        }

    def test_from_env_reads_credentials(self, full_env_vars):
        """正常系: 認証情報が読み込まれる"""
        with mock.patch.dict(os.environ, full_env_vars, clear=True):
            config = Config.from_env()

            assert config.twilio_account_sid == "ACxxxx"
            assert config.twilio_auth_token == "token"
            assert config.twilio_phone_number == "+15005550006"
            assert config.openai_api_key == "sk-test"
            assert config.eleven_api_key == "eleven"
            assert config.eleven_voice_id == "voice"

    def test_from_env_strips_trailing_slash_from_base_url(self, full_env_vars):
        with mock.patch.dict(os.environ, full_env_vars, clear=True):
            config = Config.from_env()

            assert config.public_base_url == "https://relay.example.com"

    def test_from_env_without_credentials_does_not_raise(self):
        """
        正常系: 認証情報がなくても起動時に失敗しない
        """
        with mock.patch.dict(os.environ, {}, clear=True):
            config = Config.from_env()

            assert config.twilio_account_sid == ""
            assert config.openai_api_key == ""

    def test_from_env_uses_defaults(self):
        """正常系: 未設定の項目はデフォルト値になる"""
        with mock.patch.dict(os.environ, {}, clear=True):
            config = Config.from_env()

            assert config.greeting_message == "Hello! This is your AI IVR. Please say something after the beep."
            assert config.error_message == "Sorry, an error occurred."
            assert config.missing_recording_message == "Recording URL missing."
            assert config.record_timeout == 5
            assert config.record_max_length == 10
            assert config.process_path == "/process"
            assert config.recording_format == "wav"
            assert config.openai_transcription_model == "whisper-1"
            assert config.openai_chat_model == "gpt-3.5-turbo"
            assert config.eleven_api_base == "https://api.elevenlabs.io/v1"
            assert config.audio_dir == "audio"
            assert config.reply_ttl_seconds == 3600
            assert config.delete_reply_after_serve is True
            assert config.skip_empty_transcript is False
            assert config.http_timeout == 60
            assert config.log_level == "INFO"

    def test_public_base_url_falls_back_to_render_url(self):
        with mock.patch.dict(os.environ, {"RENDER_URL": "https://ai-ivr.onrender.com"}, clear=True):
            config = Config.from_env()

            assert config.public_base_url == "https://ai-ivr.onrender.com"

    def test_public_base_url_defaults_to_localhost_port(self):
        with mock.patch.dict(os.environ, {"PORT": "8080"}, clear=True):
            config = Config.from_env()

            assert config.public_base_url == "http://localhost:8080"

    def test_from_env_reads_custom_settings(self):
        env_vars = {
            "GREETING_MESSAGE": "Welcome.",
            "RECORD_TIMEOUT": "3",
            "RECORD_MAX_LENGTH": "30",
            "RECORDING_FORMAT": "mp3",
            "SKIP_EMPTY_TRANSCRIPT": "true",
            "DELETE_REPLY_AFTER_SERVE": "false",
            "REPLY_TTL_SECONDS": "0",
        }
        with mock.patch.dict(os.environ, env_vars, clear=True):
            config = Config.from_env()

            assert config.greeting_message == "Welcome."
            assert config.record_timeout == 3
            assert config.record_max_length == 30
            assert config.recording_format == "mp3"
            assert config.skip_empty_transcript is True
            assert config.delete_reply_after_serve is False
            assert config.reply_ttl_seconds == 0

    def test_from_env_rejects_non_integer(self):
        """異常系: 整数でない値は ConfigurationError"""
        with mock.patch.dict(os.environ, {"RECORD_TIMEOUT": "five"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                Config.from_env()

            assert "RECORD_TIMEOUT" in str(exc_info.value)

    def test_from_env_rejects_non_integer_port(self):
        with mock.patch.dict(os.environ, {"PORT": "web"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                Config.from_env()

            assert "PORT" in str(exc_info.value)


class TestConfigValidate:
    """Config.validate() のテスト"""

    @pytest.mark.parametrize("field_name,value", [
        ("record_timeout", 0),
        ("record_max_length", -1),
        ("reply_ttl_seconds", -5),
        ("http_timeout", 0),
        ("recording_format", "flac"),
        ("log_level", "VERBOSE"),
        ("public_base_url", "relay.example.com"),
    ])
    def test_invalid_values_raise(self, make_config, field_name, value):
        config = make_config(**{field_name: value})

        with pytest.raises(ConfigurationError):
            config.validate()

    def test_valid_config_passes(self, test_config):
        test_config.validate()


class TestMissingCredentials:
    """Config.missing_credentials() のテスト"""

    def test_no_missing_credentials(self, test_config):
        assert test_config.missing_credentials() == {}

    def test_reports_missing_groups(self, make_config):
        config = make_config(twilio_auth_token="", openai_api_key="", eleven_voice_id="")

        missing = config.missing_credentials()

        assert missing == {
            "twilio": ["TWILIO_AUTH_TOKEN"],
            "openai": ["OPENAI_API_KEY"],
            "elevenlabs": ["ELEVEN_VOICE_ID"],
        }
