"""
テスト共通フィクスチャ
"""

import pytest

from ivr_relay.config import Config


def build_config(**overrides) -> Config:
    """テスト用の Config を作成（キーワード引数で上書き可能）"""
    values = dict(
        twilio_account_sid="ACtest",
        twilio_auth_token="test_auth_token",
        twilio_phone_number="+15005550006",
        openai_api_key="sk-test",
        openai_transcription_model="whisper-1",
        openai_chat_model="gpt-3.5-turbo",
        eleven_api_key="eleven_test_key",
        eleven_voice_id="voice123",
        eleven_api_base="https://api.elevenlabs.io/v1",
        public_base_url="https://relay.example.com",
        greeting_message="Hello! This is your AI IVR. Please say something after the beep.",
        error_message="Sorry, an error occurred.",
        missing_recording_message="Recording URL missing.",
        empty_transcript_message="Sorry, I didn't catch that. Please call again.",
        record_timeout=5,
        record_max_length=10,
        process_path="/process",
        recording_format="wav",
        audio_dir="audio",
        reply_ttl_seconds=0,
        delete_reply_after_serve=False,
        skip_empty_transcript=False,
        http_timeout=60,
        log_level="DEBUG",
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def test_config(tmp_path):
    """音声ディレクトリを一時ディレクトリに向けたテスト用設定"""
    return build_config(audio_dir=str(tmp_path / "audio"))


@pytest.fixture
def make_config(tmp_path):
    """上書き値を指定して Config を作るファクトリ"""
    def _make(**overrides):
        overrides.setdefault("audio_dir", str(tmp_path / "audio"))
        return build_config(**overrides)
    return _make
