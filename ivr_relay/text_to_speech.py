"""
音声合成モジュール (Text-to-Speech Module)

ElevenLabs の Text-to-Speech API で応答テキストを音声 (MP3) に変換します。
"""

import requests

from .errors import ConfigurationError, SynthesisError


class SpeechSynthesisClient:
    """ElevenLabs クライアント"""

    ELEVEN_API_BASE = "https://api.elevenlabs.io/v1"

    def __init__(self, api_key: str, voice_id: str, api_base: str = ELEVEN_API_BASE, timeout: int = 60):
        self.api_key = api_key
        self.voice_id = voice_id
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def synthesize(self, text: str) -> bytes:
        """
        テキストを音声に変換

        Args:
            text: 読み上げるテキスト

        Returns:
            音声データ (audio/mpeg)

        Raises:
            ConfigurationError: API キーまたはボイス ID が未設定の場合
            SynthesisError: API 呼び出しに失敗した、または音声が返らなかった場合
        """
        if not self.api_key or not self.voice_id:
            raise ConfigurationError("ELEVEN_API_KEY / ELEVEN_VOICE_ID are not configured")

        url = f"{self.api_base}/text-to-speech/{self.voice_id}"
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }

        try:
            response = requests.post(url, json={"text": text}, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SynthesisError(f"Speech synthesis failed: {e}") from e

        if not response.content:
            raise SynthesisError("Speech synthesis returned no audio")

        return response.content
