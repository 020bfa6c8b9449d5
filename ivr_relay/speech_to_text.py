"""
音声認識モジュール (Speech-to-Text Module)

OpenAI Whisper でステージング済みの音声ファイルをテキストに変換します。
"""

import openai

from .errors import ConfigurationError, TranscriptionError


class TranscriptionClient:
    """
    OpenAI Whisper クライアント

    空文字の認識結果は正常な結果としてそのまま返します。
    """

    def __init__(self, api_key: str, model: str = "whisper-1"):
        self.api_key = api_key
        self.model = model

    def transcribe(self, audio_file_path: str) -> str:
        """
        音声ファイルをテキストに変換

        Args:
            audio_file_path: 音声ファイルのパス

        Returns:
            変換されたテキスト

        Raises:
            ConfigurationError: API キーが未設定の場合
            TranscriptionError: プロバイダーが拒否した、またはテキストが返らなかった場合
        """
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        try:
            client = openai.OpenAI(api_key=self.api_key)

            with open(audio_file_path, "rb") as audio_file:
                transcript = client.audio.transcriptions.create(
                    model=self.model,
                    file=audio_file,
                )
        except (openai.OpenAIError, OSError) as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        text = getattr(transcript, "text", None)
        if text is None:
            raise TranscriptionError("Transcription response contained no text")

        return text
