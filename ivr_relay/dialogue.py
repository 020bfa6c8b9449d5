"""
対話モジュール (Dialogue Module)

認識したテキストを OpenAI のチャット API に送り、応答テキストを取得します。
"""

import openai

from .errors import ConfigurationError, DialogueError


class DialogueClient:
    """
    OpenAI チャットクライアント

    会話履歴やシステムプロンプトは使わず、ユーザーメッセージ 1 件だけを送信します。
    """

    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo"):
        self.api_key = api_key
        self.model = model

    def reply(self, user_text: str) -> str:
        """
        ユーザーの発話に対する応答を生成

        Raises:
            ConfigurationError: API キーが未設定の場合
            DialogueError: API 呼び出しに失敗した、または応答が空の場合
        """
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        try:
            client = openai.OpenAI(api_key=self.api_key)
            completion = client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": user_text}],
            )
        except openai.OpenAIError as e:
            raise DialogueError(f"Chat completion failed: {e}") from e

        if not completion.choices:
            raise DialogueError("Chat completion returned no choices")

        content = completion.choices[0].message.content
        if content is None:
            raise DialogueError("Chat completion returned no content")

        return content
