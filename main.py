#!/usr/bin/env python3
"""
AI IVR Voice Relay アプリケーションエントリーポイント

.env と環境変数から設定を読み込み、Flask 開発サーバーを起動します。
認証情報が欠落していても起動は継続し、警告ログのみ出力します。

Usage:
    python main.py

Environment Variables:
    - TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE_NUMBER: Twilio 認証情報と発信元番号
    - OPENAI_API_KEY: OpenAI API キー (Whisper / Chat)
    - ELEVEN_API_KEY / ELEVEN_VOICE_ID: ElevenLabs API キーとボイス ID
    - PUBLIC_BASE_URL: 外部から到達可能なこのサーバーの URL (旧名 RENDER_URL)
    - LOG_LEVEL: ログレベル (デフォルト: INFO)
    - HOST: サーバーホスト (デフォルト: 0.0.0.0)
    - PORT: サーバーポート (デフォルト: 3000)
    - DEBUG: デバッグモード (デフォルト: False)
"""

import os
import sys

from dotenv import load_dotenv

from ivr_relay.app import create_app
from ivr_relay.config import Config, _bool_env, _int_env
from ivr_relay.errors import ConfigurationError


def main() -> int:
    """
    アプリケーションのメインエントリーポイント

    Returns:
        int: 終了コード (0: 正常終了, 1: エラー終了)
    """
    load_dotenv()

    try:
        print("設定を読み込んでいます...")
        config = Config.from_env()

        app = create_app(config)

        host = os.environ.get("HOST", "0.0.0.0")
        port = _int_env("PORT", 3000)
        debug = _bool_env("DEBUG", False)

        print(f"サーバーを起動しています... (host={host}, port={port}, debug={debug})")
        print(f"Public URL: {config.public_base_url}")
        print("サーバーを停止するには Ctrl+C を押してください。")

        # 複数の通話を並行して処理するためスレッドモードで起動
        app.run(host=host, port=port, debug=debug, threaded=True)

        return 0

    except ConfigurationError as e:
        print(f"\n[エラー] 設定エラーが発生しました:", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nサーバーを停止しました。")
        return 0


if __name__ == "__main__":
    sys.exit(main())
