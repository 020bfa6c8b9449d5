"""
例外モジュール (Errors Module)

通話処理パイプラインと発信エンドポイントで使用する例外を定義します。
"""

from typing import Optional


class RelayError(Exception):
    """中継サーバーの基底例外"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    """設定エラー例外クラス（必須の認証情報が欠落、または値が不正）"""
    pass


class MissingInput(RelayError):
    """
    必須入力欠落エラー

    Attributes:
        field_name: 欠落しているフィールド名
    """

    def __init__(self, field_name: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required field: {field_name}")
        self.field_name = field_name


class PipelineStageError(RelayError):
    """
    パイプラインの各ステージで発生したエラー

    下位のプロバイダー/トランスポート例外をラップし、
    どのステージで失敗したかを保持します。

    Attributes:
        message: エラーメッセージ
        stage: 失敗したステージ名
    """

    stage = "unknown"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        if stage:
            self.stage = stage


class FetchError(PipelineStageError):
    """録音ファイルの取得に失敗"""
    stage = "fetch"


class StorageError(PipelineStageError):
    """ステージングファイルの書き込みに失敗"""
    stage = "storage"


class TranscriptionError(PipelineStageError):
    """音声認識に失敗"""
    stage = "transcribe"


class DialogueError(PipelineStageError):
    """チャット応答の生成に失敗"""
    stage = "converse"


class SynthesisError(PipelineStageError):
    """音声合成に失敗"""
    stage = "synthesize"


class ProviderRejected(RelayError):
    """
    電話プロバイダーが発信を拒否

    Attributes:
        message: プロバイダーのエラーメッセージ（変換せずそのまま保持）
        status_code: プロバイダーが返した HTTP ステータス（不明な場合は None）
        code: プロバイダー固有のエラーコード
    """

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
