"""
データモデルモジュール (Data Models Module)

1 回のリクエスト内で受け渡されるデータを定義します。
いずれも永続化されません。
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RecordingReference:
    """
    録音参照

    Twilio がホストする録音を指す URL です。処理リクエストで一度だけ使用されます。

    Attributes:
        url: Twilio から通知された RecordingUrl
        call_sid: 通話 SID（ログ用、不明な場合は空文字）
    """
    url: str
    call_sid: str = ""

    def download_url(self, fmt: str = "wav") -> str:
        """録音 URL にフォーマット拡張子を付与したダウンロード URL を返す"""
        return f"{self.url}.{fmt}"


@dataclass(frozen=True)
class StagedAudio:
    """
    ステージングされた音声ファイル

    Attributes:
        path: ローカルファイルパス
        filename: ファイル名（公開 URL に使用）
        size: バイト数
    """
    path: str
    filename: str
    size: int


@dataclass
class PipelineResult:
    """
    処理パイプライン 1 回分の結果

    Attributes:
        request_id: リクエスト相関 ID
        transcript: 認識されたテキスト
        reply_text: 言語モデルの応答テキスト（打ち切られた場合は None）
        reply: 保存された応答音声（打ち切られた場合は None）
        reply_url: 応答音声の公開 URL
    """
    request_id: str
    transcript: str
    reply_text: Optional[str] = None
    reply: Optional[StagedAudio] = None
    reply_url: Optional[str] = None


@dataclass
class OutboundCall:
    """
    発信通話

    Attributes:
        call_sid: プロバイダーが割り当てた通話 SID
        to: 発信先番号
        status: プロバイダーが返した通話ステータス
    """
    call_sid: str
    to: str
    status: Optional[str] = None
