"""
録音取得モジュール (Recording Fetcher Module)

Twilio がホストする録音ファイルをダウンロードします。
"""

from typing import Optional, Tuple

import requests

from .errors import FetchError
from .models import RecordingReference


class RecordingFetcher:
    """
    録音ファイルをダウンロードするクラス

    Twilio の録音 URL は拡張子 (.wav / .mp3) を付けるとその形式の音声を返します。
    アカウントで録音の認証が有効な場合に備え、認証情報があれば Basic 認証を付与します。
    """

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        recording_format: str = "wav",
        timeout: int = 60
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.recording_format = recording_format
        self.timeout = timeout

    def _auth(self) -> Optional[Tuple[str, str]]:
        if self.account_sid and self.auth_token:
            return (self.account_sid, self.auth_token)
        return None

    def fetch(self, recording: RecordingReference) -> bytes:
        """
        録音のバイト列を取得

        Args:
            recording: 録音参照

        Returns:
            音声データ

        Raises:
            FetchError: ネットワークエラーまたは HTTP エラーの場合
        """
        url = recording.download_url(self.recording_format)
        try:
            response = requests.get(url, auth=self._auth(), timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Failed to download recording {url}: {e}") from e

        return response.content
