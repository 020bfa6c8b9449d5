"""
音声ストアモジュール (Audio Store Module)

受信録音と合成音声をローカルディスクに一時保存します。
ファイル名はすべてリクエストごとの一意な ID から生成し、固定名は使用しません。
"""

import os
import re
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from .errors import StorageError
from .models import StagedAudio


REPLY_FILENAME_PATTERN = re.compile(r"^reply_[0-9a-f]{32}_\d+\.mp3$")


class AudioStore:
    """
    音声ファイルのステージング領域

    ディレクトリ構成:
        <root>/incoming  受信録音（公開しない、文字起こし後に削除）
        <root>/replies   合成音声（/audio/ で公開）

    Attributes:
        root: ルートディレクトリ
        incoming_dir: 受信録音ディレクトリ
        reply_dir: 合成音声ディレクトリ
        reply_ttl_seconds: 合成音声の保持秒数（0 で期限なし）
    """

    DEFAULT_AUDIO_DIR = "audio"

    def __init__(self, root: Optional[str] = None, reply_ttl_seconds: int = 0):
        self.root = root or self.DEFAULT_AUDIO_DIR
        self.incoming_dir = os.path.join(self.root, "incoming")
        self.reply_dir = os.path.join(self.root, "replies")
        self.reply_ttl_seconds = reply_ttl_seconds

        self._stamp_lock = threading.Lock()
        self._last_stamp = 0

        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        """ステージングディレクトリが存在することを確認し、なければ作成"""
        try:
            Path(self.incoming_dir).mkdir(parents=True, exist_ok=True)
            Path(self.reply_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create audio directories: {e}") from e

    def _next_stamp(self) -> int:
        """
        プロセス内で単調増加するミリ秒タイムスタンプを返す

        同一ミリ秒内に複数回呼ばれた場合は前回値 + 1 を返します。
        """
        with self._stamp_lock:
            stamp = int(time.time() * 1000)
            if stamp <= self._last_stamp:
                stamp = self._last_stamp + 1
            self._last_stamp = stamp
            return stamp

    def _write(self, path: str, data: bytes) -> StagedAudio:
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        return StagedAudio(path=path, filename=os.path.basename(path), size=len(data))

    @contextmanager
    def staged_recording(
        self,
        request_id: str,
        data: bytes,
        fmt: str = "wav"
    ) -> Generator[StagedAudio, None, None]:
        """
        受信録音をステージングするコンテキストマネージャー

        ブロックを抜けると、成功・失敗にかかわらずファイルを削除します。

        Args:
            request_id: リクエスト相関 ID（ファイル名に使用）
            data: 録音のバイト列
            fmt: 拡張子

        Yields:
            StagedAudio: 書き込まれたファイル

        Raises:
            StorageError: 書き込みに失敗した場合
        """
        path = os.path.join(self.incoming_dir, f"{request_id}.{fmt}")
        staged = self._write(path, data)
        try:
            yield staged
        finally:
            self._remove(path)

    def store_reply(self, request_id: str, data: bytes) -> StagedAudio:
        """
        合成音声を保存

        ファイル名は reply_<request_id>_<ミリ秒スタンプ>.mp3 です。
        保存前に期限切れの合成音声を削除します。

        Raises:
            StorageError: 書き込みに失敗した場合
        """
        if self.reply_ttl_seconds > 0:
            self.purge_expired(self.reply_ttl_seconds)

        filename = f"reply_{request_id}_{self._next_stamp()}.mp3"
        return self._write(os.path.join(self.reply_dir, filename), data)

    def is_reply_filename(self, filename: str) -> bool:
        return bool(REPLY_FILENAME_PATTERN.match(filename))

    def reply_path(self, filename: str) -> Optional[str]:
        """公開可能な合成音声のパスを返す。存在しないか不正な名前なら None"""
        if not self.is_reply_filename(filename):
            return None
        path = os.path.join(self.reply_dir, filename)
        if not os.path.isfile(path):
            return None
        return path

    def discard_reply(self, filename: str) -> bool:
        """
        合成音声を削除

        Returns:
            削除した場合は True
        """
        if not self.is_reply_filename(filename):
            return False
        return self._remove(os.path.join(self.reply_dir, filename))

    def purge_expired(self, max_age_seconds: int) -> int:
        """
        指定秒数より古い合成音声を削除

        Returns:
            削除したファイル数
        """
        cutoff = time.time() - max_age_seconds
        removed = 0
        with os.scandir(self.reply_dir) as entries:
            for entry in entries:
                if not entry.is_file() or not self.is_reply_filename(entry.name):
                    continue
                try:
                    mtime = entry.stat().st_mtime
                except FileNotFoundError:
                    continue
                if mtime < cutoff and self._remove(entry.path):
                    removed += 1
        return removed

    def _remove(self, path: str) -> bool:
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            # 並行リクエストが先に削除済み
            return False
