"""
通話処理パイプラインモジュール (Call Pipeline Module)

着信・録音処理・発信の各エントリーポイントを提供します。

録音処理は次の順序で実行され、いずれかの段階で失敗した場合は
発信者に謝罪メッセージを読み上げて終了します（リトライなし）。

    fetch -> persist -> transcribe -> converse -> synthesize -> store reply -> play
"""

import uuid
from typing import Any, Dict, Mapping, Optional, Tuple

import structlog

from .audio_store import AudioStore
from .config import Config
from .dialogue import DialogueClient
from .errors import ConfigurationError, MissingInput, PipelineStageError, ProviderRejected
from .models import PipelineResult, RecordingReference
from .recording_fetcher import RecordingFetcher
from .speech_to_text import TranscriptionClient
from .telephony import TelephonyGateway
from .text_to_speech import SpeechSynthesisClient
from .twiml_builder import TwiMLBuilder


class CallPipeline:
    """
    通話処理パイプライン

    すべての依存コンポーネントはコンストラクタで受け取り、
    グローバル状態は参照しません。

    Attributes:
        config: アプリケーション設定
        audio_store: 音声ステージング領域
        fetcher: 録音ダウンローダー
        transcriber: 音声認識クライアント
        dialogue: 対話クライアント
        synthesizer: 音声合成クライアント
        telephony: 発信ゲートウェイ
        twiml: TwiML ビルダー
        logger: 構造化ロガー
    """

    def __init__(
        self,
        config: Config,
        audio_store: AudioStore,
        fetcher: RecordingFetcher,
        transcriber: TranscriptionClient,
        dialogue: DialogueClient,
        synthesizer: SpeechSynthesisClient,
        telephony: TelephonyGateway,
        twiml: Optional[TwiMLBuilder] = None
    ):
        self.config = config
        self.audio_store = audio_store
        self.fetcher = fetcher
        self.transcriber = transcriber
        self.dialogue = dialogue
        self.synthesizer = synthesizer
        self.telephony = telephony
        self.twiml = twiml or TwiMLBuilder(config)
        self.logger = structlog.get_logger(__name__)

    @classmethod
    def from_config(cls, config: Config) -> 'CallPipeline':
        """設定から本番用のクライアントを組み立ててパイプラインを作成"""
        return cls(
            config=config,
            audio_store=AudioStore(config.audio_dir, reply_ttl_seconds=config.reply_ttl_seconds),
            fetcher=RecordingFetcher(
                account_sid=config.twilio_account_sid,
                auth_token=config.twilio_auth_token,
                recording_format=config.recording_format,
                timeout=config.http_timeout
            ),
            transcriber=TranscriptionClient(
                api_key=config.openai_api_key,
                model=config.openai_transcription_model
            ),
            dialogue=DialogueClient(
                api_key=config.openai_api_key,
                model=config.openai_chat_model
            ),
            synthesizer=SpeechSynthesisClient(
                api_key=config.eleven_api_key,
                voice_id=config.eleven_voice_id,
                api_base=config.eleven_api_base,
                timeout=config.http_timeout
            ),
            telephony=TelephonyGateway(
                account_sid=config.twilio_account_sid,
                auth_token=config.twilio_auth_token,
                from_number=config.twilio_phone_number,
                answer_url=f"{config.public_base_url}/ivr"
            ),
        )

    def reply_url(self, filename: str) -> str:
        return f"{self.config.public_base_url}/audio/{filename}"

    # ------------------------------------------------------------------
    # 着信
    # ------------------------------------------------------------------

    def handle_inbound(self, params: Mapping[str, Any]) -> str:
        """
        着信 Webhook を処理

        外部呼び出しは行わず、挨拶と録音の TwiML を返します。

        Args:
            params: Twilio から送信されるパラメータ（CallSid, From, To はログ用）

        Returns:
            TwiML 文字列
        """
        self.logger.info(
            "incoming_call_received",
            call_sid=params.get("CallSid", ""),
            caller_number=params.get("From", ""),
            called_number=params.get("To", "")
        )
        return self.twiml.build_greeting()

    # ------------------------------------------------------------------
    # 録音処理
    # ------------------------------------------------------------------

    def handle_process(self, params: Mapping[str, Any]) -> str:
        """
        録音完了 Webhook を処理

        例外を呼び出し元に伝播させることはなく、常に有効な TwiML を返します。

        Args:
            params: Twilio から送信されるフォームパラメータ
                - RecordingUrl: 録音 URL（必須）
                - CallSid: 通話 SID

        Returns:
            TwiML 文字列（<Play> または謝罪メッセージ）
        """
        request_id = uuid.uuid4().hex
        call_sid = params.get("CallSid", "") or ""
        log = self.logger.bind(request_id=request_id, call_sid=call_sid)

        try:
            recording = self._recording_from_params(params)
        except MissingInput as e:
            log.error("process_missing_recording_url", field=e.field_name)
            return self.twiml.build_missing_recording()

        log.info("user_recording_received", recording_url=recording.url)

        try:
            result = self.process_recording(recording, request_id)
        except PipelineStageError as e:
            log.error(
                "pipeline_stage_failed",
                stage=e.stage,
                error_type=type(e).__name__,
                error_message=e.message,
                exc_info=True
            )
            return self.twiml.build_error()
        except Exception as e:
            log.error(
                "pipeline_failed",
                stage="unknown",
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True
            )
            return self.twiml.build_error()

        if result.reply_url is None:
            log.info("empty_transcript_short_circuit")
            return self.twiml.build_empty_transcript()

        log.info(
            "recording_processed",
            reply_filename=result.reply.filename if result.reply else None,
            reply_url=result.reply_url
        )
        return self.twiml.build_play(result.reply_url)

    def _recording_from_params(self, params: Mapping[str, Any]) -> RecordingReference:
        url = params.get("RecordingUrl")
        if not url:
            raise MissingInput("RecordingUrl", "Recording URL missing")
        return RecordingReference(url=url, call_sid=params.get("CallSid", "") or "")

    def process_recording(self, recording: RecordingReference, request_id: str) -> PipelineResult:
        """
        録音から応答音声までを順に処理

        Args:
            recording: 録音参照
            request_id: リクエスト相関 ID（ステージングファイル名に使用）

        Returns:
            PipelineResult: 処理結果。空の認識結果で打ち切った場合は reply_url が None

        Raises:
            FetchError, StorageError, TranscriptionError, DialogueError,
            SynthesisError, ConfigurationError: 各段階の失敗
        """
        log = self.logger.bind(request_id=request_id, call_sid=recording.call_sid)

        audio = self.fetcher.fetch(recording)
        log.debug("recording_fetched", size=len(audio))

        with self.audio_store.staged_recording(
            request_id, audio, fmt=self.config.recording_format
        ) as staged:
            transcript = self._run_stage("transcribe", self.transcriber.transcribe, staged.path)
        log.info("transcribed_text", transcript=transcript)

        result = PipelineResult(request_id=request_id, transcript=transcript)

        if not transcript.strip() and self.config.skip_empty_transcript:
            return result

        result.reply_text = self._run_stage("converse", self.dialogue.reply, transcript)
        log.info("ai_reply", reply_text=result.reply_text)

        speech = self._run_stage("synthesize", self.synthesizer.synthesize, result.reply_text)

        result.reply = self.audio_store.store_reply(request_id, speech)
        result.reply_url = self.reply_url(result.reply.filename)
        return result

    def _run_stage(self, stage: str, func, *args):
        # 設定エラーはステージ名を付けて再送出
        try:
            return func(*args)
        except ConfigurationError as e:
            raise PipelineStageError(e.message, stage=stage) from e

    # ------------------------------------------------------------------
    # 発信
    # ------------------------------------------------------------------

    def handle_outbound(self, data: Any) -> Tuple[Dict[str, Any], int]:
        """
        発信リクエストを処理

        Args:
            data: JSON ボディ ({"to": "+81..."})

        Returns:
            (レスポンスボディ, HTTP ステータスコード) のタプル
        """
        self.logger.info("outbound_request_received", body=data)

        to_number = data.get("to") if isinstance(data, dict) else None
        if not to_number or not str(to_number).strip():
            self.logger.warning("outbound_missing_to")
            return {"error": "Missing 'to' number"}, 400

        if not self.telephony.is_configured:
            self.logger.error("outbound_credentials_missing")
            return {"error": "Twilio credentials missing"}, 500

        try:
            call = self.telephony.place_call(str(to_number).strip())
        except ProviderRejected as e:
            self.logger.error(
                "outbound_call_rejected",
                to=to_number,
                error_message=e.message,
                provider_status=e.status_code,
                provider_code=e.code
            )
            return {"error": e.message}, 500
        except Exception as e:
            self.logger.error(
                "outbound_call_error",
                to=to_number,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True
            )
            return {"error": str(e)}, 500

        self.logger.info("outbound_call_started", call_sid=call.call_sid, to=call.to)
        return {"success": True, "callSid": call.call_sid}, 200
