"""
Flask アプリケーションモジュール (Flask Application Module)

AI IVR 中継サーバーの Flask アプリケーションを提供します。
Twilio Webhook エンドポイント、発信エンドポイント、音声配信と構造化ロギングを設定します。
"""

import logging
import sys
import traceback
from typing import Any, Dict, Optional, Tuple

import structlog
from flask import Flask, abort, jsonify, request, Response

from .config import Config
from .pipeline import CallPipeline


TWIML_MIMETYPE = "text/xml"


def configure_structlog(log_level: str = "INFO") -> None:
    """
    structlog を設定

    JSON フォーマットの構造化ロギングを設定します。
    すべてのログ出力は timestamp, level, event フィールドを含みます。

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    # 標準ライブラリの logging を設定
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """構造化ロガーを取得"""
    return structlog.get_logger(name)


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> Tuple[Response, int]:
    """
    エラーレスポンスを作成

    Args:
        error_type: エラーの種類
        message: エラーメッセージ
        status_code: HTTP ステータスコード
        details: 追加の詳細情報（オプション）

    Returns:
        (JSON レスポンス, ステータスコード) のタプル
    """
    response_body = {
        "error": error_type,
        "message": message,
        "status_code": status_code
    }
    if details:
        response_body["details"] = details

    return jsonify(response_body), status_code


def twiml_response(twiml: str) -> Response:
    return Response(twiml, status=200, mimetype=TWIML_MIMETYPE)


def log_missing_credentials(config: Config, logger: structlog.stdlib.BoundLogger) -> None:
    """
    未設定の認証情報を警告ログに出力

    起動は止めず、実際に使われたリクエストで失敗させます。
    """
    consequences = {
        "twilio": "outbound calls will fail",
        "openai": "transcription and chat will fail",
        "elevenlabs": "speech synthesis will fail",
    }
    for group, names in config.missing_credentials().items():
        logger.warning(
            "credentials_missing",
            provider=group,
            missing=names,
            consequence=consequences.get(group, "")
        )


def create_app(config: Optional[Config] = None, pipeline: Optional[CallPipeline] = None) -> Flask:
    """
    Flask アプリケーションを作成

    Args:
        config: アプリケーション設定（None の場合は環境変数から読み込み）
        pipeline: 通話処理パイプライン（None の場合は設定から組み立て）

    Returns:
        設定済みの Flask アプリケーション
    """
    app = Flask(__name__)

    # 設定を読み込み（テスト時は外部から注入可能）
    if config is None:
        config = Config.from_env()

    app.config["IVR_RELAY_CONFIG"] = config

    configure_structlog(config.log_level)

    logger = get_logger(__name__)
    logger.info(
        "application_initialized",
        log_level=config.log_level,
        public_base_url=config.public_base_url
    )
    log_missing_credentials(config, logger)

    if pipeline is None:
        pipeline = CallPipeline.from_config(config)
    app.config["CALL_PIPELINE"] = pipeline

    audio_store = pipeline.audio_store

    # ==========================================================================
    # エラーハンドラー (Error Handlers)
    # ==========================================================================

    @app.errorhandler(400)
    def handle_bad_request(error):
        logger.error(
            "bad_request_error",
            error_type="bad_request",
            error_message=str(error),
            path=request.path,
            method=request.method,
            content_type=request.content_type
        )
        return create_error_response(
            error_type="bad_request",
            message=str(error.description) if hasattr(error, 'description') else "Bad Request",
            status_code=400
        )

    @app.errorhandler(404)
    def handle_not_found(error):
        logger.warning(
            "not_found_error",
            path=request.path,
            method=request.method
        )
        return create_error_response(
            error_type="not_found",
            message="Not Found",
            status_code=404
        )

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        logger.warning(
            "method_not_allowed_error",
            error_type="method_not_allowed",
            error_message=str(error),
            path=request.path,
            method=request.method
        )
        return create_error_response(
            error_type="method_not_allowed",
            message=str(error.description) if hasattr(error, 'description') else "Method Not Allowed",
            status_code=405
        )

    @app.errorhandler(Exception)
    def handle_generic_exception(error):
        """
        汎用例外ハンドラー

        予期しない例外を処理し、スタックトレースをログ出力します。
        """
        logger.error(
            "unhandled_exception",
            error_type=type(error).__name__,
            error_message=str(error),
            path=request.path,
            method=request.method,
            stack_trace=traceback.format_exc(),
            exc_info=True
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=500
        )

    # ==========================================================================
    # エンドポイント (Endpoints)
    # ==========================================================================

    @app.route("/health", methods=["GET"])
    def health_check():
        logger.debug("health_check_requested")
        return jsonify({"status": "healthy"}), 200

    @app.route("/ivr", methods=["POST"])
    def inbound_call():
        """
        着信 Webhook エンドポイント

        挨拶と録音指示の TwiML を返します。外部呼び出しは行いません。
        """
        logger.debug("inbound_webhook_received", form=request.form.to_dict())
        return twiml_response(pipeline.handle_inbound(request.form))

    @app.route("/process", methods=["POST"])
    def process_recording():
        """
        録音処理 Webhook エンドポイント

        Form Parameters:
            - RecordingUrl: 録音 URL
            - CallSid: 通話 SID

        Returns:
            TwiML (<Play> または謝罪メッセージ)。発信者は通話中のため、
            失敗時も HTTP 200 で音声の謝罪を返します。
        """
        try:
            params = request.form.to_dict()
            logger.debug("process_webhook_received", form=params)
            twiml = pipeline.handle_process(params)
        except Exception as e:
            logger.error(
                "process_webhook_error",
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True
            )
            twiml = pipeline.twiml.build_error()
        return twiml_response(twiml)

    @app.route("/outbound", methods=["POST"])
    def outbound_call():
        """
        発信エンドポイント

        Request Body (JSON):
            - to: 発信先番号

        Returns:
            成功時: {"success": true, "callSid": "..."}
            失敗時: {"error": "..."} と 400 / 500
        """
        data = request.get_json(silent=True)
        if data is None and request.form:
            data = request.form.to_dict()
        body, status_code = pipeline.handle_outbound(data)
        return jsonify(body), status_code

    @app.route("/audio/<path:filename>", methods=["GET"])
    def serve_audio(filename: str):
        """
        合成音声の配信エンドポイント

        Audio Store が生成した reply_*.mp3 のみを配信します。
        """
        path = audio_store.reply_path(filename)
        if path is None:
            abort(404)

        try:
            with open(path, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            # 並行リクエストが配信後に削除済み
            abort(404)

        logger.info("reply_audio_served", filename=filename, size=len(data))
        response = Response(data, status=200, mimetype="audio/mpeg")
        response.headers["Cache-Control"] = "no-store"

        # GET の送信完了後に削除 (HEAD では残す)
        if config.delete_reply_after_serve and request.method == "GET":
            response.call_on_close(lambda: audio_store.discard_reply(filename))

        return response

    logger.info("application_ready", endpoints=["/health", "/ivr", "/process", "/outbound", "/audio/<filename>"])

    return app
