"""
AI IVR Voice Relay

Twilio の着信を録音し、Whisper / GPT / ElevenLabs を経由して音声で応答する中継サーバー
"""

__version__ = "0.1.0"

from ivr_relay.config import Config
from ivr_relay.errors import ConfigurationError

__all__ = ["Config", "ConfigurationError"]
