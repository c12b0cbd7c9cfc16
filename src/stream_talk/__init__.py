"""
stream-talk: read a streaming JSON post feed and speak each poster's name.

Example usage:
    import asyncio
    from stream_talk import ConnectionConfig, Credentials, Speaker, SpeechHandler, StreamConnection

    speaker = Speaker().initialize()
    config = ConnectionConfig(
        params={"track": "python"},
        credentials=Credentials(username="me", password="secret"),
    )

    async def main():
        async with StreamConnection(SpeechHandler(speaker, field="actor")) as conn:
            await conn.start(config)

    asyncio.run(main())
    speaker.shutdown()

    # Framing and decoding without a network connection
    from stream_talk import ChunkBuffer, decode_event

    buffer = ChunkBuffer()
    for record in buffer.append(b'{"user":{"name":"Alice"},"text":"hi"}'):
        print(decode_event(record).actor)
"""

from .buffers import ChunkBuffer
from .config import ConnectionConfig, Credentials, PlaybackConfig, SpeechConfig
from .connection import ConnectionState, StreamConnection
from .decoder import DecodedEvent, EventDecoder, decode_event
from .dispatch import DispatchSink, EventHandler
from .errors import (
    BufferOverflowError,
    DecodeError,
    DecodeErrorKind,
    HandlerError,
    LifecycleError,
    StreamTalkError,
    TransportError,
)
from .speech import Speaker, SpeechHandler

__all__ = [
    "ChunkBuffer",
    "ConnectionConfig",
    "Credentials",
    "PlaybackConfig",
    "SpeechConfig",
    "ConnectionState",
    "StreamConnection",
    "DecodedEvent",
    "EventDecoder",
    "decode_event",
    "DispatchSink",
    "EventHandler",
    "BufferOverflowError",
    "DecodeError",
    "DecodeErrorKind",
    "HandlerError",
    "LifecycleError",
    "StreamTalkError",
    "TransportError",
    "Speaker",
    "SpeechHandler",
]

__version__ = "0.1.0"
