"""
stream-talk command line: read a filtered post stream aloud.

Examples:
  # speak the name of everyone posting about a keyword
  stream-talk --track python --user me --password secret

  # bearer token from the environment, speak the post text, no audio device
  STREAM_TALK_TOKEN=... stream-talk --track python --speak body --muted

  # print only
  stream-talk --track python --no-speech
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from .audio import is_playback_available, output_devices
from .config import (
    DEFAULT_HOST,
    DEFAULT_PATH,
    DEFAULT_VOICE,
    KOKORO_VOICES,
    ConnectionConfig,
    Credentials,
    PlaybackConfig,
    SpeechConfig,
)
from .connection import StreamConnection
from .decoder import DecodedEvent
from .dispatch import EventHandler
from .errors import StreamTalkError
from .speech import Speaker, SpeechHandler

logger = logging.getLogger("stream_talk.cli")

PASSWORD_ENV = "STREAM_TALK_PASSWORD"
TOKEN_ENV = "STREAM_TALK_TOKEN"


class EchoHandler:
    """Prints each event, then passes it on to an optional inner handler."""

    def __init__(self, inner: EventHandler | None = None, stream=None) -> None:
        self.inner = inner
        self.stream = stream or sys.stdout

    def __call__(self, event: DecodedEvent) -> None:
        print(f"[{event.actor}]\n{event.body}", file=self.stream, flush=True)
        if self.inner is not None:
            self.inner(event)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="stream-talk",
        description="Speak the authors of posts from a streaming filter endpoint",
    )
    ap.add_argument("--host", default=DEFAULT_HOST, help=f"Stream host (default: {DEFAULT_HOST})")
    ap.add_argument("--port", type=int, default=443, help="HTTPS port (default: 443)")
    ap.add_argument("--path", default=DEFAULT_PATH, help=f"Request path (default: {DEFAULT_PATH})")
    ap.add_argument("--track", help="Keyword(s) to filter the stream on")

    auth = ap.add_argument_group("credentials")
    auth.add_argument("--user", help="Username for HTTP Basic auth")
    auth.add_argument(
        "--password",
        default=os.environ.get(PASSWORD_ENV),
        help=f"Password for HTTP Basic auth (default: ${PASSWORD_ENV})",
    )
    auth.add_argument(
        "--token",
        default=os.environ.get(TOKEN_ENV),
        help=f"Bearer token, used when --user is not given (default: ${TOKEN_ENV})",
    )

    speech = ap.add_argument_group("speech")
    speech.add_argument(
        "--speak", choices=("actor", "body"), default="actor",
        help="Event field to read aloud (default: actor)",
    )
    speech.add_argument("--voice", default=DEFAULT_VOICE, help="Kokoro voice name")
    speech.add_argument("--speed", type=float, default=1.0, help="Speech speed multiplier")
    speech.add_argument("--muted", action="store_true", help="Synthesize without local playback")
    speech.add_argument("--device-index", type=int, help="Audio output device (see --list-devices)")
    speech.add_argument("--no-speech", action="store_true", help="Only print events")
    speech.add_argument("--list-voices", action="store_true", help="Print the known voices and exit")
    speech.add_argument("--list-devices", action="store_true", help="Print audio output devices and exit")

    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def _credentials(args: argparse.Namespace) -> Credentials | None:
    if args.user:
        return Credentials(username=args.user, password=args.password)
    if args.token:
        return Credentials(token=args.token)
    return None


def build_connection_config(args: argparse.Namespace) -> ConnectionConfig:
    params = {"track": args.track} if args.track else {}
    return ConnectionConfig(
        host=args.host,
        port=args.port,
        path=args.path,
        params=params,
        credentials=_credentials(args),
    )


def list_devices() -> int:
    if not is_playback_available():
        print("PyAudio is not installed; install stream-talk[playback]", file=sys.stderr)
        return 1
    for index, name in output_devices():
        print(f"{index}: {name}")
    return 0


async def run(config: ConnectionConfig, handler: EventHandler) -> StreamConnection:
    """Stream until the connection closes; returns the finished connection."""
    async with StreamConnection(handler) as conn:
        await conn.start(config)
    return conn


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_voices:
        for voice in KOKORO_VOICES:
            print(voice)
        return 0
    if args.list_devices:
        return list_devices()

    try:
        config = build_connection_config(args)
        speech_config = SpeechConfig(voice=args.voice, speed=args.speed)
        playback_config = PlaybackConfig(device_index=args.device_index, muted=args.muted)
    except ValueError as e:
        ap.error(str(e))
    if args.voice not in KOKORO_VOICES:
        logger.warning("Unknown voice %r (see --list-voices)", args.voice)

    speaker: Speaker | None = None
    inner: EventHandler | None = None
    if not args.no_speech:
        speaker = Speaker(speech_config, playback_config).initialize()
        inner = SpeechHandler(speaker, field=args.speak)

    try:
        asyncio.run(run(config, EchoHandler(inner)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except StreamTalkError as e:
        logger.error("%s", e)
        return 1
    finally:
        if speaker is not None:
            speaker.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
