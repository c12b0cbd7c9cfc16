"""Configuration dataclasses for stream-talk."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

import httpx

DEFAULT_HOST = "stream.twitter.com"
DEFAULT_PATH = "/1/statuses/filter.json"
DEFAULT_MAX_PENDING = 1 << 20
DEFAULT_USER_AGENT = "stream-talk/0.1"
DEFAULT_VOICE = "jf_alpha"

# Kokoro voices grouped by language prefix
KOKORO_VOICES: tuple[str, ...] = (
    # American English (lang_code='a')
    "af_heart", "af_alloy", "af_bella", "af_nicole", "af_sarah", "af_sky",
    "am_adam", "am_echo", "am_michael", "am_onyx",
    # British English (lang_code='b')
    "bf_alice", "bf_emma", "bm_daniel", "bm_george",
    # Japanese (lang_code='j')
    "jf_alpha", "jf_gongitsune", "jf_nezumi", "jf_tebukuro", "jm_kumo",
    # Mandarin Chinese (lang_code='z')
    "zf_xiaobei", "zf_xiaoni", "zm_yunjian", "zm_yunxi",
    # Spanish (lang_code='e')
    "ef_dora", "em_alex",
    # French (lang_code='f')
    "ff_siwis",
)

LangCode = Literal["a", "b", "j", "z", "e", "f", "h", "i", "p"]

SpeakField = Literal["actor", "body"]


@dataclass(frozen=True, slots=True)
class Credentials:
    """
    Credentials passed through to the streaming endpoint.

    HTTP Basic auth is used when ``username`` is set, otherwise ``token`` is
    sent as a bearer token. Secrets are kept out of ``repr``.
    """

    username: str | None = None
    password: str | None = field(default=None, repr=False)
    token: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.username is None and self.token is None:
            raise ValueError("credentials need a username or a token")
        if self.username is not None and self.token is not None:
            raise ValueError("use either username/password or token, not both")

    @property
    def auth(self) -> httpx.BasicAuth | None:
        if self.username is None:
            return None
        return httpx.BasicAuth(self.username, self.password or "")

    @property
    def headers(self) -> dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """
    Parameters for one streaming session.

    Attributes:
        host: Endpoint host name
        path: Request path, starting with "/"
        port: TCP port (HTTPS)
        params: Query parameters, e.g. {"track": "keyword"}
        credentials: Optional credentials for the endpoint
        connect_timeout: Seconds allowed for connecting
        read_timeout: Seconds allowed between chunks (None = wait forever)
        max_pending: Bytes the chunk buffer may hold without a record boundary
        user_agent: User-Agent header value
    """

    host: str = DEFAULT_HOST
    path: str = DEFAULT_PATH
    port: int = 443
    params: Mapping[str, str] = field(default_factory=dict)
    credentials: Credentials | None = None
    connect_timeout: float = 10.0
    read_timeout: float | None = None
    max_pending: int = DEFAULT_MAX_PENDING
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.host:
            raise ValueError("host must not be empty")
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/', got {self.path!r}")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")
        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive or None, got {self.read_timeout}")
        if self.max_pending <= 0:
            raise ValueError(f"max_pending must be positive, got {self.max_pending}")

    @property
    def url(self) -> str:
        if self.port == 443:
            return f"https://{self.host}{self.path}"
        return f"https://{self.host}:{self.port}{self.path}"

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.connect_timeout, read=self.read_timeout)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.credentials is not None:
            headers.update(self.credentials.headers)
        return headers


@dataclass(frozen=True, slots=True)
class SpeechConfig:
    """
    Immutable speech configuration.

    Attributes:
        voice: Kokoro voice name; its prefix selects the language pipeline
        speed: Speech speed multiplier (1.0 = normal)
        sample_rate: Audio sample rate in Hz (Kokoro uses 24000)
        channels: Number of audio channels (1 = mono)
        device: Device to run on ("cuda", "mps", "cpu", or None for auto-detect)
    """

    voice: str = DEFAULT_VOICE
    speed: float = 1.0
    sample_rate: int = 24000
    channels: int = 1
    device: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.voice:
            raise ValueError("voice must not be empty")
        if self.speed <= 0:
            raise ValueError(f"speed must be positive, got {self.speed}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.channels not in (1, 2):
            raise ValueError(f"channels must be 1 or 2, got {self.channels}")
        if self.device is not None and self.device not in ("cuda", "mps", "cpu"):
            raise ValueError(f"device must be 'cuda', 'mps', 'cpu', or None, got {self.device}")


@dataclass(frozen=True, slots=True)
class PlaybackConfig:
    """
    Audio playback configuration.

    Attributes:
        device_index: PyAudio device index (None = default device)
        frames_per_buffer: Buffer size for PyAudio stream
        muted: If True, skip actual audio output (still generates chunks)
    """

    device_index: int | None = None
    frames_per_buffer: int = 512
    muted: bool = False

    def __post_init__(self) -> None:
        if self.device_index is not None and self.device_index < 0:
            raise ValueError(f"device_index must be >= 0, got {self.device_index}")
        if self.frames_per_buffer <= 0:
            raise ValueError(f"frames_per_buffer must be positive, got {self.frames_per_buffer}")


def get_lang_code(voice: str) -> LangCode:
    """
    Determine the Kokoro language code from a voice name.

    Args:
        voice: Voice name such as "jf_alpha"

    Returns:
        Single-character language code ("a" when unknown)
    """
    prefix = voice[:2].lower() if len(voice) >= 2 else ""

    prefix_map: dict[str, LangCode] = {
        "af": "a", "am": "a",  # American English
        "bf": "b", "bm": "b",  # British English
        "jf": "j", "jm": "j",  # Japanese
        "zf": "z", "zm": "z",  # Mandarin Chinese
        "ef": "e", "em": "e",  # Spanish
        "ff": "f",             # French
        "hf": "h", "hm": "h",  # Hindi
        "if": "i", "im": "i",  # Italian
        "pf": "p", "pm": "p",  # Brazilian Portuguese
    }
    if prefix in prefix_map:
        return prefix_map[prefix]

    first_char = voice[0].lower() if voice else "a"
    if first_char in "abjzefhip":
        return first_char  # type: ignore[return-value]
    return "a"
