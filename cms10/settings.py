"""
Runtime settings for play-URL generation.

Values come from ``config.py`` when present (see ``config.example.py``),
otherwise the defaults below apply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = '720p'
DEFAULT_BASE_URL = 'https://myself-bbs.jacob.workers.dev'
DEFAULT_STREAM_HOST = 'https://vpx05.myself-bbs.com'
DEFAULT_CACHE_SIZE = 100
DEFAULT_URL_CHECK_TIMEOUT = 5

try:
    from config import (
        CMS10_QUALITY,
        CMS10_ENABLE_FALLBACK,
        CMS10_LEGACY_ON_UNRECOGNIZED,
        CMS10_BASE_URL,
        CMS10_STREAM_HOST,
    )
except ImportError:
    CMS10_QUALITY = DEFAULT_QUALITY
    CMS10_ENABLE_FALLBACK = True
    CMS10_LEGACY_ON_UNRECOGNIZED = True
    CMS10_BASE_URL = DEFAULT_BASE_URL
    CMS10_STREAM_HOST = DEFAULT_STREAM_HOST

try:
    from config import FORMAT_CACHE_SIZE
except ImportError:
    FORMAT_CACHE_SIZE = DEFAULT_CACHE_SIZE

try:
    from config import URL_CHECK_TIMEOUT
except ImportError:
    URL_CHECK_TIMEOUT = DEFAULT_URL_CHECK_TIMEOUT


def _check_host(name: str, value) -> str:
    if not isinstance(value, str) or not value.startswith(('http://', 'https://')):
        raise ValueError(f'{name} must be an http(s) URL, got {value!r}')
    return value.rstrip('/')


@dataclass
class PlayUrlConfig:
    """Per-request play-URL options.

    Attributes:
        quality: VPX rendition (``720p``, ``1080p`` or ``480p``).  Anything
                 else is accepted here and downgraded to 720p by the deriver.
        enable_fallback: Synthesize a placeholder URL for failed episodes
                         instead of dropping them.
        base_url: Host of the legacy ``/m3u8/<id>/<ep>`` scheme, also used
                  for fallback URLs.
        stream_host: Host serving the VPX and HLS manifests.
        legacy_on_unrecognized: When no token is classifiable and fallback
                                is enabled, run every token through the
                                legacy scheme instead of failing each one.
    """
    quality: str = DEFAULT_QUALITY
    enable_fallback: bool = True
    base_url: str = DEFAULT_BASE_URL
    stream_host: str = DEFAULT_STREAM_HOST
    legacy_on_unrecognized: bool = True

    def __post_init__(self):
        if not isinstance(self.enable_fallback, bool):
            raise TypeError('enable_fallback must be a bool')
        if not isinstance(self.legacy_on_unrecognized, bool):
            raise TypeError('legacy_on_unrecognized must be a bool')
        if not isinstance(self.quality, str):
            raise TypeError('quality must be a string')
        self.base_url = _check_host('base_url', self.base_url)
        self.stream_host = _check_host('stream_host', self.stream_host)

    @classmethod
    def from_settings(cls, **overrides) -> 'PlayUrlConfig':
        """Build a config from ``config.py`` values, then apply *overrides*
        (``None`` overrides are ignored so query parameters can be passed
        straight through)."""
        base = cls(
            quality=CMS10_QUALITY,
            enable_fallback=CMS10_ENABLE_FALLBACK,
            base_url=CMS10_BASE_URL,
            stream_host=CMS10_STREAM_HOST,
            legacy_on_unrecognized=CMS10_LEGACY_ON_UNRECOGNIZED,
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(base, **overrides) if overrides else base
