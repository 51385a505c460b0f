"""
CMS10 manifest URL generators.

One pure deriver per token encoding, the placeholder URL used when a
deriver fails, a validator for generated URLs and an injectable counter of
generation outcomes.

Examples::

    derive_from_path_reference('play/46442/001')
    # 'https://vpx05.myself-bbs.com/vpx/46442/001/720p.m3u8'

    derive_from_opaque_identifier('AgADMg4AAvWkAVc')
    # 'https://vpx05.myself-bbs.com/hls/Mg/4A/Av/AgADMg4AAvWkAVc/index.m3u8'
"""

from __future__ import annotations

import re
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from cms10.episode_detector import (
    OPAQUE_IDENTIFIER_RE,
    OPAQUE_MIN_LENGTH,
    is_legacy_pair,
)
from cms10.errors import (
    EpisodeResolutionError,
    MalformedTokenError,
    SliceError,
    UnrecognizedShapeError,
)
from cms10.models import EpisodeFormat, ResolvedEpisode, UrlValidation
from cms10.settings import (
    DEFAULT_BASE_URL,
    DEFAULT_QUALITY,
    DEFAULT_STREAM_HOST,
    PlayUrlConfig,
)

logger = logging.getLogger(__name__)

VIDEO_QUALITIES = ('720p', '1080p', '480p')

VPX_TEMPLATE = '{host}/vpx/{path}/{quality}.m3u8'
HLS_TEMPLATE = '{host}/hls/{segments}/index.m3u8'
LEGACY_TEMPLATE = '{host}/m3u8/{content_id}/{episode_id}'

_PLAY_PATH_TAIL_RE = re.compile(r'^[0-9]+/[0-9]+$')
_FALLBACK_NUMBER_RE = re.compile(r'[0-9]+')

_VPX_PATH_RE = re.compile(r'/vpx/[0-9]+/[0-9]+/(720p|1080p|480p)\.m3u8$')
_HLS_PATH_RE = re.compile(
    r'/hls/[A-Za-z0-9_-]+/[A-Za-z0-9_-]+/[A-Za-z0-9_-]+/[A-Za-z0-9_-]+/index\.m3u8$'
)
_LEGACY_PATH_RE = re.compile(r'/m3u8/[^/]+/[^/]+$')


# ---------------------------------------------------------------------------
# Derivers
# ---------------------------------------------------------------------------

def derive_from_path_reference(token: Any, quality: str = DEFAULT_QUALITY,
                               stream_host: str = DEFAULT_STREAM_HOST) -> str:
    """``play/A/B`` → ``<host>/vpx/A/B/<quality>.m3u8``.

    An unsupported *quality* is downgraded to 720p with a warning.

    Raises:
        MalformedTokenError: token is not ``play/<digits>/<digits>``.
    """
    if not token or not isinstance(token, str):
        raise MalformedTokenError('Play path must be a non-empty string', token)

    trimmed = token.strip()
    if not trimmed.startswith('play/'):
        raise MalformedTokenError(f'Invalid play path: {trimmed}', token)

    path = trimmed[len('play/'):]
    if not _PLAY_PATH_TAIL_RE.match(path):
        raise MalformedTokenError(
            f'Invalid play path: {trimmed}, expected play/<digits>/<digits>', token)

    if quality not in VIDEO_QUALITIES:
        logger.warning("Unsupported video quality %r, using %s", quality, DEFAULT_QUALITY)
        quality = DEFAULT_QUALITY

    return VPX_TEMPLATE.format(host=stream_host.rstrip('/'), path=path, quality=quality)


def split_encoded_id(encoded_id: str) -> str:
    """``AgADMg4AAvWkAVc`` → ``Mg/4A/Av/AgADMg4AAvWkAVc``."""
    segments = (encoded_id[4:6], encoded_id[6:8], encoded_id[8:10])
    if not all(len(s) == 2 for s in segments):
        raise SliceError(f'Cannot split encoded id: {encoded_id}', encoded_id)
    return '/'.join(segments + (encoded_id,))


def derive_from_opaque_identifier(token: Any,
                                  stream_host: str = DEFAULT_STREAM_HOST) -> str:
    """Opaque id → ``<host>/hls/<[4:6]>/<[6:8]>/<[8:10]>/<id>/index.m3u8``.

    Raises:
        MalformedTokenError: bad charset or shorter than 10 characters.
    """
    if not token or not isinstance(token, str):
        raise MalformedTokenError('Encoded id must be a non-empty string', token)

    trimmed = token.strip()
    if not OPAQUE_IDENTIFIER_RE.match(trimmed):
        raise MalformedTokenError(f'Invalid encoded id: {trimmed}', token)
    if len(trimmed) < OPAQUE_MIN_LENGTH:
        raise MalformedTokenError(
            f'Encoded id too short: {trimmed}, needs at least {OPAQUE_MIN_LENGTH} characters',
            token)

    return HLS_TEMPLATE.format(host=stream_host.rstrip('/'),
                               segments=split_encoded_id(trimmed))


def derive_from_legacy_pair(pair: Any, base_url: str = DEFAULT_BASE_URL) -> str:
    """``[contentId, episodeId]`` → ``<base_url>/m3u8/<contentId>/<episodeId>``.

    Raises:
        UnrecognizedShapeError: *pair* is not a two-item list/tuple.
    """
    if not is_legacy_pair(pair):
        raise UnrecognizedShapeError(f'Not a legacy episode pair: {pair!r}', pair)

    content_id, episode_id = (str(v).strip() for v in pair)
    if not content_id or not episode_id:
        raise MalformedTokenError(f'Legacy pair has an empty part: {pair!r}', pair)

    return LEGACY_TEMPLATE.format(host=base_url.rstrip('/'),
                                  content_id=content_id, episode_id=episode_id)


def generate_fallback_url(label: Any, title_id: Any,
                          base_url: str = DEFAULT_BASE_URL) -> str:
    """Best-effort placeholder built from the label's first number.

    ``('第 05 話', 9)`` → ``<base_url>/m3u8/9/005``; labels without digits use
    episode ``001``.  Never raises.
    """
    match = _FALLBACK_NUMBER_RE.search(label) if isinstance(label, str) else None
    number = match.group(0).zfill(3) if match else '001'
    host = base_url.rstrip('/') if isinstance(base_url, str) else DEFAULT_BASE_URL
    return f'{host}/m3u8/{title_id}/{number}'


def get_url_generator(fmt: str) -> Callable[..., str]:
    """Deriver for a detected format; ``config`` kwargs are not bound here."""
    if fmt == EpisodeFormat.PATH_REFERENCE:
        return derive_from_path_reference
    if fmt == EpisodeFormat.OPAQUE_IDENTIFIER:
        return derive_from_opaque_identifier
    raise UnrecognizedShapeError(f'Unsupported episode format: {fmt}')


def derive_episode(name: str, value: Any, fmt: str,
                   config: Optional[PlayUrlConfig] = None,
                   stats: Optional['UrlGenerationStats'] = None) -> ResolvedEpisode:
    """Derive one episode's URL with the deriver for *fmt*.

    Legacy pairs always go through the legacy scheme whatever *fmt* says.
    Deriver errors are returned as a failure result, never raised.
    """
    config = config or PlayUrlConfig()
    if is_legacy_pair(value):
        fmt = EpisodeFormat.LEGACY_PAIR

    try:
        if fmt == EpisodeFormat.PATH_REFERENCE:
            url = derive_from_path_reference(value, config.quality, config.stream_host)
        elif fmt == EpisodeFormat.OPAQUE_IDENTIFIER:
            url = derive_from_opaque_identifier(value, config.stream_host)
        elif fmt == EpisodeFormat.LEGACY_PAIR:
            url = derive_from_legacy_pair(value, config.base_url)
        else:
            raise UnrecognizedShapeError(f'Unrecognized episode token: {value!r}', value)
    except EpisodeResolutionError as exc:
        logger.warning("URL generation failed (%s): %s", name, exc)
        if stats is not None:
            stats.record(fmt, False, exc)
        return ResolvedEpisode.failed(name, value, exc, fmt)

    if stats is not None:
        stats.record(fmt, True)
    return ResolvedEpisode.ok(name, value, url, fmt)


def derive_episodes(tasks: list, config: Optional[PlayUrlConfig] = None,
                    stats: Optional['UrlGenerationStats'] = None,
                    max_workers: Optional[int] = None) -> List[ResolvedEpisode]:
    """Derive ``(name, value, fmt)`` tasks in input order, optionally on a
    thread pool."""
    config = config or PlayUrlConfig()

    def derive_one(task):
        name, value, fmt = task
        return derive_episode(name, value, fmt, config, stats)

    if max_workers and max_workers > 1 and len(tasks) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(derive_one, tasks))
    return [derive_one(task) for task in tasks]


def batch_generate_urls(episodes: Mapping, fmt: str,
                        config: Optional[PlayUrlConfig] = None,
                        stats: Optional['UrlGenerationStats'] = None,
                        max_workers: Optional[int] = None) -> List[ResolvedEpisode]:
    """Run every token of *episodes* through the deriver for *fmt*.

    Individual failures are captured as failure results; only an unsupported
    *fmt* or a non-mapping *episodes* raises.
    """
    if not isinstance(episodes, Mapping):
        raise TypeError('episodes must be a mapping')
    get_url_generator(fmt)

    tasks = [(name, value, fmt) for name, value in episodes.items()]
    return derive_episodes(tasks, config, stats, max_workers)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_generated_url(url: Any, stream_host: str = DEFAULT_STREAM_HOST) -> UrlValidation:
    """Check that *url* has one of the three known manifest layouts."""
    errors = []
    url_type = 'unknown'

    if not url or not isinstance(url, str):
        return UrlValidation(is_valid=False, type=url_type,
                             errors=['URL must be a non-empty string'])

    parsed = urlparse(url)
    if parsed.scheme != 'https':
        errors.append('URL must use https')
    if not parsed.netloc:
        errors.append('URL has no host')

    path = parsed.path
    if '/vpx/' in path and path.endswith('.m3u8'):
        url_type = 'vpx'
        if not _VPX_PATH_RE.search(path):
            errors.append('Malformed VPX path')
    elif '/hls/' in path and path.endswith('/index.m3u8'):
        url_type = 'hls'
        if not _HLS_PATH_RE.search(path):
            errors.append('Malformed HLS path')
    elif '/m3u8/' in path:
        url_type = 'legacy'
        if not _LEGACY_PATH_RE.search(path):
            errors.append('Malformed legacy path')
    else:
        errors.append('Unknown URL layout')

    if url_type in ('vpx', 'hls'):
        expected = urlparse(stream_host).netloc
        if expected and parsed.netloc != expected:
            errors.append(f'Unexpected stream host: {parsed.netloc}')

    return UrlValidation(is_valid=not errors, type=url_type, errors=errors)


# ---------------------------------------------------------------------------
# Generation statistics
# ---------------------------------------------------------------------------

class UrlGenerationStats:
    """Thread-safe counters of derivation outcomes, overall and per format."""

    MAX_ERRORS = 100

    def __init__(self):
        self.lock = Lock()
        self.reset()

    def reset(self):
        with self.lock:
            self.total = 0
            self.successful = 0
            self.failed = 0
            self.by_format: Dict[str, Dict[str, int]] = {}
            self.errors: List[Dict] = []

    def record(self, fmt: str, success: bool, error: Optional[Exception] = None):
        with self.lock:
            bucket = self.by_format.setdefault(fmt, {'total': 0, 'successful': 0, 'failed': 0})
            self.total += 1
            bucket['total'] += 1
            if success:
                self.successful += 1
                bucket['successful'] += 1
                return
            self.failed += 1
            bucket['failed'] += 1
            if error is not None:
                self.errors.append({
                    'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
                    'format': fmt,
                    'error': str(error),
                })
                del self.errors[:-self.MAX_ERRORS]

    @property
    def success_rate(self) -> float:
        with self.lock:
            return self.successful / self.total if self.total else 0.0

    def get_statistics(self) -> Dict:
        with self.lock:
            return {
                'total': self.total,
                'successful': self.successful,
                'failed': self.failed,
                'success_rate': self.successful / self.total if self.total else 0.0,
                'by_format': {
                    fmt: dict(data, success_rate=(data['successful'] / data['total']
                                                  if data['total'] else 0.0))
                    for fmt, data in self.by_format.items()
                },
                'errors': list(self.errors),
            }
