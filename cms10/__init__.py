"""
Myself-BBS CMS10 – episode play-URL layer.

Classifies scraped per-episode tokens, derives streaming manifest URLs from
them and composes the ``vod_play_url`` strings CMS10 clients expect.  A thin
FastAPI interface lives in ``cms10.server``.

Quick start (Python)::

    from cms10 import convert_play_url_enhanced, PlayUrlConfig

    convert_play_url_enhanced({'第 01 話': 'play/46442/001'}, 46442)

Quick start (REST)::

    uvicorn cms10.server:app --reload
"""

from cms10.cache import FormatDetectionCache
from cms10.composer import (
    build_play_url,
    compose_play_url,
    convert_play_url,
    convert_play_url_enhanced,
    parse_play_url,
)
from cms10.episode_detector import (
    classify_token,
    detect_episodes_format,
    get_format_detection_report,
    parse_token,
    validate_episodes_data,
)
from cms10.errors import (
    AllEpisodesUnresolvableError,
    EmptyEpisodeSetError,
    EpisodeResolutionError,
    MalformedTokenError,
    SliceError,
    UnrecognizedShapeError,
)
from cms10.models import (
    EpisodeFormat,
    FormatDetectionResult,
    PlaybackComposition,
    ResolutionResult,
    ResolvedEpisode,
    TitleRecord,
)
from cms10.resolver import resolve_episodes
from cms10.settings import PlayUrlConfig
from cms10.url_generators import (
    UrlGenerationStats,
    derive_from_legacy_pair,
    derive_from_opaque_identifier,
    derive_from_path_reference,
    generate_fallback_url,
    validate_generated_url,
)

__all__ = [
    # Models
    'EpisodeFormat',
    'FormatDetectionResult',
    'PlaybackComposition',
    'ResolutionResult',
    'ResolvedEpisode',
    'TitleRecord',
    'PlayUrlConfig',
    # Errors
    'EpisodeResolutionError',
    'MalformedTokenError',
    'UnrecognizedShapeError',
    'SliceError',
    'EmptyEpisodeSetError',
    'AllEpisodesUnresolvableError',
    # Pipeline
    'classify_token',
    'parse_token',
    'detect_episodes_format',
    'validate_episodes_data',
    'get_format_detection_report',
    'FormatDetectionCache',
    'derive_from_path_reference',
    'derive_from_opaque_identifier',
    'derive_from_legacy_pair',
    'generate_fallback_url',
    'validate_generated_url',
    'UrlGenerationStats',
    'resolve_episodes',
    'compose_play_url',
    'build_play_url',
    'convert_play_url_enhanced',
    'convert_play_url',
    'parse_play_url',
]
