"""
Batch resolution of a title's episode set into per-episode URL results.

Strategy selection:

* homogeneous set  -> every token through the single matching deriver
* mixed set        -> each token classified and routed on its own
* unrecognised set -> legacy flat scheme when fallback is enabled (and the
                      ``legacy_on_unrecognized`` policy allows it), otherwise
                      a hard failure with no episodes
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from cms10.cache import FormatDetectionCache
from cms10.episode_detector import detect_episodes_format, parse_token
from cms10.models import (
    EpisodeFormat,
    LegacyPair,
    OpaqueIdentifier,
    PathReference,
    ResolutionResult,
)
from cms10.settings import PlayUrlConfig
from cms10.url_generators import UrlGenerationStats, batch_generate_urls, derive_episodes

logger = logging.getLogger(__name__)

STRATEGY_NONE = 'none'
STRATEGY_BATCH = 'batch'
STRATEGY_PER_TOKEN = 'per_token'
STRATEGY_LEGACY = 'legacy'

_VARIANT_FORMATS = {
    PathReference: EpisodeFormat.PATH_REFERENCE,
    OpaqueIdentifier: EpisodeFormat.OPAQUE_IDENTIFIER,
    LegacyPair: EpisodeFormat.LEGACY_PAIR,
}


def token_format(value: Any) -> str:
    """Format of a single token via its parsed variant (unknown if none)."""
    return _VARIANT_FORMATS.get(type(parse_token(value)), EpisodeFormat.UNKNOWN)


def resolve_episodes(episodes: Any, title_id: Any,
                     config: Optional[PlayUrlConfig] = None,
                     cache: Optional[FormatDetectionCache] = None,
                     stats: Optional[UrlGenerationStats] = None,
                     max_workers: Optional[int] = None) -> ResolutionResult:
    """Resolve every episode of one title.

    Args:
        episodes: ``{label: token}`` mapping.
        title_id: Title identifier, carried through for logging and fallback.
        config: Play-URL options; defaults to ``PlayUrlConfig()``.
        cache: Optional format-detection cache.
        stats: Optional generation counters.
        max_workers: Resolve on a thread pool of this size; results keep
                     input order either way.

    Returns:
        ``ResolutionResult`` – failures are per-episode entries, not
        exceptions.  ``hard_failure`` is set only when nothing could be
        attempted.
    """
    config = config or PlayUrlConfig()

    if not isinstance(episodes, Mapping) or not episodes:
        logger.debug("Title %s has no episode data", title_id)
        return ResolutionResult(title_id=title_id, strategy=STRATEGY_NONE)

    detection = cache.detect(episodes) if cache is not None else detect_episodes_format(episodes)

    if detection.format in (EpisodeFormat.PATH_REFERENCE, EpisodeFormat.OPAQUE_IDENTIFIER):
        strategy = STRATEGY_BATCH
        resolved = batch_generate_urls(episodes, detection.format, config, stats, max_workers)

    elif detection.is_mixed:
        strategy = STRATEGY_PER_TOKEN
        tasks = [(name, value, token_format(value)) for name, value in episodes.items()]
        resolved = derive_episodes(tasks, config, stats, max_workers)

    elif config.enable_fallback and config.legacy_on_unrecognized:
        strategy = STRATEGY_LEGACY
        logger.info("Title %s: no recognised episode format, using legacy scheme", title_id)
        tasks = [(name, value, EpisodeFormat.LEGACY_PAIR) for name, value in episodes.items()]
        resolved = derive_episodes(tasks, config, stats, max_workers)

    elif config.enable_fallback or detection.legacy_pairs:
        strategy = STRATEGY_PER_TOKEN
        tasks = [(name, value, token_format(value)) for name, value in episodes.items()]
        resolved = derive_episodes(tasks, config, stats, max_workers)

    else:
        logger.warning("Title %s: no recognised episode format and fallback disabled", title_id)
        return ResolutionResult(title_id=title_id, detection=detection,
                                strategy=STRATEGY_NONE, hard_failure=True)

    result = ResolutionResult(title_id=title_id, episodes=resolved,
                              detection=detection, strategy=strategy)
    logger.debug("Title %s resolved via %s: %d ok, %d failed",
                 title_id, strategy, result.successful, result.failed)
    return result
