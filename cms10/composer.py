"""
Playback-string composition.

Turns resolved episodes into the CMS10 ``vod_play_url`` wire format::

    第 01 話$https://...#第 02 話$https://...

Episodes are ordered by the first number in their label (0 when there is
none, ties keep input order).  ``$`` and ``#`` inside labels or URLs are not
escaped; downstream clients split on them verbatim.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Tuple, Union

from cms10.cache import FormatDetectionCache
from cms10.episode_detector import extract_episode_number, is_legacy_pair
from cms10.models import PlaybackComposition, ResolutionResult, ResolvedEpisode
from cms10.resolver import resolve_episodes
from cms10.settings import DEFAULT_BASE_URL, PlayUrlConfig
from cms10.url_generators import UrlGenerationStats, generate_fallback_url

logger = logging.getLogger(__name__)

EPISODE_SEPARATOR = '#'
LABEL_SEPARATOR = '$'
SOURCE_SEPARATOR = '$$$'


def sort_episodes(items: Iterable, key=lambda item: item[0]) -> list:
    """Stable ascending sort by the episode number found in ``key(item)``."""
    return sorted(items, key=lambda item: extract_episode_number(key(item)))


def compose_play_url(resolved: Union[ResolutionResult, List[ResolvedEpisode]],
                     title_id: Any,
                     config: Optional[PlayUrlConfig] = None) -> PlaybackComposition:
    """Order resolved episodes and join them into a play string.

    Failed episodes get a fallback URL when ``config.enable_fallback`` is
    set and are left out otherwise.  Title-level problems are reported on
    the returned object's ``error`` rather than raised.
    """
    config = config or PlayUrlConfig()

    if isinstance(resolved, ResolutionResult):
        if resolved.hard_failure:
            total = resolved.detection.total_episodes if resolved.detection else 0
            return PlaybackComposition.unresolvable(title_id, total)
        episodes = resolved.episodes
    else:
        episodes = list(resolved or [])

    if not episodes:
        return PlaybackComposition.empty(title_id)

    entries = []
    successful = fallback_count = omitted = 0

    for episode in sort_episodes(episodes, key=lambda e: e.name):
        if episode.success:
            successful += 1
            entries.append(f'{episode.name}{LABEL_SEPARATOR}{episode.url}')
        elif config.enable_fallback:
            fallback_count += 1
            url = generate_fallback_url(episode.name, title_id, config.base_url)
            logger.debug("Fallback URL for %s (%s): %s", episode.name, episode.error, url)
            entries.append(f'{episode.name}{LABEL_SEPARATOR}{url}')
        else:
            omitted += 1

    composition = PlaybackComposition(
        play_url=EPISODE_SEPARATOR.join(entries),
        title_id=title_id,
        total=len(episodes),
        successful=successful,
        fallback_count=fallback_count,
        omitted=omitted,
    )
    if not entries:
        composition = PlaybackComposition.unresolvable(title_id, len(episodes))

    logger.info("Title %s play URL: %d/%d episodes resolved (%.1f%%), %d fallback, %d omitted",
                title_id, successful, len(episodes), composition.success_rate * 100,
                fallback_count, omitted)
    return composition


def build_play_url(episodes: Any, title_id: Any,
                   config: Optional[PlayUrlConfig] = None,
                   cache: Optional[FormatDetectionCache] = None,
                   stats: Optional[UrlGenerationStats] = None) -> PlaybackComposition:
    """Resolve and compose in one go, keeping the diagnostics."""
    config = config or PlayUrlConfig()
    resolution = resolve_episodes(episodes, title_id, config, cache=cache, stats=stats)
    return compose_play_url(resolution, title_id, config)


def convert_play_url_enhanced(episodes: Any, title_id: Any,
                              config: Optional[PlayUrlConfig] = None,
                              cache: Optional[FormatDetectionCache] = None,
                              stats: Optional[UrlGenerationStats] = None) -> str:
    """Play string for *episodes*; ``''`` when there is nothing to play."""
    return build_play_url(episodes, title_id, config, cache, stats).play_url


def convert_play_url(episodes: Any, title_id: Any, base_url: str = DEFAULT_BASE_URL) -> str:
    """Legacy composer: only ``[contentId, episodeId]`` pairs are emitted.

    >>> convert_play_url({'第 01 話': ['1', '001']}, 123, 'https://api.example.com')
    '第 01 話$https://api.example.com/m3u8/1/001'
    """
    if not isinstance(episodes, Mapping):
        return ''

    base_url = base_url.rstrip('/')
    entries = []
    for name, data in sort_episodes(episodes.items()):
        if is_legacy_pair(data):
            content_id, episode_id = data
            entries.append(f'{name}{LABEL_SEPARATOR}{base_url}/m3u8/{content_id}/{episode_id}')
    return EPISODE_SEPARATOR.join(entries)


def parse_play_url(play_url: str) -> List[Tuple[str, str]]:
    """Split a play string the way CMS10 clients do.

    Only the first source (before ``$$$``) is read and entries whose URL is
    not http(s) are dropped.
    """
    if not play_url:
        return []

    main_source = play_url.split(SOURCE_SEPARATOR)[0]
    parsed = []
    for entry in main_source.split(EPISODE_SEPARATOR):
        parts = entry.split(LABEL_SEPARATOR)
        if len(parts) < 2:
            continue
        label, url = parts[0], parts[1]
        if url.startswith(('http://', 'https://')):
            parsed.append((label, url))
    return parsed
