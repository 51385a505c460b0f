"""
Data models for the CMS10 playback layer.

All models use dataclasses for lightweight internal usage and easy
serialisation to dicts / JSON (for the FastAPI REST layer).
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from cms10.errors import (
    EpisodeResolutionError,
    EmptyEpisodeSetError,
    AllEpisodesUnresolvableError,
)


class EpisodeFormat:
    """Known episode-token encodings."""
    PATH_REFERENCE = 'path_reference'        # play/46442/001
    OPAQUE_IDENTIFIER = 'opaque_identifier'  # AgADMg4AAvWkAVc
    LEGACY_PAIR = 'legacy_pair'              # ["46442", "001"]
    UNKNOWN = 'unknown'

    CLASSIFIABLE = (PATH_REFERENCE, OPAQUE_IDENTIFIER, UNKNOWN)


# ---------------------------------------------------------------------------
# Token variants – produced once by ``parse_token`` and dispatched on by type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PathReference:
    """``play/<content>/<episode>`` token."""
    token: str
    content_id: str
    episode_id: str


@dataclass(frozen=True)
class OpaqueIdentifier:
    """Externally issued capability string (``[A-Za-z0-9_-]{10,30}``)."""
    token: str


@dataclass(frozen=True)
class LegacyPair:
    """Old ``[contentId, episodeId]`` pair, only understood by the flat scheme."""
    content_id: str
    episode_id: str


@dataclass(frozen=True)
class UnrecognizedToken:
    """Anything that is none of the above."""
    value: Any


# ---------------------------------------------------------------------------
# Format detection
# ---------------------------------------------------------------------------

@dataclass
class TokenDetection:
    """Classifier verdict for one episode."""
    name: str
    value: Any
    format: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FormatDetectionResult:
    """Outcome of classifying a whole episode set.

    ``format`` is a single known shape only when every classifiable token
    shares it.  A set holding both shapes is reported as ``unknown`` with
    ``is_mixed`` set, and ``confidence`` is the fraction of tokens that
    belong to the dominant shape (0 when there is none).
    """
    format: str = EpisodeFormat.UNKNOWN
    confidence: float = 0.0
    total_episodes: int = 0
    valid_episodes: int = 0
    format_counts: Dict[str, int] = field(default_factory=dict)
    detection_results: List[TokenDetection] = field(default_factory=list)
    is_mixed: bool = False
    has_unknown: bool = False
    legacy_pairs: int = 0
    error: str = ''
    from_cache: bool = field(default=False, compare=False)

    @property
    def outcome(self) -> str:
        """``'homogeneous'``, ``'mixed'``, ``'unrecognized'`` or ``'empty'``."""
        if self.total_episodes == 0:
            return 'empty'
        if self.is_mixed:
            return 'mixed'
        if self.format == EpisodeFormat.UNKNOWN:
            return 'unrecognized'
        return 'homogeneous'

    def to_dict(self) -> dict:
        d = asdict(self)
        d['outcome'] = self.outcome
        return d


@dataclass
class EpisodesValidation:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

@dataclass
class ResolvedEpisode:
    """Per-episode result: either a URL or a typed failure reason."""
    name: str
    value: Any
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None
    message: str = ''
    format: str = EpisodeFormat.UNKNOWN

    @classmethod
    def ok(cls, name: str, value: Any, url: str, fmt: str) -> 'ResolvedEpisode':
        return cls(name=name, value=value, success=True, url=url, format=fmt)

    @classmethod
    def failed(cls, name: str, value: Any, exc: EpisodeResolutionError,
               fmt: str) -> 'ResolvedEpisode':
        return cls(name=name, value=value, success=False, error=exc.reason,
                   message=str(exc), format=fmt)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ResolutionResult:
    """Everything the batch resolver produced for one title."""
    title_id: Any = None
    episodes: List[ResolvedEpisode] = field(default_factory=list)
    detection: Optional[FormatDetectionResult] = None
    strategy: str = 'none'
    hard_failure: bool = False

    @property
    def successful(self) -> int:
        return sum(1 for e in self.episodes if e.success)

    @property
    def failed(self) -> int:
        return len(self.episodes) - self.successful

    def to_dict(self) -> dict:
        return {
            'title_id': self.title_id,
            'episodes': [e.to_dict() for e in self.episodes],
            'detection': self.detection.to_dict() if self.detection else None,
            'strategy': self.strategy,
            'hard_failure': self.hard_failure,
        }


@dataclass
class PlaybackComposition:
    """Composed ``label$url#label$url`` string plus its diagnostics."""
    play_url: str = ''
    title_id: Any = None
    total: int = 0
    successful: int = 0
    fallback_count: int = 0
    omitted: int = 0
    error: Optional[EpisodeResolutionError] = None

    @property
    def success_rate(self) -> float:
        return self.successful / self.total if self.total else 0.0

    def raise_for_status(self) -> None:
        """Raise the title-level error, if any."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict:
        return {
            'play_url': self.play_url,
            'title_id': self.title_id,
            'total': self.total,
            'successful': self.successful,
            'fallback_count': self.fallback_count,
            'omitted': self.omitted,
            'success_rate': self.success_rate,
            'error': self.error.reason if self.error else None,
        }

    @classmethod
    def empty(cls, title_id: Any) -> 'PlaybackComposition':
        return cls(title_id=title_id, error=EmptyEpisodeSetError(title_id))

    @classmethod
    def unresolvable(cls, title_id: Any, failures: int) -> 'PlaybackComposition':
        return cls(title_id=title_id, total=failures, omitted=failures,
                   error=AllEpisodesUnresolvableError(title_id, failures))


@dataclass
class UrlValidation:
    is_valid: bool = False
    type: str = 'unknown'
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Scraped title record
# ---------------------------------------------------------------------------

@dataclass
class TitleRecord:
    """One anime title as produced by the forum scraper.

    Attributes:
        id: Forum thread id (``thread-<id>``).
        premiere: ``[year, month, day]``; ``[0, 0, 0]`` when unknown.
        episodes: ``{label: token}`` where token is a string or a legacy
                  ``[contentId, episodeId]`` pair.
        time: Last update as a Unix timestamp in milliseconds.
    """
    id: int
    title: str = ''
    category: List[str] = field(default_factory=list)
    premiere: List[int] = field(default_factory=list)
    ep: int = 0
    author: str = ''
    website: str = ''
    description: str = ''
    image: str = ''
    episodes: Dict[str, Any] = field(default_factory=dict)
    time: Optional[int] = None
    status: str = ''

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'TitleRecord':
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
