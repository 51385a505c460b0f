"""
Error taxonomy for episode-reference resolution.

Derivers raise these; the batch resolver catches them per episode and turns
them into failure results, so none of them escape the composer.  The two
title-level errors are only raised on demand through
``PlaybackComposition.raise_for_status()``.
"""

from __future__ import annotations

from typing import Any, Optional


class EpisodeResolutionError(Exception):
    """Base class for every resolution failure.

    Attributes:
        reason: Stable machine-readable code (``'malformed_token'`` …).
        token: The offending episode token, when there is one.
    """
    reason = 'resolution_error'

    def __init__(self, message: str, token: Any = None):
        super().__init__(message)
        self.token = token

    def to_dict(self) -> dict:
        return {
            'reason': self.reason,
            'message': str(self),
            'token': self.token,
        }


class MalformedTokenError(EpisodeResolutionError):
    """Token looks like its claimed shape but fails structural validation."""
    reason = 'malformed_token'


class UnrecognizedShapeError(EpisodeResolutionError):
    """Token matches neither the path-reference nor the opaque-id shape."""
    reason = 'unrecognized_shape'


class SliceError(MalformedTokenError):
    """Opaque identifier too short to cut the three HLS path segments."""
    reason = 'slice_error'


class EmptyEpisodeSetError(EpisodeResolutionError):
    """Title has no episodes at all."""
    reason = 'empty_episode_set'

    def __init__(self, title_id: Optional[int] = None):
        super().__init__(f'No playback data for title {title_id}')
        self.title_id = title_id


class AllEpisodesUnresolvableError(EpisodeResolutionError):
    """Every episode failed and fallback URLs are disabled."""
    reason = 'all_episodes_unresolvable'

    def __init__(self, title_id: Optional[int] = None, failures: int = 0):
        super().__init__(
            f'All {failures} episode(s) of title {title_id} are unresolvable'
        )
        self.title_id = title_id
        self.failures = failures
