"""
Episode-token format detection.

Classifies opaque per-episode tokens into one of the known encodings and
summarises a title's whole episode set.

Usage::

    from cms10.episode_detector import classify_token, detect_episodes_format

    classify_token('play/46442/001')     # 'path_reference'
    classify_token('AgADMg4AAvWkAVc')    # 'opaque_identifier'
"""

from __future__ import annotations

import re
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from cms10.models import (
    EpisodeFormat,
    EpisodesValidation,
    FormatDetectionResult,
    LegacyPair,
    OpaqueIdentifier,
    PathReference,
    TokenDetection,
    UnrecognizedToken,
)

logger = logging.getLogger(__name__)

PATH_REFERENCE_RE = re.compile(r'^play/([0-9]+)/([0-9]+)$')
OPAQUE_IDENTIFIER_RE = re.compile(r'^[A-Za-z0-9_-]+$')
OPAQUE_MIN_LENGTH = 10
OPAQUE_MAX_LENGTH = 30

LOW_CONFIDENCE_THRESHOLD = 0.8

_EPISODE_NUMBER_RE = re.compile(r'[0-9]+')


# ---------------------------------------------------------------------------
# Single-token classification
# ---------------------------------------------------------------------------

def classify_token(value: Any) -> str:
    """Return the encoding of a single episode token.

    Never raises.  Path references are checked first so they can never be
    reported as opaque identifiers.
    """
    if not value or not isinstance(value, str):
        return EpisodeFormat.UNKNOWN

    trimmed = value.strip()

    if PATH_REFERENCE_RE.match(trimmed):
        return EpisodeFormat.PATH_REFERENCE

    if (OPAQUE_IDENTIFIER_RE.match(trimmed)
            and OPAQUE_MIN_LENGTH <= len(trimmed) <= OPAQUE_MAX_LENGTH):
        return EpisodeFormat.OPAQUE_IDENTIFIER

    return EpisodeFormat.UNKNOWN


def is_legacy_pair(value: Any) -> bool:
    """True for a two-item ``[contentId, episodeId]`` list or tuple."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return False
    return all(isinstance(v, (str, int)) and not isinstance(v, bool) for v in value)


def parse_token(value: Any):
    """Turn a raw token into one of the closed token variants."""
    if is_legacy_pair(value):
        return LegacyPair(content_id=str(value[0]).strip(),
                          episode_id=str(value[1]).strip())

    fmt = classify_token(value)
    if fmt == EpisodeFormat.PATH_REFERENCE:
        trimmed = value.strip()
        content_id, episode_id = PATH_REFERENCE_RE.match(trimmed).groups()
        return PathReference(token=trimmed, content_id=content_id, episode_id=episode_id)
    if fmt == EpisodeFormat.OPAQUE_IDENTIFIER:
        return OpaqueIdentifier(token=value.strip())
    return UnrecognizedToken(value=value)


def extract_episode_number(label: Any) -> int:
    """First run of ASCII digits in *label* as an int, 0 when absent."""
    if not isinstance(label, str):
        return 0
    match = _EPISODE_NUMBER_RE.search(label)
    return int(match.group(0)) if match else 0


# ---------------------------------------------------------------------------
# Whole-set detection
# ---------------------------------------------------------------------------

def detect_episodes_format(episodes: Any) -> FormatDetectionResult:
    """Classify every token of *episodes* and pick the dominant encoding.

    The dominant format is a known shape only when all classifiable tokens
    share it.  A set holding both shapes comes back as ``unknown`` with
    ``is_mixed=True`` so the resolver can fall back to per-token dispatch.
    """
    if not episodes or not isinstance(episodes, Mapping):
        error = ('Episodes data is empty' if isinstance(episodes, Mapping)
                 else 'Episodes data is invalid or empty')
        return FormatDetectionResult(
            format_counts={fmt: 0 for fmt in EpisodeFormat.CLASSIFIABLE},
            error=error,
        )

    format_counts = {fmt: 0 for fmt in EpisodeFormat.CLASSIFIABLE}
    detection_results = []
    legacy_pairs = 0

    for name, value in episodes.items():
        fmt = classify_token(value)
        format_counts[fmt] += 1
        if fmt == EpisodeFormat.UNKNOWN and is_legacy_pair(value):
            legacy_pairs += 1
        detection_results.append(TokenDetection(name=name, value=value, format=fmt))

    total = len(detection_results)
    path_count = format_counts[EpisodeFormat.PATH_REFERENCE]
    opaque_count = format_counts[EpisodeFormat.OPAQUE_IDENTIFIER]

    dominant = EpisodeFormat.UNKNOWN
    confidence = 0.0
    if path_count > 0 and opaque_count == 0:
        dominant = EpisodeFormat.PATH_REFERENCE
        confidence = path_count / total
    elif opaque_count > 0 and path_count == 0:
        dominant = EpisodeFormat.OPAQUE_IDENTIFIER
        confidence = opaque_count / total

    result = FormatDetectionResult(
        format=dominant,
        confidence=confidence,
        total_episodes=total,
        valid_episodes=total - format_counts[EpisodeFormat.UNKNOWN],
        format_counts=format_counts,
        detection_results=detection_results,
        is_mixed=path_count > 0 and opaque_count > 0,
        has_unknown=format_counts[EpisodeFormat.UNKNOWN] > 0,
        legacy_pairs=legacy_pairs,
    )
    logger.debug("Detected %s (%s, confidence %.2f) over %d episodes",
                 result.format, result.outcome, result.confidence, total)
    return result


# ---------------------------------------------------------------------------
# Data validation / reporting
# ---------------------------------------------------------------------------

def validate_episodes_data(episodes: Any) -> EpisodesValidation:
    """Structural sanity check of an episode mapping."""
    errors = []
    warnings = []

    if episodes is None:
        errors.append('Episodes data is None')
        return EpisodesValidation(is_valid=False, errors=errors, warnings=warnings)

    if isinstance(episodes, (list, tuple)):
        errors.append('Episodes data must not be a list')
        return EpisodesValidation(is_valid=False, errors=errors, warnings=warnings)

    if not isinstance(episodes, Mapping):
        errors.append('Episodes data must be a mapping')
        return EpisodesValidation(is_valid=False, errors=errors, warnings=warnings)

    if not episodes:
        warnings.append('Episodes data is empty')

    for name, value in episodes.items():
        if not name or not isinstance(name, str):
            errors.append(f'Invalid episode name: {name!r}')
        elif not name.strip():
            warnings.append(f'Episode name is blank: {name!r}')

        if is_legacy_pair(value):
            continue
        if not value or not isinstance(value, str):
            errors.append(f'Invalid episode value: {value!r} (name: {name})')
        elif not value.strip():
            warnings.append(f'Episode value is blank: {value!r} (name: {name})')

    return EpisodesValidation(is_valid=not errors, errors=errors, warnings=warnings)


def generate_recommendations(validation: EpisodesValidation,
                             detection: FormatDetectionResult) -> list:
    """Human-readable hints derived from a validation + detection pair."""
    recommendations = []

    if not validation.is_valid:
        recommendations.append({
            'type': 'error',
            'message': 'Fix the malformed episode data',
            'details': validation.errors,
        })

    if validation.warnings:
        recommendations.append({
            'type': 'warning',
            'message': 'Check episode data quality',
            'details': validation.warnings,
        })

    if detection.confidence < LOW_CONFIDENCE_THRESHOLD:
        recommendations.append({
            'type': 'warning',
            'message': (f'Low format detection confidence '
                        f'({detection.confidence * 100:.1f}%), check data consistency'),
        })

    if detection.is_mixed:
        recommendations.append({
            'type': 'info',
            'message': 'Mixed formats detected, episodes will be resolved one by one',
            'details': detection.format_counts,
        })

    if detection.has_unknown:
        unknown = detection.format_counts.get(EpisodeFormat.UNKNOWN, 0)
        recommendations.append({
            'type': 'warning',
            'message': f'{unknown} episode token(s) could not be recognised',
            'details': 'These episodes may only get fallback URLs',
        })

    return recommendations


def get_format_detection_report(episodes: Any) -> dict:
    """Validation, detection and recommendations in one dict."""
    validation = validate_episodes_data(episodes)
    detection = detect_episodes_format(episodes)

    return {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'validation': validation.to_dict(),
        'detection': detection.to_dict(),
        'summary': {
            'is_valid': validation.is_valid,
            'format': detection.format,
            'outcome': detection.outcome,
            'confidence': detection.confidence,
            'total_episodes': detection.total_episodes,
            'valid_episodes': detection.valid_episodes,
            'has_issues': bool(validation.errors or validation.warnings),
            'is_mixed': detection.is_mixed,
        },
        'recommendations': generate_recommendations(validation, detection),
    }
