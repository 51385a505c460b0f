"""
Thin FastAPI REST layer over the play-URL pipeline.

Run with::

    uvicorn cms10.server:app --reload --port 8100
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from cms10.cache import FormatDetectionCache
from cms10.composer import build_play_url
from cms10.converters import batch_convert_items
from cms10.episode_detector import get_format_detection_report
from cms10.parsers import parse_detail_page
from cms10.settings import FORMAT_CACHE_SIZE, PlayUrlConfig
from cms10.url_generators import UrlGenerationStats

logger = logging.getLogger(__name__)

app = FastAPI(
    title='Myself-BBS CMS10 API',
    version='0.1.0',
    description='Episode play-URL resolution for CMS10 aggregator clients.',
)

format_cache = FormatDetectionCache(capacity=FORMAT_CACHE_SIZE)
generation_stats = UrlGenerationStats()


# ---------------------------------------------------------------------------
# Request / response schemas (Pydantic models for FastAPI validation)
# ---------------------------------------------------------------------------

class PlayUrlOptions(BaseModel):
    quality: Optional[str] = None
    enable_fallback: Optional[bool] = None


class EpisodesPayload(BaseModel):
    """POST body for format detection."""
    episodes: Dict[str, Any] = Field(default_factory=dict)


class PlayUrlPayload(PlayUrlOptions):
    """POST body for play-URL composition."""
    episodes: Dict[str, Any] = Field(default_factory=dict)
    title_id: int


class DetailPayload(PlayUrlOptions):
    """POST body for CMS10 detail conversion."""
    items: List[Dict[str, Any]] = Field(default_factory=list)


class HtmlPayload(BaseModel):
    html: str


class HealthResponse(BaseModel):
    status: str = 'ok'
    cache_size: int = 0


def _config_from(options: PlayUrlOptions) -> PlayUrlConfig:
    try:
        return PlayUrlConfig.from_settings(quality=options.quality,
                                           enable_fallback=options.enable_fallback)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get('/api/health', response_model=HealthResponse)
async def health_check():
    """Simple liveness probe."""
    return HealthResponse(cache_size=len(format_cache))


@app.get('/api/stats')
async def api_stats():
    """Format-cache and URL-generation counters."""
    return {
        'cache': format_cache.get_statistics(),
        'generation': generation_stats.get_statistics(),
    }


@app.post('/api/episodes/detect')
async def api_detect_episodes(payload: EpisodesPayload):
    """Validation, format detection and recommendations for an episode map."""
    return get_format_detection_report(payload.episodes)


@app.post('/api/play-url')
async def api_play_url(payload: PlayUrlPayload):
    """Compose the ``vod_play_url`` string for one title."""
    config = _config_from(payload)
    try:
        composition = build_play_url(payload.episodes, payload.title_id, config,
                                     cache=format_cache, stats=generation_stats)
    except Exception as exc:
        logger.error(f"Play URL composition failed for title {payload.title_id}: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return composition.to_dict()


@app.post('/api/parse/detail')
async def api_parse_detail(payload: HtmlPayload):
    """Parse a title detail page into a title record."""
    try:
        return parse_detail_page(payload.html).to_dict()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post('/api/cms10/detail')
async def api_cms10_detail(payload: DetailPayload):
    """Convert title records into CMS10 detail items."""
    config = _config_from(payload)
    try:
        items = batch_convert_items(payload.items, 'detail', config,
                                    cache=format_cache, stats=generation_stats)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {'total': len(items), 'list': items}
