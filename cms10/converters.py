"""
Title-record to CMS10 item conversion.

Builds the ``vod_*`` dicts that the CMS10 list/detail responses carry.  The
detail item embeds the composed ``vod_play_url``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from cms10.cache import FormatDetectionCache
from cms10.composer import convert_play_url_enhanced
from cms10.models import TitleRecord
from cms10.settings import PlayUrlConfig
from cms10.url_generators import UrlGenerationStats

logger = logging.getLogger(__name__)

TAIPEI_TZ = timezone(timedelta(hours=8))
PLAY_FROM = 'myself-bbs'

CATEGORY_MAPPING = {
    '動作': {'type_id': 1, 'type_name': '動作'},
    '冒險': {'type_id': 2, 'type_name': '冒險'},
    '科幻': {'type_id': 3, 'type_name': '科幻'},
    '奇幻': {'type_id': 4, 'type_name': '奇幻'},
    '日常': {'type_id': 5, 'type_name': '日常'},
    '戀愛': {'type_id': 6, 'type_name': '戀愛'},
    '喜劇': {'type_id': 7, 'type_name': '喜劇'},
    '劇情': {'type_id': 8, 'type_name': '劇情'},
    '懸疑': {'type_id': 9, 'type_name': '懸疑'},
    '恐怖': {'type_id': 10, 'type_name': '恐怖'},
    '其他': {'type_id': 99, 'type_name': '其他'},
}


def get_category_mapping(categories: Any) -> Dict:
    """Map the first category to ``{type_id, type_name}``; 其他 by default."""
    if not categories or not isinstance(categories, (list, tuple)):
        return CATEGORY_MAPPING['其他']
    return CATEGORY_MAPPING.get(categories[0], CATEGORY_MAPPING['其他'])


def convert_timestamp(timestamp: Any) -> str:
    """Millisecond Unix timestamp → ``YYYY-MM-DD HH:MM:SS`` in UTC+8.

    Missing or invalid timestamps use the current time.
    """
    try:
        moment = datetime.fromtimestamp(float(timestamp) / 1000, tz=TAIPEI_TZ)
    except (TypeError, ValueError, OverflowError, OSError):
        moment = datetime.now(TAIPEI_TZ)
    return moment.strftime('%Y-%m-%d %H:%M:%S')


def convert_premiere_to_year(premiere: Any) -> str:
    current_year = datetime.now().year
    if not premiere or not isinstance(premiere, (list, tuple)):
        return str(current_year)
    try:
        year = int(premiere[0])
    except (TypeError, ValueError):
        return str(current_year)
    if year < 1900 or year > current_year + 10:
        return str(current_year)
    return str(year)


def format_remarks(record: TitleRecord) -> str:
    if record.ep and record.ep > 0:
        return f'第{record.ep}集'
    if record.status == 'completed':
        return '已完結'
    if record.status == 'airing':
        return '連載中'
    return '更新中'


def determine_serial_status(record: TitleRecord) -> str:
    """``"0"`` finished, ``"1"`` airing.  Twelve or more episodes count as finished."""
    if record.status == 'completed':
        return '0'
    if record.status == 'airing':
        return '1'
    if record.ep and record.ep >= 12:
        return '0'
    return '1'


def extract_actors(record: Union[TitleRecord, dict]) -> str:
    """Voice actors, if the scraper found any."""
    data = record.to_dict() if isinstance(record, TitleRecord) else record
    voice_actors = data.get('voice_actors')
    if isinstance(voice_actors, (list, tuple)):
        return ','.join(str(a) for a in voice_actors)
    return data.get('cast') or ''


def _as_record(item: Union[TitleRecord, dict]) -> TitleRecord:
    return item if isinstance(item, TitleRecord) else TitleRecord.from_dict(item)


def convert_to_list_item(item: Union[TitleRecord, dict]) -> Dict:
    record = _as_record(item)
    category = get_category_mapping(record.category)
    return {
        'vod_id': int(record.id),
        'vod_name': record.title or '',
        'type_id': category['type_id'],
        'type_name': category['type_name'],
        'vod_en': record.title or '',
        'vod_time': convert_timestamp(record.time),
        'vod_remarks': format_remarks(record),
        'vod_play_from': PLAY_FROM,
        'vod_pic': record.image or '',
    }


def convert_to_detail_item(item: Union[TitleRecord, dict],
                           config: Optional[PlayUrlConfig] = None,
                           cache: Optional[FormatDetectionCache] = None,
                           stats: Optional[UrlGenerationStats] = None) -> Dict:
    """List item plus the detail-only fields, including ``vod_play_url``."""
    record = _as_record(item)
    detail = convert_to_list_item(record)
    detail.update({
        'vod_area': '日本',
        'vod_lang': '日語',
        'vod_year': convert_premiere_to_year(record.premiere),
        'vod_serial': determine_serial_status(record),
        'vod_actor': extract_actors(item),
        'vod_director': record.author or '',
        'vod_content': record.description or '',
        'vod_play_url': convert_play_url_enhanced(record.episodes, record.id, config,
                                                  cache=cache, stats=stats),
    })
    return detail


def batch_convert_items(items: Any, item_type: str = 'list',
                        config: Optional[PlayUrlConfig] = None,
                        cache: Optional[FormatDetectionCache] = None,
                        stats: Optional[UrlGenerationStats] = None) -> List[Dict]:
    """Convert many records, skipping ones without an id or that fail."""
    if not isinstance(items, list):
        return []

    converted = []
    for item in items:
        if isinstance(item, TitleRecord):
            item_id = item.id
        elif isinstance(item, dict):
            item_id = item.get('id')
        else:
            continue
        if not item_id:
            continue
        try:
            if item_type == 'detail':
                converted.append(convert_to_detail_item(item, config, cache, stats))
            else:
                converted.append(convert_to_list_item(item))
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to convert item (ID: {item_id}): {e}")
    return converted
