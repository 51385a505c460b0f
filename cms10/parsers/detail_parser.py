"""
Myself-BBS title detail-page parser.

Produces the ``TitleRecord`` (including its ``{label: token}`` episode map)
that the play-URL pipeline consumes.  No network access happens here – the
caller fetches the HTML.
"""

from __future__ import annotations

import re
import logging
from datetime import date
from typing import Dict, List

from bs4 import BeautifulSoup
from bs4.element import Tag

from cms10.models import TitleRecord

logger = logging.getLogger(__name__)

PLAYER_HOST = 'https://v.myself-bbs.com'
# Older uploads keep their play/ tokens under a versioned suffix.
SPECIAL_MODE_CUTOFF = date(2017, 7, 3)
SPECIAL_MODE_SUFFIX = '_v01'

_THREAD_ID_RE = re.compile(r'thread-(\d+)')
_TITLE_RE = re.compile(r'^(.+?)【', re.DOTALL)
_PLAYER_TOKEN_RE = re.compile(r'/player/(.+)')


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _info_value(item: Tag) -> str:
    """Text after the first colon of an ``<li>`` in the info box."""
    text = item.get_text(strip=True)
    for colon in (':', '：'):
        if colon in text:
            return text.split(colon, 1)[1].strip()
    return ''


def _parse_categories(value: str) -> List[str]:
    return [c.strip() for c in re.split(r'[/／]', value) if c.strip()]


def _parse_premiere(value: str) -> List[int]:
    numbers = [int(n) for n in re.findall(r'\d+', value)]
    return numbers[:3] if len(numbers) >= 3 else [0, 0, 0]


def _is_special_mode(premiere: List[int]) -> bool:
    try:
        return date(*premiere[:3]) < SPECIAL_MODE_CUTOFF
    except (TypeError, ValueError):
        return False


def parse_episode_list(soup: BeautifulSoup, special_mode: bool = False) -> Dict[str, str]:
    """Extract ``{label: token}`` from the ``.main_list`` episode list.

    Rows without a player link are logged and skipped.
    """
    episodes = {}
    for li in soup.select('.main_list > li'):
        anchor = li.find('a')
        if not anchor:
            continue
        name = anchor.get_text(strip=True)
        player = li.select_one(f'a[data-href^="{PLAYER_HOST}"]')
        match = _PLAYER_TOKEN_RE.search(player.get('data-href', '').strip()) if player else None
        if not name or not match:
            logger.debug("Skipping episode row without player link: %s", name)
            continue

        token = match.group(1)
        if special_mode and token.startswith('play'):
            token = f'{token}{SPECIAL_MODE_SUFFIX}'
        episodes[name] = token
    return episodes


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_detail_page(html_content: str) -> TitleRecord:
    """Parse a title's thread page into a ``TitleRecord``.

    Fields missing from the page keep their defaults.
    """
    soup = BeautifulSoup(html_content, 'html.parser')
    record = TitleRecord(id=0)

    thread_link = soup.select_one('#pt a[href^="thread"]')
    if thread_link:
        id_match = _THREAD_ID_RE.search(thread_link.get('href', ''))
        if id_match:
            record.id = int(id_match.group(1))
        title_match = _TITLE_RE.search(thread_link.get_text())
        if title_match:
            record.title = title_match.group(1).strip()

    info_box = soup.find('div', class_='info_info')
    if info_box:
        items = info_box.select('ul > li')
        values = [_info_value(li) for li in items]
        if len(values) > 0:
            record.category = _parse_categories(values[0])
        if len(values) > 1:
            record.premiere = _parse_premiere(values[1])
        if len(values) > 2:
            ep_match = re.search(r'\d+', values[2])
            record.ep = int(ep_match.group(0)) if ep_match else 0
        if len(values) > 3:
            record.author = values[3]
        if len(values) > 4:
            record.website = values[4]

        intro = info_box.select_one('#info_introduction > p')
        if intro:
            record.description = intro.get_text(strip=True)

    image = soup.select_one('.info_img_box > img')
    if image:
        record.image = image.get('src', '')

    record.episodes = parse_episode_list(soup, _is_special_mode(record.premiere))

    logger.debug('Parsed detail: id=%s, title=%s, episodes=%d',
                 record.id, record.title[:40], len(record.episodes))
    return record
