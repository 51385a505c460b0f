"""
Myself-BBS HTML parsers – public API.

Usage::

    from cms10.parsers import parse_detail_page
"""

from cms10.parsers.detail_parser import parse_detail_page, parse_episode_list

__all__ = [
    'parse_detail_page',
    'parse_episode_list',
]
