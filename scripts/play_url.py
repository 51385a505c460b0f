import json
import os
import sys
import argparse

import requests

# Change to project root directory (parent of scripts folder)
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

try:
    from config import LOG_LEVEL, API_LOG_FILE
except ImportError:
    LOG_LEVEL = 'INFO'
    API_LOG_FILE = 'logs/cms10_api.log'

# Configure logging
from utils.logging_config import setup_logging, get_logger
setup_logging(API_LOG_FILE, LOG_LEVEL)
logger = get_logger(__name__)

from cms10.cache import FormatDetectionCache
from cms10.composer import build_play_url, parse_play_url
from cms10.converters import convert_to_detail_item
from cms10.models import TitleRecord
from cms10.parsers import parse_detail_page
from cms10.settings import FORMAT_CACHE_SIZE, PlayUrlConfig
from cms10.url_generators import UrlGenerationStats
from utils.url_checker import check_play_url, DEFAULT_HEADERS


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Myself-BBS play URL tool - build CMS10 vod_play_url strings for titles')

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--html', type=str,
                        help='Saved thread page to parse')
    source.add_argument('--url', type=str,
                        help='Thread page URL to fetch and parse')
    source.add_argument('--json', type=str,
                        help='JSON file with one title record or a list of records')

    parser.add_argument('--quality', choices=['720p', '1080p', '480p'],
                        help='VPX rendition (default from config.py)')
    parser.add_argument('--no-fallback', action='store_true',
                        help='Drop failed episodes instead of emitting placeholder URLs')
    parser.add_argument('--detail', action='store_true',
                        help='Print CMS10 detail items instead of bare play strings')
    parser.add_argument('--check', action='store_true',
                        help='Probe every generated manifest URL (network access)')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Per-request timeout for --url and --check')

    return parser.parse_args(argv)


def load_records(args):
    """Title records from whichever source was given on the command line."""
    if args.json:
        with open(args.json, 'r', encoding='utf-8') as f:
            data = json.load(f)
        items = data if isinstance(data, list) else [data]
        return [TitleRecord.from_dict(item) for item in items if isinstance(item, dict)]

    if args.html:
        with open(args.html, 'r', encoding='utf-8') as f:
            return [parse_detail_page(f.read())]

    logger.info(f"Fetching {args.url}")
    response = requests.get(args.url, headers=DEFAULT_HEADERS, timeout=args.timeout or 30)
    response.raise_for_status()
    response.encoding = response.apparent_encoding or 'utf-8'
    return [parse_detail_page(response.text)]


def main(argv=None):
    args = parse_arguments(argv)
    config = PlayUrlConfig.from_settings(quality=args.quality,
                                         enable_fallback=False if args.no_fallback else None)
    cache = FormatDetectionCache(capacity=FORMAT_CACHE_SIZE)
    stats = UrlGenerationStats()

    try:
        records = load_records(args)
    except (OSError, ValueError, requests.RequestException) as e:
        logger.error(f"Failed to load title records: {e}")
        return 1

    output = []
    for record in records:
        if args.detail:
            output.append(convert_to_detail_item(record, config, cache, stats))
            continue

        composition = build_play_url(record.episodes, record.id, config, cache, stats)
        entry = composition.to_dict()
        if args.check and composition.play_url:
            entry['checks'] = check_play_url(parse_play_url(composition.play_url),
                                             timeout=args.timeout)
        output.append(entry)

    print(json.dumps(output, ensure_ascii=False, indent=2))
    summary = stats.get_statistics()
    logger.info(f"Generated {summary['successful']}/{summary['total']} URLs "
                f"({summary['success_rate']:.1%}) for {len(records)} title(s)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
