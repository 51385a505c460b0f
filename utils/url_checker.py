"""
Manifest reachability probe.

Advisory helper for checking that a generated manifest URL actually answers.
The play-URL pipeline itself never performs network I/O.

Usage:
    from utils.url_checker import check_url_accessibility

    result = check_url_accessibility('https://vpx05.myself-bbs.com/vpx/46442/001/720p.m3u8')
    if not result['accessible']:
        print(result['status'], result['error'])
"""

import logging
from typing import Dict, Iterable, List, Optional

import requests

logger = logging.getLogger(__name__)

try:
    from config import URL_CHECK_TIMEOUT
except ImportError:
    URL_CHECK_TIMEOUT = 5

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36',
    'Accept': '*/*',
}


def check_url_accessibility(url: str, timeout: Optional[float] = None, method: str = 'HEAD',
                            session: Optional[requests.Session] = None) -> Dict:
    """
    Probe *url* and report whether it answered with a 2xx/3xx status.

    Network problems are reported in ``error`` instead of being raised.

    Args:
        url: URL to probe
        timeout: Seconds before giving up (defaults to URL_CHECK_TIMEOUT)
        method: HTTP method, ``HEAD`` unless the host rejects it
        session: requests.Session for connection reuse

    Returns:
        Dict with url, accessible, status, status_text, headers, error
    """
    use_session = session or requests
    timeout = URL_CHECK_TIMEOUT if timeout is None else timeout

    try:
        response = use_session.request(method, url, headers=DEFAULT_HEADERS,
                                       timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        logger.debug(f"URL check failed for {url}: {e}")
        return {
            'url': url,
            'accessible': False,
            'status': None,
            'status_text': None,
            'headers': {},
            'error': str(e),
        }

    return {
        'url': url,
        'accessible': response.ok,
        'status': response.status_code,
        'status_text': response.reason,
        'headers': dict(response.headers),
        'error': None,
    }


def check_play_url(play_url_pairs: Iterable, timeout: Optional[float] = None,
                   session: Optional[requests.Session] = None) -> List[Dict]:
    """
    Probe every ``(label, url)`` pair of a parsed play string.

    Args:
        play_url_pairs: Output of ``cms10.composer.parse_play_url``
        timeout: Per-request timeout in seconds
        session: Shared requests.Session (one is created if omitted)

    Returns:
        List of probe results, each with an extra ``label`` key
    """
    own_session = session is None
    session = session or requests.Session()
    results = []
    try:
        for label, url in play_url_pairs:
            result = check_url_accessibility(url, timeout=timeout, session=session)
            result['label'] = label
            results.append(result)
    finally:
        if own_session:
            session.close()

    reachable = sum(1 for r in results if r['accessible'])
    logger.info(f"Play URL check: {reachable}/{len(results)} manifests reachable")
    return results
