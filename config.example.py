"""
Example configuration file for the Myself-BBS CMS10 API
Copy this file to config.py and adjust the values
(or generate it with utils/config_generator.py)
"""

# === Play URL Configuration ===
CMS10_QUALITY = '720p'  # Options: 720p, 1080p, 480p
CMS10_ENABLE_FALLBACK = True  # Placeholder URLs for episodes that fail to resolve
CMS10_LEGACY_ON_UNRECOGNIZED = True  # Use the legacy /m3u8/ scheme when no token is recognised
CMS10_BASE_URL = 'https://myself-bbs.jacob.workers.dev'  # Legacy + fallback host
CMS10_STREAM_HOST = 'https://vpx05.myself-bbs.com'  # VPX / HLS manifest host

# === Cache Configuration ===
FORMAT_CACHE_SIZE = 100  # Episode sets remembered by the format-detection cache
URL_CHECK_TIMEOUT = 5  # Seconds for manifest reachability probes

# === Logging Configuration ===
LOG_LEVEL = 'INFO'  # Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
API_LOG_FILE = 'logs/cms10_api.log'
