#!/usr/bin/env python3
"""
Config Generator for the Myself-BBS CMS10 API

Renders config.py from environment variables so containers and CI jobs can
configure the play-URL pipeline without committing a config file.

Usage:
    # Read CMS10_* / LOG_* variables (VAR_ prefix wins when both are set)
    python3 utils/config_generator.py

    # Print without writing
    python3 utils/config_generator.py --dry-run

    # Custom output path
    python3 utils/config_generator.py --output /srv/cms10/config.py
"""

import os
import json
import argparse
from typing import Any, Callable, Dict, List, Tuple


# Values that mean "explicitly empty" when set in CI variables
EMPTY_PLACEHOLDERS = ('__EMPTY__', '__NULL__', 'null', 'none', 'NULL', 'NONE')

VALID_QUALITIES = ('720p', '1080p', '480p')


# =============================================================================
# Environment Variable Helpers
# =============================================================================

def get_env(name: str, default: str = '') -> str:
    """Read ``VAR_<name>`` first, then ``<name>``; placeholders become ''."""
    val = os.environ.get(f'VAR_{name}')
    if val is None:
        val = os.environ.get(name, default)
    if val in EMPTY_PLACEHOLDERS:
        return ''
    return val or default


def get_env_int(name: str, default: int) -> int:
    val = get_env(name, str(default))
    try:
        return int(val)
    except (ValueError, TypeError):
        return default


def get_env_float(name: str, default: float) -> float:
    val = get_env(name, str(default))
    try:
        return float(val)
    except (ValueError, TypeError):
        return default


def get_env_bool(name: str, default: bool) -> bool:
    """``true/1/yes`` and ``false/0/no`` (any case); anything else → default."""
    val = get_env(name, str(default)).lower()
    if val in ('true', '1', 'yes'):
        return True
    if val in ('false', '0', 'no'):
        return False
    return default


def get_env_json(name: str, default: Any) -> Any:
    val = get_env(name, '')
    if not val.strip():
        return default
    try:
        return json.loads(val)
    except json.JSONDecodeError:
        return default


def get_env_quality(name: str, default: str) -> str:
    """Video quality; unsupported values are replaced by *default*."""
    val = get_env(name, default)
    return val if val in VALID_QUALITIES else default


def format_python_value(value: Any) -> str:
    """Python literal for *value* as it should appear in config.py."""
    if isinstance(value, bool):
        return 'True' if value else 'False'
    if isinstance(value, str):
        return repr(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return 'None'
    return str(value)


# =============================================================================
# Configuration Mapping
# =============================================================================

def get_config_map() -> List[Tuple[str, str, Callable, Any, str]]:
    """``(config_name, env_name, getter, default, section)`` for every key."""
    return [
        # Play URL generation
        ('CMS10_QUALITY', 'CMS10_QUALITY', get_env_quality, '720p', 'PLAY URL CONFIGURATION'),
        ('CMS10_ENABLE_FALLBACK', 'CMS10_ENABLE_FALLBACK', get_env_bool, True, 'PLAY URL CONFIGURATION'),
        ('CMS10_LEGACY_ON_UNRECOGNIZED', 'CMS10_LEGACY_ON_UNRECOGNIZED', get_env_bool, True,
         'PLAY URL CONFIGURATION'),
        ('CMS10_BASE_URL', 'CMS10_BASE_URL', get_env, 'https://myself-bbs.jacob.workers.dev',
         'PLAY URL CONFIGURATION'),
        ('CMS10_STREAM_HOST', 'CMS10_STREAM_HOST', get_env, 'https://vpx05.myself-bbs.com',
         'PLAY URL CONFIGURATION'),
        # Cache / probing
        ('FORMAT_CACHE_SIZE', 'FORMAT_CACHE_SIZE', get_env_int, 100, 'CACHE CONFIGURATION'),
        ('URL_CHECK_TIMEOUT', 'URL_CHECK_TIMEOUT', get_env_float, 5.0, 'CACHE CONFIGURATION'),
        # Logging
        ('LOG_LEVEL', 'LOG_LEVEL', get_env, 'INFO', 'LOGGING CONFIGURATION'),
        ('API_LOG_FILE', 'API_LOG_FILE', get_env, 'logs/cms10_api.log', 'LOGGING CONFIGURATION'),
    ]


# =============================================================================
# Config Generation
# =============================================================================

def generate_config_content() -> str:
    """Render config.py content, grouped by section."""
    sections: Dict[str, List[Tuple[str, Any]]] = {}
    for config_name, env_name, getter, default, section in get_config_map():
        sections.setdefault(section, []).append((config_name, getter(env_name, default)))

    lines = [
        '# Myself-BBS CMS10 API - Configuration File',
        '# Auto-generated from environment variables',
        '',
    ]
    for section_name, configs in sections.items():
        lines.append('# ' + '=' * 75)
        lines.append(f'# {section_name}')
        lines.append('# ' + '=' * 75)
        lines.append('')
        for config_name, value in configs:
            lines.append(f'{config_name} = {format_python_value(value)}')
        lines.append('')

    return '\n'.join(lines)


def write_config(output_path: str = 'config.py', dry_run: bool = False,
                 show_content: bool = True) -> bool:
    """Write config.py; returns False (and prints why) on failure."""
    try:
        content = generate_config_content()
        if dry_run:
            print("✓ Dry run - config.py would be generated with the following content:")
        else:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
            print(f"✓ {output_path} generated successfully")

        if show_content:
            print()
            print(content)
        return True

    except OSError as e:
        print(f"✗ Failed to generate config.py: {e}")
        return False


# =============================================================================
# CLI Entry Point
# =============================================================================

def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description='Generate config.py from environment variables',
    )
    parser.add_argument('--output', '-o', type=str, default='config.py',
                        help='Output path for config.py (default: config.py)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Print config without writing to file')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Do not print the generated content')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    success = write_config(output_path=args.output, dry_run=args.dry_run,
                           show_content=not args.quiet)
    return 0 if success else 1


if __name__ == '__main__':
    exit(main())
