"""
Pytest configuration and fixtures for the CMS10 play-URL tests.
"""
import os
import sys

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest
import tempfile
import shutil

from cms10.cache import FormatDetectionCache
from cms10.settings import PlayUrlConfig
from cms10.url_generators import UrlGenerationStats


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    # Cleanup after test
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def config():
    """Default play-URL config, independent of any local config.py."""
    return PlayUrlConfig()


@pytest.fixture
def cache():
    return FormatDetectionCache(capacity=100)


@pytest.fixture
def stats():
    return UrlGenerationStats()


@pytest.fixture
def play_path_episodes():
    return {
        '第 01 話 海的那邊': 'play/46442/001',
        '第 02 話 暗夜列車': 'play/46442/002',
        '第 03 話 冒險開始': 'play/46442/003',
    }


@pytest.fixture
def encoded_id_episodes():
    return {
        '第 01 話': 'AgADMg4AAvWkAVc',
        '第 02 話': 'AgADsA0AAjef-VU',
        '第 03 話': 'BgBDNh5BBwXlBWd',
    }


@pytest.fixture
def legacy_episodes():
    return {
        '第 01 話': ['1', '001'],
        '第 02 話': ['1', '002'],
        '第 03 話': ['1', '003'],
    }


@pytest.fixture
def mixed_episodes():
    return {
        '第 01 話': 'play/46442/001',
        '第 02 話': 'AgADMg4AAvWkAVc',
    }


@pytest.fixture
def sample_detail_html():
    """Return a trimmed Myself-BBS thread page for testing."""
    return '''
    <html>
    <head><title>進擊的巨人 最終季</title></head>
    <body>
        <div id="pt">
            <a href="forum.php">首頁</a>
            <a href="thread-46442-1-1.html">進擊的巨人 The Final Season【全 16 集】【繁體】</a>
        </div>
        <div class="info_box">
            <div class="info_img_box"><img src="https://myself-bbs.com/data/attachment/46442.jpg"></div>
            <div class="info_info">
                <ul>
                    <li>作品類型: 動作/奇幻／劇情</li>
                    <li>首播日期: 2020年12月07日</li>
                    <li>播出集數: 16</li>
                    <li>原著作者: 諫山創</li>
                    <li>官方網站: https://shingeki.tv/</li>
                    <li>備注: </li>
                </ul>
                <div id="info_introduction"><p>牆外的世界終於揭曉。</p></div>
            </div>
        </div>
        <ul class="main_list">
            <li>
                <a href="javascript:;">第 02 話</a>
                <ul class="display_none">
                    <li><a data-href="https://v.myself-bbs.com/player/play/46442/002">站內</a></li>
                </ul>
            </li>
            <li>
                <a href="javascript:;">第 01 話</a>
                <ul class="display_none">
                    <li><a data-href="https://v.myself-bbs.com/player/play/46442/001">站內</a></li>
                </ul>
            </li>
            <li>
                <a href="javascript:;">第 03 話</a>
                <ul class="display_none">
                    <li><a data-href="https://v.myself-bbs.com/player/AgADMg4AAvWkAVc">站內</a></li>
                </ul>
            </li>
            <li>
                <a href="javascript:;">預告</a>
                <ul class="display_none">
                    <li><a data-href="https://www.youtube.com/watch?v=xyz">YouTube</a></li>
                </ul>
            </li>
        </ul>
    </body>
    </html>
    '''
