"""
Tests for cms10.models, cms10.errors and cms10.settings.
"""
import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest

from cms10.errors import (
    AllEpisodesUnresolvableError,
    EmptyEpisodeSetError,
    EpisodeResolutionError,
    MalformedTokenError,
    SliceError,
    UnrecognizedShapeError,
)
from cms10.models import (
    EpisodeFormat,
    FormatDetectionResult,
    PlaybackComposition,
    ResolvedEpisode,
    TitleRecord,
)
from cms10.settings import PlayUrlConfig


# ===================================================================
# Errors
# ===================================================================

class TestErrors:
    def test_hierarchy(self):
        for cls in (MalformedTokenError, UnrecognizedShapeError, SliceError,
                    EmptyEpisodeSetError, AllEpisodesUnresolvableError):
            assert issubclass(cls, EpisodeResolutionError)
        assert issubclass(SliceError, MalformedTokenError)

    def test_reason_codes_distinct(self):
        reasons = {cls.reason for cls in (
            MalformedTokenError, UnrecognizedShapeError, SliceError,
            EmptyEpisodeSetError, AllEpisodesUnresolvableError)}
        assert len(reasons) == 5

    def test_to_dict(self):
        err = MalformedTokenError('Invalid play path: play/1/x', 'play/1/x')
        assert err.to_dict() == {
            'reason': 'malformed_token',
            'message': 'Invalid play path: play/1/x',
            'token': 'play/1/x',
        }

    def test_title_level_errors(self):
        err = AllEpisodesUnresolvableError(9, 3)
        assert err.title_id == 9
        assert err.failures == 3
        assert '3' in str(err)
        assert EmptyEpisodeSetError(9).title_id == 9


# ===================================================================
# Models
# ===================================================================

class TestFormatDetectionResult:
    def test_from_cache_not_compared(self):
        a = FormatDetectionResult(format=EpisodeFormat.PATH_REFERENCE, confidence=1.0,
                                  total_episodes=1, valid_episodes=1)
        b = FormatDetectionResult(format=EpisodeFormat.PATH_REFERENCE, confidence=1.0,
                                  total_episodes=1, valid_episodes=1, from_cache=True)
        assert a == b

    @pytest.mark.parametrize('kwargs, outcome', [
        ({}, 'empty'),
        ({'total_episodes': 2, 'is_mixed': True}, 'mixed'),
        ({'total_episodes': 2}, 'unrecognized'),
        ({'total_episodes': 2, 'format': EpisodeFormat.OPAQUE_IDENTIFIER}, 'homogeneous'),
    ])
    def test_outcome(self, kwargs, outcome):
        assert FormatDetectionResult(**kwargs).outcome == outcome


class TestResolvedEpisode:
    def test_ok(self):
        ep = ResolvedEpisode.ok('第 01 話', 'play/1/001', 'https://x/1.m3u8',
                                EpisodeFormat.PATH_REFERENCE)
        assert ep.success is True
        assert ep.error is None

    def test_failed(self):
        ep = ResolvedEpisode.failed('第 01 話', 'AgAD', SliceError('too short', 'AgAD'),
                                    EpisodeFormat.OPAQUE_IDENTIFIER)
        assert ep.success is False
        assert ep.url is None
        assert ep.error == 'slice_error'
        assert ep.message == 'too short'


class TestPlaybackComposition:
    def test_success_rate(self):
        assert PlaybackComposition(total=4, successful=3).success_rate == 0.75
        assert PlaybackComposition().success_rate == 0.0

    def test_empty(self):
        comp = PlaybackComposition.empty(7)
        assert comp.play_url == ''
        assert comp.to_dict()['error'] == 'empty_episode_set'
        with pytest.raises(EmptyEpisodeSetError):
            comp.raise_for_status()

    def test_unresolvable(self):
        comp = PlaybackComposition.unresolvable(7, 2)
        assert comp.omitted == 2
        assert comp.to_dict()['error'] == 'all_episodes_unresolvable'

    def test_raise_for_status_ok(self):
        PlaybackComposition(play_url='a$https://x', total=1, successful=1).raise_for_status()


class TestTitleRecord:
    def test_from_dict_ignores_unknown_keys(self):
        record = TitleRecord.from_dict({'id': 46442, 'title': '進擊的巨人', 'voice_actors': ['梶裕貴']})
        assert record.id == 46442
        assert record.title == '進擊的巨人'
        assert record.episodes == {}

    def test_round_trip(self):
        record = TitleRecord(id=1, title='A', premiere=[2020, 1, 2],
                             episodes={'第 01 話': ['1', '001']})
        assert TitleRecord.from_dict(record.to_dict()) == record


# ===================================================================
# Settings
# ===================================================================

class TestPlayUrlConfig:
    def test_defaults(self):
        config = PlayUrlConfig()
        assert config.quality == '720p'
        assert config.enable_fallback is True
        assert config.legacy_on_unrecognized is True
        assert config.base_url == 'https://myself-bbs.jacob.workers.dev'
        assert config.stream_host == 'https://vpx05.myself-bbs.com'

    def test_trailing_slash_stripped(self):
        assert PlayUrlConfig(base_url='https://api.example.com/').base_url == 'https://api.example.com'

    @pytest.mark.parametrize('kwargs', [
        {'enable_fallback': 'yes'},
        {'enable_fallback': 1},
        {'legacy_on_unrecognized': None},
        {'quality': 720},
    ])
    def test_type_errors(self, kwargs):
        with pytest.raises(TypeError):
            PlayUrlConfig(**kwargs)

    @pytest.mark.parametrize('kwargs', [
        {'base_url': 'ftp://example.com'},
        {'stream_host': 'vpx05.myself-bbs.com'},
        {'stream_host': None},
    ])
    def test_bad_hosts(self, kwargs):
        with pytest.raises(ValueError):
            PlayUrlConfig(**kwargs)

    def test_unsupported_quality_accepted(self):
        assert PlayUrlConfig(quality='4k').quality == '4k'

    def test_from_settings_overrides(self):
        config = PlayUrlConfig.from_settings(quality='1080p', enable_fallback=None)
        assert config.quality == '1080p'
        assert isinstance(config.enable_fallback, bool)

    def test_from_settings_validates_overrides(self):
        with pytest.raises(TypeError):
            PlayUrlConfig.from_settings(enable_fallback='no')
