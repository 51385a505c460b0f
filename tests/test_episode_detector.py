"""
Tests for cms10.episode_detector – token classification and set detection.
"""
import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

import pytest

from cms10.episode_detector import (
    classify_token,
    detect_episodes_format,
    extract_episode_number,
    get_format_detection_report,
    is_legacy_pair,
    parse_token,
    validate_episodes_data,
)
from cms10.models import (
    EpisodeFormat,
    LegacyPair,
    OpaqueIdentifier,
    PathReference,
    UnrecognizedToken,
)


# ===================================================================
# Single token classification
# ===================================================================

class TestClassifyToken:
    def test_play_path(self):
        assert classify_token('play/46442/001') == EpisodeFormat.PATH_REFERENCE

    def test_play_path_with_surrounding_whitespace(self):
        assert classify_token('  play/46442/001\n') == EpisodeFormat.PATH_REFERENCE

    def test_encoded_id(self):
        assert classify_token('AgADMg4AAvWkAVc') == EpisodeFormat.OPAQUE_IDENTIFIER

    def test_encoded_id_with_dash_and_underscore(self):
        assert classify_token('AgADsA0AAjef-VU') == EpisodeFormat.OPAQUE_IDENTIFIER
        assert classify_token('Ab_cd-Efgh12') == EpisodeFormat.OPAQUE_IDENTIFIER

    def test_encoded_id_length_bounds(self):
        assert classify_token('a' * 9) == EpisodeFormat.UNKNOWN
        assert classify_token('a' * 10) == EpisodeFormat.OPAQUE_IDENTIFIER
        assert classify_token('a' * 30) == EpisodeFormat.OPAQUE_IDENTIFIER
        assert classify_token('a' * 31) == EpisodeFormat.UNKNOWN

    def test_play_prefix_is_case_sensitive(self):
        assert classify_token('Play/46442/001') == EpisodeFormat.UNKNOWN

    def test_play_path_with_non_digit_segment(self):
        assert classify_token('play/46442/abc') == EpisodeFormat.UNKNOWN

    def test_play_path_with_fullwidth_digits(self):
        assert classify_token('play/４６/００１') == EpisodeFormat.UNKNOWN
        assert classify_token('play/46442/٠٠١') == EpisodeFormat.UNKNOWN

    def test_special_mode_suffix_is_unknown(self):
        assert classify_token('play/46442/001_v01') == EpisodeFormat.UNKNOWN

    @pytest.mark.parametrize('value', [None, '', '   ', 123, 1.5, [], {}, ['1', '001'], object()])
    def test_never_raises_for_odd_inputs(self, value):
        assert classify_token(value) in (
            EpisodeFormat.PATH_REFERENCE,
            EpisodeFormat.OPAQUE_IDENTIFIER,
            EpisodeFormat.UNKNOWN,
        )

    def test_path_reference_never_opaque(self):
        # Looks like it could pass the opaque length gate, but '/' is not in the charset
        for token in ('play/1/2', 'play/12345678/87654321'):
            assert classify_token(token) == EpisodeFormat.PATH_REFERENCE

    def test_symbols_unknown(self):
        assert classify_token('???') == EpisodeFormat.UNKNOWN
        assert classify_token('AgADMg4A AvWkAVc') == EpisodeFormat.UNKNOWN


class TestParseToken:
    def test_path_reference_variant(self):
        token = parse_token(' play/46442/001 ')
        assert token == PathReference(token='play/46442/001', content_id='46442', episode_id='001')

    def test_opaque_variant(self):
        assert parse_token('AgADMg4AAvWkAVc') == OpaqueIdentifier(token='AgADMg4AAvWkAVc')

    def test_legacy_pair_variant(self):
        assert parse_token(['1', '001']) == LegacyPair(content_id='1', episode_id='001')
        assert parse_token((46442, '002')) == LegacyPair(content_id='46442', episode_id='002')

    def test_unrecognized_variant(self):
        assert parse_token('???') == UnrecognizedToken(value='???')
        assert isinstance(parse_token(['1', '2', '3']), UnrecognizedToken)
        assert isinstance(parse_token(None), UnrecognizedToken)


class TestIsLegacyPair:
    def test_valid(self):
        assert is_legacy_pair(['1', '001'])
        assert is_legacy_pair((1, 2))

    def test_invalid(self):
        assert not is_legacy_pair(['1'])
        assert not is_legacy_pair(['1', '2', '3'])
        assert not is_legacy_pair('12')
        assert not is_legacy_pair([True, False])
        assert not is_legacy_pair([None, '1'])


class TestExtractEpisodeNumber:
    def test_normal(self):
        assert extract_episode_number('第 01 話') == 1
        assert extract_episode_number('第 10 話 海的那邊') == 10

    def test_first_number_wins(self):
        assert extract_episode_number('S2 第 05 話') == 2

    def test_no_digit(self):
        assert extract_episode_number('總集篇') == 0
        assert extract_episode_number('') == 0
        assert extract_episode_number(None) == 0


# ===================================================================
# Set detection
# ===================================================================

class TestDetectEpisodesFormat:
    def test_play_path_set(self, play_path_episodes):
        result = detect_episodes_format(play_path_episodes)
        assert result.format == EpisodeFormat.PATH_REFERENCE
        assert result.confidence == 1.0
        assert result.total_episodes == 3
        assert result.valid_episodes == 3
        assert result.is_mixed is False
        assert result.has_unknown is False
        assert result.outcome == 'homogeneous'

    def test_encoded_id_set(self, encoded_id_episodes):
        result = detect_episodes_format(encoded_id_episodes)
        assert result.format == EpisodeFormat.OPAQUE_IDENTIFIER
        assert result.confidence == 1.0

    def test_mixed_set(self, mixed_episodes):
        result = detect_episodes_format(mixed_episodes)
        assert result.format == EpisodeFormat.UNKNOWN
        assert result.is_mixed is True
        assert result.confidence == 0.0
        assert result.valid_episodes == 2
        assert result.outcome == 'mixed'

    def test_partial_unknown_keeps_dominant(self):
        result = detect_episodes_format({
            '第 01 話': 'play/1/001',
            '第 02 話': 'play/1/002',
            '第 03 話': 'play/1/003',
            '第 04 話': '???',
        })
        assert result.format == EpisodeFormat.PATH_REFERENCE
        assert result.confidence == 0.75
        assert result.has_unknown is True
        assert result.format_counts[EpisodeFormat.UNKNOWN] == 1

    def test_all_unknown(self):
        result = detect_episodes_format({'第 05 話': '???'})
        assert result.format == EpisodeFormat.UNKNOWN
        assert result.is_mixed is False
        assert result.outcome == 'unrecognized'

    def test_legacy_pairs_counted(self, legacy_episodes):
        result = detect_episodes_format(legacy_episodes)
        assert result.format == EpisodeFormat.UNKNOWN
        assert result.legacy_pairs == 3
        assert result.format_counts[EpisodeFormat.UNKNOWN] == 3

    def test_per_token_breakdown(self, mixed_episodes):
        result = detect_episodes_format(mixed_episodes)
        breakdown = {d.name: d.format for d in result.detection_results}
        assert breakdown == {
            '第 01 話': EpisodeFormat.PATH_REFERENCE,
            '第 02 話': EpisodeFormat.OPAQUE_IDENTIFIER,
        }

    def test_empty_set(self):
        result = detect_episodes_format({})
        assert result.format == EpisodeFormat.UNKNOWN
        assert result.confidence == 0
        assert result.total_episodes == 0
        assert result.outcome == 'empty'
        assert result.error

    @pytest.mark.parametrize('value', [None, [], 'play/1/001', 42])
    def test_invalid_input(self, value):
        result = detect_episodes_format(value)
        assert result.format == EpisodeFormat.UNKNOWN
        assert result.total_episodes == 0
        assert result.error

    def test_to_dict_contains_outcome(self, play_path_episodes):
        d = detect_episodes_format(play_path_episodes).to_dict()
        assert d['outcome'] == 'homogeneous'
        assert d['format'] == EpisodeFormat.PATH_REFERENCE
        assert len(d['detection_results']) == 3


# ===================================================================
# Validation / report
# ===================================================================

class TestValidateEpisodesData:
    def test_valid(self, play_path_episodes):
        validation = validate_episodes_data(play_path_episodes)
        assert validation.is_valid is True
        assert validation.errors == []

    def test_legacy_pairs_are_valid(self, legacy_episodes):
        assert validate_episodes_data(legacy_episodes).is_valid is True

    def test_none(self):
        validation = validate_episodes_data(None)
        assert validation.is_valid is False
        assert len(validation.errors) == 1

    def test_list_rejected(self):
        assert validate_episodes_data(['play/1/001']).is_valid is False

    def test_empty_is_warning_only(self):
        validation = validate_episodes_data({})
        assert validation.is_valid is True
        assert validation.warnings

    def test_bad_values(self):
        validation = validate_episodes_data({'第 01 話': None, '第 02 話': 12})
        assert validation.is_valid is False
        assert len(validation.errors) == 2

    def test_blank_value_warning(self):
        validation = validate_episodes_data({'第 01 話': '   '})
        assert validation.is_valid is True
        assert len(validation.warnings) == 1

    def test_empty_label_error(self):
        validation = validate_episodes_data({'': 'play/1/001'})
        assert validation.is_valid is False


class TestFormatDetectionReport:
    def test_clean_report(self, play_path_episodes):
        report = get_format_detection_report(play_path_episodes)
        assert report['summary']['is_valid'] is True
        assert report['summary']['format'] == EpisodeFormat.PATH_REFERENCE
        assert report['summary']['has_issues'] is False
        assert report['recommendations'] == []
        assert 'timestamp' in report

    def test_mixed_report(self, mixed_episodes):
        report = get_format_detection_report(mixed_episodes)
        types = [r['type'] for r in report['recommendations']]
        assert report['summary']['is_mixed'] is True
        assert 'info' in types
        # confidence 0 for mixed sets triggers the low-confidence warning
        assert 'warning' in types

    def test_unknown_tokens_reported(self):
        report = get_format_detection_report({'第 01 話': 'play/1/001', '第 02 話': '???'})
        messages = ' '.join(r['message'] for r in report['recommendations'])
        assert '1 episode token(s) could not be recognised' in messages

    def test_invalid_data_report(self):
        report = get_format_detection_report(None)
        assert report['summary']['is_valid'] is False
        assert report['recommendations'][0]['type'] == 'error'
