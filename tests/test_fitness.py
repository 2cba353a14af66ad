from datetime import datetime

import pytest

from fitness import (
    FitnessLevel, InvalidThresholdTable, blank_entry, build_record, classify_bmi,
    classify_score, compute_bmi, parse_number, resolve_level, validate_thresholds,
)

PUSH_UP = {'push_up': {'breakpoints': [8, 12, 18, 24], 'higher_is_better': True}}
RUN_TIME = {'run': {'breakpoints': [10, 12, 14, 16], 'higher_is_better': False}}


@pytest.mark.parametrize('weight, height', [
    (0, 160), (60, 0), (0, 0), (-60, 160), (60, -160), (None, 160), (60, None),
    (float('nan'), 160), ('abc', 160),
])
def test_compute_bmi_non_positive_inputs_give_zero(weight, height):
    assert compute_bmi(weight, height) == 0


def test_compute_bmi_huge_inputs_do_not_raise():
    assert compute_bmi(1e30, 1) == 1e30 * 10000
    # quotient overflows to inf
    assert compute_bmi(1e308, 1) == 0
    # height squared underflows to 0
    assert compute_bmi(60, 1e-200) == 0


def test_compute_bmi_known_values():
    assert compute_bmi(60, 160) == 23.44
    assert compute_bmi(50, 150) == 22.22
    assert compute_bmi('45.5', '152') == 19.69


def test_compute_bmi_rounds_half_up():
    # 81 / 1.8^2 = 25.0 exactly; 50.5 / 1.6^2 = 19.7265625
    assert compute_bmi(81, 180) == 25.0
    assert compute_bmi(50.5, 160) == 19.73


@pytest.mark.parametrize('bmi, expected', [
    (18.49, 'underweight'),
    (18.5, 'normal'),
    (22.99, 'normal'),
    (23.0, 'overweight'),
    (24.99, 'overweight'),
    (25.0, 'obese'),
    (0, None),
    (-3, None),
])
def test_classify_bmi_boundaries(bmi, expected):
    assert classify_bmi(bmi) == expected


@pytest.mark.parametrize('score, expected', [
    (0, FitnessLevel.VERY_POOR),
    (7.9, FitnessLevel.VERY_POOR),
    (8, FitnessLevel.POOR),
    (12, FitnessLevel.FAIR),
    (18, FitnessLevel.GOOD),
    (24, FitnessLevel.VERY_GOOD),
    (40, FitnessLevel.VERY_GOOD),
])
def test_classify_score_higher_is_better(score, expected):
    assert classify_score(score, 'push_up', PUSH_UP) == expected


def test_classify_score_lower_is_better():
    assert classify_score(9, 'run', RUN_TIME) == FitnessLevel.VERY_GOOD
    assert classify_score(13, 'run', RUN_TIME) == FitnessLevel.FAIR
    assert classify_score(20, 'run', RUN_TIME) == FitnessLevel.VERY_POOR


def test_classify_score_without_thresholds_is_manual():
    assert classify_score(10, 'push_up', {}) is None
    assert classify_score(10, 'sit_up', PUSH_UP) is None


def test_resolve_level_prefers_table_then_manual_then_default():
    assert resolve_level(30, 'push_up', PUSH_UP, FitnessLevel.POOR) == FitnessLevel.VERY_GOOD
    assert resolve_level(30, 'sit_up', PUSH_UP, FitnessLevel.POOR) == FitnessLevel.POOR
    assert resolve_level(30, 'sit_up', PUSH_UP, 'EXCELLENT') == FitnessLevel.FAIR


@pytest.mark.parametrize('table', [
    'not a dict',
    {'push_up': {'higher_is_better': True}},
    {'push_up': {'breakpoints': [1, 2, 3]}},
    {'push_up': {'breakpoints': [1, 3, 2, 4]}},
    {'push_up': {'breakpoints': [1, 'x', 3, 4]}},
])
def test_validate_thresholds_rejects_malformed_tables(table):
    with pytest.raises(InvalidThresholdTable):
        validate_thresholds(table)


def test_validate_thresholds_accepts_empty_and_valid():
    assert validate_thresholds(None) == {}
    assert validate_thresholds(PUSH_UP) is PUSH_UP


def test_parse_number():
    assert parse_number('12.5') == 12.5
    assert parse_number('') == 0
    assert parse_number(None) == 0
    assert parse_number(float('inf')) == 0


def test_build_record_derives_bmi_and_recomputes_stale_levels():
    entry = {
        'id': 'r1',
        'student_id': 's1',
        'weight': '50',
        'height': '150',
        'bmi': 99,
        'results': [
            {'test_item_id': 'push_up', 'score': '20', 'level': FitnessLevel.VERY_POOR},
            {'test_item_id': 'sit_up', 'score': 15, 'level': FitnessLevel.GOOD},
            {'score': 3},
        ],
    }
    now = datetime(2024, 6, 1, 9, 30)

    record = build_record(entry, PUSH_UP, now=now, record_id='unused')

    assert record['id'] == 'r1'
    assert record['date'] == '2024-06-01T09:30:00'
    assert record['bmi'] == 22.22
    assert record['results'] == [
        {'test_item_id': 'push_up', 'score': 20.0, 'level': FitnessLevel.GOOD},
        {'test_item_id': 'sit_up', 'score': 15.0, 'level': FitnessLevel.GOOD},
    ]
    # input left alone
    assert entry['bmi'] == 99
    assert entry['results'][0]['level'] == FitnessLevel.VERY_POOR


def test_build_record_skips_results_that_are_not_dicts():
    record = build_record({'student_id': 's1', 'results': ['x', 3, {'test_item_id': 'sit_up', 'score': 4}]})
    assert record['results'] == [{'test_item_id': 'sit_up', 'score': 4.0, 'level': FitnessLevel.FAIR}]
    assert build_record({'student_id': 's1', 'results': 'abc'})['results'] == []


def test_build_record_uses_given_id_for_new_entries():
    record = build_record({'student_id': 's1'}, record_id='r-new')
    assert record['id'] == 'r-new'
    assert record['bmi'] == 0
    assert record['results'] == []


def test_blank_entry_defaults_every_item_to_fair():
    entry = blank_entry('s1', [{'id': 'bmi'}, {'id': 'push_up'}])
    assert entry['bmi'] == 0
    assert [r['level'] for r in entry['results']] == [FitnessLevel.FAIR, FitnessLevel.FAIR]
