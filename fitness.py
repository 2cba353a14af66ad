"""
fitness.py - Fitness Calculator
BMI from weight/height, BMI bands, and score-to-level classification.
Every function here is pure; callers pass in all the data they need.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, localcontext


class FitnessLevel:
    """Ordered qualitative ratings for a single test result"""
    VERY_GOOD = 'VERY_GOOD'
    GOOD = 'GOOD'
    FAIR = 'FAIR'
    POOR = 'POOR'
    VERY_POOR = 'VERY_POOR'

    # Best to worst
    ORDER = [VERY_GOOD, GOOD, FAIR, POOR, VERY_POOR]

    # Level a blank data-entry row starts with
    DEFAULT = FAIR

    @classmethod
    def is_valid(cls, value):
        return value in cls.ORDER


# BMI bands, lower bound inclusive
UNDERWEIGHT = 'underweight'
NORMAL = 'normal'
OVERWEIGHT = 'overweight'
OBESE = 'obese'

BMI_CATEGORIES = [UNDERWEIGHT, NORMAL, OVERWEIGHT, OBESE]


class FitnessError(Exception):
    """Base error for the fitness calculator"""


class InvalidThresholdTable(FitnessError):
    """Raised when a configured threshold table cannot be used"""


def parse_number(value):
    """
    Coerce raw input to a float.
    Blank, non-numeric, NaN and infinite values become 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _round2(value):
    # Any finite float fits in 400 digits once quantized to cents
    with localcontext() as ctx:
        ctx.prec = 400
        return float(Decimal(repr(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def compute_bmi(weight, height):
    """
    Calculate BMI from weight (kg) and height (cm)

    Args:
        weight: Weight in kilograms
        height: Height in centimeters

    Returns:
        float: BMI rounded to 2 decimals, or 0 if either input is not positive
            or the quotient overflows
    """
    weight = parse_number(weight)
    height = parse_number(height)

    if weight <= 0 or height <= 0:
        return 0

    square = height * height
    if square == 0:
        return 0

    # weight / (height/100)^2, kept in cm to avoid float drift before rounding
    bmi = weight * 10000 / square
    if math.isinf(bmi):
        return 0
    return _round2(bmi)


def classify_bmi(bmi):
    """Return the BMI band for a value, or None when bmi <= 0 (unclassified)"""
    bmi = parse_number(bmi)

    if bmi <= 0:
        return None
    if bmi < 18.5:
        return UNDERWEIGHT
    if bmi < 23:
        return NORMAL
    if bmi < 25:
        return OVERWEIGHT
    return OBESE


def validate_thresholds(thresholds):
    """
    Check a threshold table before it is used.

    Each entry must be {"breakpoints": [b1, b2, b3, b4], "higher_is_better": bool}
    with strictly ascending numeric breakpoints.

    Raises:
        InvalidThresholdTable: If any entry is malformed
    """
    if thresholds is None:
        return {}
    if not isinstance(thresholds, dict):
        raise InvalidThresholdTable("Threshold table must be a dictionary keyed by test item id")

    for item_id, entry in thresholds.items():
        if not isinstance(entry, dict) or 'breakpoints' not in entry:
            raise InvalidThresholdTable(f"Entry for '{item_id}' must have 'breakpoints'")

        breakpoints = entry['breakpoints']
        if not isinstance(breakpoints, (list, tuple)) or len(breakpoints) != len(FitnessLevel.ORDER) - 1:
            raise InvalidThresholdTable(
                f"Entry for '{item_id}' needs {len(FitnessLevel.ORDER) - 1} breakpoints"
            )
        try:
            values = [float(b) for b in breakpoints]
        except (TypeError, ValueError):
            raise InvalidThresholdTable(f"Breakpoints for '{item_id}' must be numbers")
        if any(a >= b for a, b in zip(values, values[1:])):
            raise InvalidThresholdTable(f"Breakpoints for '{item_id}' must be strictly ascending")

    return thresholds


def classify_score(score, test_item_id, thresholds):
    """
    Map a raw score to a FitnessLevel using the threshold table.

    Args:
        score: Raw numeric score
        test_item_id: Id of the test item the score belongs to
        thresholds: Table keyed by test item id (see validate_thresholds)

    Returns:
        str: FitnessLevel value, or None if the item has no thresholds
    """
    if not thresholds:
        return None

    entry = thresholds.get(test_item_id)
    if not entry:
        return None

    score = parse_number(score)
    breakpoints = [float(b) for b in entry['breakpoints']]

    # Number of breakpoints the score has reached: 0 (worst) .. 4 (best)
    reached = sum(1 for b in breakpoints if score >= b)

    if entry.get('higher_is_better', True):
        return FitnessLevel.ORDER[len(breakpoints) - reached]
    return FitnessLevel.ORDER[reached]


def resolve_level(score, test_item_id, thresholds, manual_level=None):
    """
    Level to persist for a result: computed when thresholds exist,
    otherwise the manually entered level, otherwise the default.
    """
    level = classify_score(score, test_item_id, thresholds)
    if level is not None:
        return level
    if FitnessLevel.is_valid(manual_level):
        return manual_level
    return FitnessLevel.DEFAULT


def build_record(entry, thresholds=None, now=None, record_id=None):
    """
    Normalize a teacher's data-entry row into a FitnessRecord dict.

    BMI is derived from weight/height and every result level is
    re-resolved, so stale values from edited scores are never kept.

    Args:
        entry: dict with student_id, weight, height, results
        thresholds: Active threshold table
        now: datetime stamped on the record (defaults to utcnow)
        record_id: Id to use when the entry does not carry one

    Returns:
        dict: New record; the input entry is left untouched
    """
    now = now or datetime.utcnow()
    weight = parse_number(entry.get('weight'))
    height = parse_number(entry.get('height'))

    raw_results = entry.get('results')
    if not isinstance(raw_results, list):
        raw_results = []

    results = []
    for result in raw_results:
        if not isinstance(result, dict):
            continue
        test_item_id = result.get('test_item_id')
        if not test_item_id:
            continue
        score = parse_number(result.get('score'))
        results.append({
            'test_item_id': test_item_id,
            'score': score,
            'level': resolve_level(score, test_item_id, thresholds, result.get('level')),
        })

    return {
        'id': entry.get('id') or record_id,
        'student_id': entry.get('student_id'),
        'date': now.isoformat(),
        'weight': weight,
        'height': height,
        'bmi': compute_bmi(weight, height),
        'results': results,
    }


def blank_entry(student_id, test_items):
    """Empty data-entry row for a student with no record yet"""
    return {
        'student_id': student_id,
        'weight': 0,
        'height': 0,
        'bmi': 0,
        'results': [
            {'test_item_id': item['id'], 'score': 0, 'level': FitnessLevel.DEFAULT}
            for item in test_items
        ],
    }
