"""
reports.py - Aggregation Engine
Builds school, class and individual report data from snapshots of the
record store. Inputs are never modified; references to deleted students
or test items are skipped instead of raising.
"""

from fitness import (
    BMI_CATEGORIES, FitnessLevel, classify_bmi, compute_bmi, parse_number
)


# Record status for the class report
COMPLETED = 'completed'
PENDING = 'pending'


def _recency_key(indexed_record):
    """
    Sort key for "most recent".
    Dates are ISO-8601 strings and compare lexically; equal dates fall back
    to the record id, then to input position.
    """
    index, record = indexed_record
    return (str(record.get('date') or ''), str(record.get('id') or ''), index)


def latest_record(student_id, records):
    """Most recent record for one student, or None"""
    candidates = [
        (index, record) for index, record in enumerate(records)
        if record.get('student_id') == student_id
    ]
    if not candidates:
        return None
    return max(candidates, key=_recency_key)[1]


def latest_records_by_student(records):
    """
    Map each student id to that student's most recent record
    """
    latest = {}
    for indexed in enumerate(records):
        record = indexed[1]
        student_id = record.get('student_id')
        if student_id is None:
            continue
        current = latest.get(student_id)
        if current is None or _recency_key(indexed) > _recency_key(current):
            latest[student_id] = indexed
    return {student_id: indexed[1] for student_id, indexed in latest.items()}


def _has_level(record, level):
    return any(result.get('level') == level for result in record.get('results') or [])


def _level_counts(records):
    return [
        {'level': level, 'count': sum(1 for r in records if _has_level(r, level))}
        for level in FitnessLevel.ORDER
    ]


def summarize_school(records, student_count=0):
    """
    School-wide summary.

    Args:
        records: All fitness records
        student_count: Number of students on roll

    Returns:
        dict: {
            'bmi_distribution': [{'category': 'normal', 'count': 3}, ...],
            'level_distribution': [{'level': 'VERY_GOOD', 'count': 1}, ...],
            'total_records': 5,
            'student_count': 4,
            'completion_rate': 125.0
        }
    """
    latest = latest_records_by_student(records)

    bmi_counts = dict.fromkeys(BMI_CATEGORIES, 0)
    for record in latest.values():
        category = classify_bmi(record.get('bmi'))
        if category is not None:
            bmi_counts[category] += 1

    # Raw record count over students on roll, not distinct students
    completion_rate = round(len(records) / max(student_count, 1) * 100, 2)

    return {
        'bmi_distribution': [
            {'category': category, 'count': bmi_counts[category]}
            for category in BMI_CATEGORIES if bmi_counts[category] > 0
        ],
        'level_distribution': _level_counts(records),
        'total_records': len(records),
        'student_count': student_count,
        'completion_rate': completion_rate,
    }


def summarize_class(class_id, students, records):
    """
    Per-student status for one class plus its fitness level distribution.
    Students without a record are reported as pending.
    """
    latest = latest_records_by_student(records)
    class_students = [s for s in students if s.get('class_id') == class_id]

    rows = []
    class_latest = []
    for student in class_students:
        record = latest.get(student.get('id'))
        if record is not None:
            class_latest.append(record)

        weight = (record.get('weight') if record else None) or student.get('weight') or None
        height = (record.get('height') if record else None) or student.get('height') or None
        bmi = record.get('bmi') if record else None

        rows.append({
            'id': student.get('id'),
            'student_id': student.get('student_id'),
            'name': student.get('name'),
            'weight': weight,
            'height': height,
            'bmi': bmi,
            'bmi_category': classify_bmi(bmi) if bmi else None,
            'status': COMPLETED if record is not None else PENDING,
            'record_date': record.get('date') if record else None,
        })

    completed = sum(1 for row in rows if row['status'] == COMPLETED)

    return {
        'class_id': class_id,
        'students': rows,
        'level_distribution': _level_counts(class_latest),
        'completed': completed,
        'pending': len(rows) - completed,
    }


def summarize_individual(student_id, records, test_items):
    """
    Latest results for one student joined with test item names and units.

    Returns:
        dict or None: None when the student has no records
    """
    record = latest_record(student_id, records)
    if record is None:
        return None

    by_item = {}
    for result in record.get('results') or []:
        by_item.setdefault(result.get('test_item_id'), result)

    results = []
    for item in test_items:
        result = by_item.get(item.get('id'))
        if result is None:
            continue
        results.append({
            'test_item_id': item['id'],
            'name': item.get('name'),
            'unit': item.get('unit'),
            'score': result.get('score'),
            'level': result.get('level'),
        })

    return {
        'student_id': student_id,
        'record_id': record.get('id'),
        'date': record.get('date'),
        'weight': record.get('weight'),
        'height': record.get('height'),
        'bmi': record.get('bmi'),
        'bmi_category': classify_bmi(record.get('bmi')),
        'results': results,
    }


def performance_chart(record, test_items):
    """
    Radar chart series for the student dashboard.
    Scores are scaled x5 and capped at 100; the BMI item shows 80 once a BMI exists.
    """
    by_item = {}
    if record is not None:
        for result in record.get('results') or []:
            by_item.setdefault(result.get('test_item_id'), result)

    series = []
    for item in test_items:
        value = 0
        if record is not None:
            if item.get('id') == 'bmi':
                value = 80 if parse_number(record.get('bmi')) > 0 else 0
            elif item.get('id') in by_item:
                value = min(parse_number(by_item[item['id']].get('score')) * 5, 100)
        series.append({
            'test_item_id': item.get('id'),
            'subject': item.get('name'),
            'value': value,
            'full_mark': 100,
        })
    return series


def student_summary(student, record):
    """Headline weight/height/BMI for a student, falling back to baseline values"""
    student = student or {}
    weight = parse_number((record or {}).get('weight')) or parse_number(student.get('weight'))
    height = parse_number((record or {}).get('height')) or parse_number(student.get('height'))

    bmi = parse_number((record or {}).get('bmi')) or compute_bmi(weight, height)

    return {
        'weight': weight,
        'height': height,
        'bmi': bmi,
        'status': classify_bmi(bmi),
    }
