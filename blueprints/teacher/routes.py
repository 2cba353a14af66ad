"""
blueprints/teacher/routes.py - Teacher Blueprint
Score entry for the classes and test items assigned to the teacher.
"""

import logging
from datetime import datetime
from functools import wraps

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from fitness import build_record, blank_entry, compute_bmi, classify_bmi
from models import Role
from reports import latest_records_by_student
from storage import RecordStore, find_by_id

logger = logging.getLogger(__name__)

# Initialize the blueprint for teacher-related routes
teacher_bp = Blueprint('teacher', __name__)


def teacher_required(f):
    """
    Decorator to ensure only teachers can access the route
    """
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if current_user.role != Role.TEACHER:
            return jsonify({'success': False, 'error': 'Access denied. Teachers only.'}), 403
        return f(*args, **kwargs)
    return decorated_function


@teacher_bp.route('/classes')
@teacher_required
def classes():
    """Classes the current teacher has at least one assignment for"""
    store = RecordStore()
    assigned = assigned_class_ids(store.get(RecordStore.ASSIGNMENTS), current_user.entity_id)
    assigned_classes = [c for c in store.get(RecordStore.CLASSES) if c.get('id') in assigned]

    return jsonify({'success': True, 'classes': assigned_classes})


@teacher_bp.route('/classes/<class_id>/sheet')
@teacher_required
def class_sheet(class_id):
    """
    Data-entry sheet for one class.
    Each student row starts from their latest record, or a blank entry.
    """
    store = RecordStore()
    assignments = store.get(RecordStore.ASSIGNMENTS)

    school_class = find_by_id(store.get(RecordStore.CLASSES), class_id)
    if school_class is None or class_id not in assigned_class_ids(assignments, current_user.entity_id):
        return jsonify({'success': False, 'error': 'Class not found.'}), 404

    test_items = store.get(RecordStore.TEST_ITEMS)
    item_ids = assigned_test_item_ids(assignments, current_user.entity_id, class_id)
    assigned_tests = [item for item in test_items if item.get('id') in item_ids]

    students = [s for s in store.get(RecordStore.STUDENTS) if s.get('class_id') == class_id]
    latest = latest_records_by_student(store.get(RecordStore.RECORDS))

    rows = []
    for student in students:
        entry = latest.get(student['id']) or blank_entry(student['id'], test_items)
        rows.append({'student': student, 'entry': entry})

    return jsonify({
        'success': True,
        'class': school_class,
        'test_items': assigned_tests,
        'rows': rows,
    })


@teacher_bp.route('/classes/<class_id>/records', methods=['POST'])
@teacher_required
def save_records(class_id):
    """
    Save a whole class batch.
    Every existing record of the class's students is replaced by the batch.
    """
    data = request.get_json(silent=True) or {}
    entries = data.get('entries')
    if not isinstance(entries, list):
        return jsonify({'success': False, 'error': 'entries must be a list'}), 400

    store = RecordStore()
    if class_id not in assigned_class_ids(store.get(RecordStore.ASSIGNMENTS), current_user.entity_id):
        return jsonify({'success': False, 'error': 'Class not found.'}), 404

    class_student_ids = {s['id'] for s in store.get(RecordStore.STUDENTS) if s.get('class_id') == class_id}

    thresholds = current_app.config.get('FITNESS_LEVEL_THRESHOLDS')
    now = datetime.utcnow()
    batch = [
        build_record(entry, thresholds, now=now, record_id=RecordStore.new_id('r'))
        for entry in entries
        if isinstance(entry, dict) and _entry_student_id(entry) in class_student_ids
    ]

    records = replace_class_records(store.get(RecordStore.RECORDS), class_student_ids, batch)
    store.set(RecordStore.RECORDS, records)

    logger.info("%s saved %d record(s) for class %s", current_user.username, len(batch), class_id)
    return jsonify({'success': True, 'saved': len(batch), 'records': batch})


@teacher_bp.route('/bmi', methods=['POST'])
@teacher_required
def preview_bmi():
    """Live BMI for the entry form"""
    data = request.get_json(silent=True) or request.form.to_dict()
    bmi = compute_bmi(data.get('weight'), data.get('height'))
    return jsonify({'success': True, 'bmi': bmi, 'category': classify_bmi(bmi)})


def _entry_student_id(entry):
    student_id = entry.get('student_id')
    return student_id if isinstance(student_id, str) else None


def assigned_class_ids(assignments, teacher_id):
    """
    Helper function: ids of classes a teacher is assigned to
    """
    return {a.get('class_id') for a in assignments if a.get('teacher_id') == teacher_id}


def assigned_test_item_ids(assignments, teacher_id, class_id):
    """
    Helper function: union of test items across a teacher's assignments for one class
    """
    item_ids = set()
    for a in assignments:
        if a.get('teacher_id') == teacher_id and a.get('class_id') == class_id:
            item_ids.update(a.get('test_item_ids') or [])
    return item_ids


def replace_class_records(records, student_ids, batch):
    """
    Helper function: drop every record of the given students, then append the batch
    """
    kept = [r for r in records if r.get('student_id') not in student_ids]
    return kept + list(batch)
