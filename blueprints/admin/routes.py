"""
blueprints/admin/routes.py - Admin Blueprint
Management of users, classes, students, test items and assignments,
plus school, class and individual fitness reports with CSV export.
"""

import csv
import io
import logging
import re
from datetime import date
from functools import wraps
from urllib.parse import quote

from flask import Blueprint, jsonify, request, make_response
from flask_login import login_required, current_user
from fitness import parse_number
from models import Role, Gender
from reports import summarize_school, summarize_class, summarize_individual
from storage import RecordStore, find_by_id, hash_password

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def admin_required(f):
    """Ensure only admins can access the route"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if current_user.role != Role.ADMIN:
            return jsonify({'success': False, 'error': 'Access denied. Admins only.'}), 403
        return f(*args, **kwargs)
    return decorated_function


def _payload():
    return request.get_json(silent=True) or request.form.to_dict()


def _error(message, status=400):
    return jsonify({'success': False, 'error': message}), status


def _public_user(user):
    """User dict without the password hash"""
    return {k: v for k, v in user.items() if k != 'password'}


@admin_bp.route('/dashboard')
@admin_required
def dashboard():
    """Admin Dashboard - headline counts"""
    store = RecordStore()
    users = store.get(RecordStore.USERS)

    return jsonify({
        'success': True,
        'total_users': len(users),
        'total_teachers': sum(1 for u in users if u.get('role') == Role.TEACHER),
        'total_classes': len(store.get(RecordStore.CLASSES)),
        'total_students': len(store.get(RecordStore.STUDENTS)),
        'total_records': len(store.get(RecordStore.RECORDS)),
        'total_test_items': len(store.get(RecordStore.TEST_ITEMS)),
    })


# ========================================
# USERS
# ========================================

@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    users = RecordStore().get(RecordStore.USERS)
    return jsonify({'success': True, 'users': [_public_user(u) for u in users]})


@admin_bp.route('/users', methods=['POST'])
@admin_required
def create_user():
    """Create a staff account"""
    data = _payload()
    username = str(data.get('username', '')).strip()
    password = str(data.get('password', ''))
    name = str(data.get('name', '')).strip()
    role = str(data.get('role', Role.TEACHER)).strip().upper()

    if not all([username, password, name]):
        return _error('Please fill in all required fields.')
    if role not in Role.STAFF:
        return _error('Role must be ADMIN or TEACHER.')

    store = RecordStore()
    users = store.get(RecordStore.USERS)
    if any(u.get('username') == username for u in users):
        return _error('Username already exists.')

    user = {
        'id': RecordStore.new_id(),
        'username': username,
        'password': hash_password(password),
        'name': name,
        'role': role,
        'last_login': None,
    }
    store.set(RecordStore.USERS, users + [user])
    logger.info("User %s (%s) created by %s", username, role, current_user.username)

    return jsonify({'success': True, 'user': _public_user(user)}), 201


@admin_bp.route('/users/<user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    """Edit a user; the password only changes when a new one is given"""
    data = _payload()
    store = RecordStore()
    users = store.get(RecordStore.USERS)

    user = find_by_id(users, user_id)
    if user is None:
        return _error('User not found.', 404)

    username = str(data.get('username', user.get('username'))).strip()
    if any(u.get('username') == username and u.get('id') != user_id for u in users):
        return _error('Username already exists.')

    role = str(data.get('role', user.get('role'))).strip().upper()
    if role not in Role.STAFF:
        return _error('Role must be ADMIN or TEACHER.')

    user['username'] = username
    user['name'] = str(data.get('name', user.get('name'))).strip()
    user['role'] = role
    if data.get('password'):
        user['password'] = hash_password(str(data['password']))

    store.set(RecordStore.USERS, users)
    return jsonify({'success': True, 'user': _public_user(user)})


@admin_bp.route('/users/<user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    return _delete_entity(RecordStore.USERS, user_id, 'User')


# ========================================
# CLASSES
# ========================================

@admin_bp.route('/classes', methods=['GET'])
@admin_required
def list_classes():
    return jsonify({'success': True, 'classes': RecordStore().get(RecordStore.CLASSES)})


@admin_bp.route('/classes', methods=['POST'])
@admin_required
def create_class():
    name = str(_payload().get('name', '')).strip()
    if not name:
        return _error('Class name is required.')

    store = RecordStore()
    new_class = {'id': RecordStore.new_id('c'), 'name': name}
    store.set(RecordStore.CLASSES, store.get(RecordStore.CLASSES) + [new_class])

    return jsonify({'success': True, 'class': new_class}), 201


@admin_bp.route('/classes/<class_id>', methods=['DELETE'])
@admin_required
def delete_class(class_id):
    """Delete a class; its students keep their (now dangling) class_id"""
    return _delete_entity(RecordStore.CLASSES, class_id, 'Class')


# ========================================
# STUDENTS
# ========================================

def _parse_gender(value):
    value = str(value or '').strip()
    if value.upper() in ('M', Gender.MALE) or 'ชาย' in value:
        return Gender.MALE
    return Gender.FEMALE


def _student_fields(data, student=None):
    student = dict(student or {})
    for field in ('student_id', 'name', 'birth_date', 'class_id'):
        if field in data:
            student[field] = str(data.get(field) or '').strip()
    if 'gender' in data:
        student['gender'] = _parse_gender(data.get('gender'))
    for field in ('weight', 'height'):
        if field in data:
            value = parse_number(data.get(field))
            student[field] = value if value > 0 else None
    return student


@admin_bp.route('/students', methods=['GET'])
@admin_required
def list_students():
    students = RecordStore().get(RecordStore.STUDENTS)
    class_id = request.args.get('class_id')
    if class_id:
        students = [s for s in students if s.get('class_id') == class_id]
    return jsonify({'success': True, 'students': students})


@admin_bp.route('/students', methods=['POST'])
@admin_required
def create_student():
    """Register single student"""
    data = _payload()
    student = _student_fields(data)
    student.setdefault('gender', Gender.FEMALE)
    student.setdefault('birth_date', '')

    if not all([student.get('student_id'), student.get('name'), student.get('class_id')]):
        return _error('Student ID, name and class are required.')

    store = RecordStore()
    students = store.get(RecordStore.STUDENTS)
    if any(s.get('student_id') == student['student_id'] for s in students):
        return _error('Student ID already exists.')

    student['id'] = RecordStore.new_id('s')
    store.set(RecordStore.STUDENTS, students + [student])

    return jsonify({'success': True, 'student': student}), 201


@admin_bp.route('/students/<student_id>', methods=['PUT'])
@admin_required
def update_student(student_id):
    data = _payload()
    store = RecordStore()
    students = store.get(RecordStore.STUDENTS)

    index = next((i for i, s in enumerate(students) if s.get('id') == student_id), None)
    if index is None:
        return _error('Student not found.', 404)

    updated = _student_fields(data, students[index])
    if any(s.get('student_id') == updated.get('student_id') and s.get('id') != student_id
           for s in students):
        return _error('Student ID already exists.')

    students[index] = updated
    store.set(RecordStore.STUDENTS, students)
    return jsonify({'success': True, 'student': updated})


@admin_bp.route('/students/<student_id>', methods=['DELETE'])
@admin_required
def delete_student(student_id):
    return _delete_entity(RecordStore.STUDENTS, student_id, 'Student')


@admin_bp.route('/students/bulk-import', methods=['POST'])
@admin_required
def bulk_import_students():
    """
    Import students into one class from text lines:
        code,name,gender(M/F),birth_date(YYYY-MM-DD)
    """
    data = _payload()
    class_id = str(data.get('class_id', '')).strip()
    text = data.get('text') or ''

    if not class_id:
        return _error('Please choose a class for the imported students.')
    if not text.strip():
        return _error('Nothing to import.')

    store = RecordStore()
    students = store.get(RecordStore.STUDENTS)
    known_codes = {s.get('student_id') for s in students}

    imported = []
    error_details = []

    for line_num, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split(',')]
        code = parts[0] if parts else ''
        name = parts[1] if len(parts) > 1 else ''

        if not code or not name:
            error_details.append(f"Line {line_num}: Missing student ID or name")
            continue
        if code in known_codes:
            error_details.append(f"Line {line_num}: Student ID {code} already exists")
            continue

        known_codes.add(code)
        imported.append({
            'id': RecordStore.new_id('s'),
            'student_id': code,
            'name': name,
            'gender': _parse_gender(parts[2] if len(parts) > 2 else ''),
            'birth_date': parts[3] if len(parts) > 3 else '',
            'class_id': class_id,
        })

    if imported:
        store.set(RecordStore.STUDENTS, students + imported)
    logger.info("Imported %d student(s) into %s, %d error(s)", len(imported), class_id, len(error_details))

    return jsonify({
        'success': True,
        'imported': len(imported),
        'errors': error_details,
        'students': imported,
    })


# ========================================
# TEST ITEMS
# ========================================

@admin_bp.route('/test-items', methods=['GET'])
@admin_required
def list_test_items():
    return jsonify({'success': True, 'test_items': RecordStore().get(RecordStore.TEST_ITEMS)})


def _test_item_fields(data, item=None):
    item = dict(item or {})
    for field in ('name', 'unit', 'description'):
        if field in data:
            item[field] = str(data.get(field) or '').strip()
    return item


@admin_bp.route('/test-items', methods=['POST'])
@admin_required
def create_test_item():
    item = _test_item_fields(_payload(), {'name': '', 'unit': '', 'description': ''})
    if not item['name'] or not item['unit']:
        return _error('Test item name and unit are required.')

    item = {'id': RecordStore.new_id('ti'), **item}
    store = RecordStore()
    store.set(RecordStore.TEST_ITEMS, store.get(RecordStore.TEST_ITEMS) + [item])

    return jsonify({'success': True, 'test_item': item}), 201


@admin_bp.route('/test-items/<item_id>', methods=['PUT'])
@admin_required
def update_test_item(item_id):
    data = _payload()
    store = RecordStore()
    items = store.get(RecordStore.TEST_ITEMS)

    index = next((i for i, t in enumerate(items) if t.get('id') == item_id), None)
    if index is None:
        return _error('Test item not found.', 404)

    updated = _test_item_fields(data, items[index])
    if not updated.get('name') or not updated.get('unit'):
        return _error('Test item name and unit are required.')

    items[index] = updated
    store.set(RecordStore.TEST_ITEMS, items)
    return jsonify({'success': True, 'test_item': updated})


@admin_bp.route('/test-items/<item_id>', methods=['DELETE'])
@admin_required
def delete_test_item(item_id):
    return _delete_entity(RecordStore.TEST_ITEMS, item_id, 'Test item')


# ========================================
# ASSIGNMENTS
# ========================================

@admin_bp.route('/assignments', methods=['GET'])
@admin_required
def list_assignments():
    return jsonify({'success': True, 'assignments': RecordStore().get(RecordStore.ASSIGNMENTS)})


@admin_bp.route('/assignments', methods=['POST'])
@admin_required
def create_assignment():
    """Bind a teacher and a class to a set of test items"""
    data = _payload()
    teacher_id = str(data.get('teacher_id', '')).strip()
    class_id = str(data.get('class_id', '')).strip()

    if request.is_json:
        raw_ids = data.get('test_item_ids') or []
    else:
        raw_ids = request.form.getlist('test_item_ids')
    if not isinstance(raw_ids, list):
        raw_ids = [raw_ids]
    test_item_ids = [str(t).strip() for t in raw_ids if str(t).strip()]

    if not teacher_id or not class_id or not test_item_ids:
        return _error('Please choose a teacher, a class and at least one test item.')

    store = RecordStore()
    teacher = find_by_id(store.get(RecordStore.USERS), teacher_id)
    if teacher is None or teacher.get('role') != Role.TEACHER:
        return _error('Teacher not found.', 404)
    if find_by_id(store.get(RecordStore.CLASSES), class_id) is None:
        return _error('Class not found.', 404)

    assignment = {
        'id': RecordStore.new_id('a'),
        'teacher_id': teacher_id,
        'class_id': class_id,
        'test_item_ids': test_item_ids,
    }
    store.set(RecordStore.ASSIGNMENTS, store.get(RecordStore.ASSIGNMENTS) + [assignment])

    return jsonify({'success': True, 'assignment': assignment}), 201


@admin_bp.route('/assignments/<assignment_id>', methods=['DELETE'])
@admin_required
def delete_assignment(assignment_id):
    return _delete_entity(RecordStore.ASSIGNMENTS, assignment_id, 'Assignment')


# ========================================
# REPORTS
# ========================================

@admin_bp.route('/reports/school')
@admin_required
def school_report():
    store = RecordStore()
    summary = summarize_school(
        store.get(RecordStore.RECORDS),
        len(store.get(RecordStore.STUDENTS)),
    )
    return jsonify({'success': True, 'summary': summary})


@admin_bp.route('/reports/class/<class_id>')
@admin_required
def class_report(class_id):
    store = RecordStore()
    school_class = find_by_id(store.get(RecordStore.CLASSES), class_id)
    if school_class is None:
        return _error('Class not found.', 404)

    summary = summarize_class(class_id, store.get(RecordStore.STUDENTS), store.get(RecordStore.RECORDS))
    return jsonify({'success': True, 'class': school_class, 'summary': summary})


@admin_bp.route('/reports/student/<student_id>')
@admin_required
def student_report(student_id):
    store = RecordStore()
    student = find_by_id(store.get(RecordStore.STUDENTS), student_id)
    if student is None:
        return _error('Student not found.', 404)

    report = summarize_individual(student_id, store.get(RecordStore.RECORDS), store.get(RecordStore.TEST_ITEMS))
    if report is None:
        return _error('No data for this student.', 404)

    return jsonify({'success': True, 'student': student, 'report': report})


@admin_bp.route('/reports/school/export')
@admin_required
def export_school_report():
    store = RecordStore()
    summary = summarize_school(store.get(RecordStore.RECORDS), len(store.get(RecordStore.STUDENTS)))

    rows = [['BMI Distribution', '', '']]
    rows += [['', stat['category'], stat['count']] for stat in summary['bmi_distribution']]
    rows.append(['Fitness Level Overall', '', ''])
    rows += [['', stat['level'], stat['count']] for stat in summary['level_distribution']]
    rows.append(['Total Records', '', summary['total_records']])
    rows.append(['Completion Rate (%)', '', summary['completion_rate']])

    return csv_response(['Category', 'Item', 'Value'], rows, 'school_fitness_summary')


@admin_bp.route('/reports/class/<class_id>/export')
@admin_required
def export_class_report(class_id):
    store = RecordStore()
    school_class = find_by_id(store.get(RecordStore.CLASSES), class_id)
    if school_class is None:
        return _error('Class not found.', 404)

    summary = summarize_class(class_id, store.get(RecordStore.STUDENTS), store.get(RecordStore.RECORDS))

    headers = ['Student ID', 'Name', 'Weight (kg)', 'Height (cm)', 'BMI', 'Status']
    rows = [
        [row['student_id'], row['name'], _or_dash(row['weight']), _or_dash(row['height']),
         _or_dash(row['bmi']), row['status']]
        for row in summary['students']
    ]
    return csv_response(headers, rows, f"class_fitness_report_{school_class['name']}")


@admin_bp.route('/reports/student/<student_id>/export')
@admin_required
def export_student_report(student_id):
    store = RecordStore()
    student = find_by_id(store.get(RecordStore.STUDENTS), student_id)
    if student is None:
        return _error('Student not found.', 404)

    report = summarize_individual(student_id, store.get(RecordStore.RECORDS), store.get(RecordStore.TEST_ITEMS))
    if report is None:
        return _error('No data for this student.', 404)

    rows = [[r['name'], r['unit'], r['score'], r['level']] for r in report['results']]
    return csv_response(['Test Item', 'Unit', 'Score', 'Level'], rows,
                        f"fitness_report_{student.get('student_id')}")


# ========================================
# HELPERS
# ========================================

def _delete_entity(key, entity_id, label):
    """Remove one entity from a collection; nothing else is cascaded"""
    store = RecordStore()
    entities = store.get(key)
    remaining = [e for e in entities if e.get('id') != entity_id]

    if len(remaining) == len(entities):
        return _error(f'{label} not found.', 404)

    store.set(key, remaining)
    logger.info("%s %s deleted by %s", label, entity_id, current_user.username)
    return jsonify({'success': True})


def _or_dash(value):
    return '-' if value in (None, '', 0) else value


def csv_response(headers, rows, report_name):
    """
    CSV download with a UTF-8 byte-order mark and every field quoted.
    Filename: <report-name>_<YYYY-MM-DD>.csv
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(headers)
    writer.writerows(rows)

    safe_name = re.sub(r'[\\/:*?"<>|]+', '-', report_name)
    filename = f"{safe_name}_{date.today().isoformat()}.csv"

    response = make_response('\ufeff' + output.getvalue())
    response.headers['Content-Type'] = 'text/csv; charset=utf-8'
    try:
        filename.encode('ascii')
        response.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        response.headers['Content-Disposition'] = (
            f"attachment; filename=\"report_{date.today().isoformat()}.csv\"; "
            f"filename*=UTF-8''{quote(filename)}"
        )
    return response
