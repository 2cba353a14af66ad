"""
blueprints/student/routes.py - Student Blueprint
A student's own latest fitness results.
"""

from functools import wraps

from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from models import Role
from reports import latest_record, performance_chart, student_summary, summarize_individual
from storage import RecordStore, find_by_id

# Initialize the blueprint for student-related routes
student_bp = Blueprint('student', __name__)


def student_required(f):
    """
    Decorator to ensure only students can access the route
    """
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if current_user.role != Role.STUDENT:
            return jsonify({'success': False, 'error': 'Access denied. Students only.'}), 403
        return f(*args, **kwargs)
    return decorated_function


@student_bp.route('/dashboard')
@student_required
def dashboard():
    """
    Profile, BMI headline, latest results and radar chart data.
    report is None when nothing has been recorded yet.
    """
    store = RecordStore()
    student = find_by_id(store.get(RecordStore.STUDENTS), current_user.entity_id)
    records = store.get(RecordStore.RECORDS)
    test_items = store.get(RecordStore.TEST_ITEMS)

    record = latest_record(current_user.entity_id, records)
    school_class = find_by_id(store.get(RecordStore.CLASSES), (student or {}).get('class_id'))

    return jsonify({
        'success': True,
        'student': student,
        'class': school_class,
        'summary': student_summary(student, record),
        'report': summarize_individual(current_user.entity_id, records, test_items),
        'chart': performance_chart(record, test_items),
    })
