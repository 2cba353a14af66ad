"""
blueprints/auth/routes.py - Authentication Blueprint
Handles staff login, student login and logout.
"""

import logging
from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from extensions import bcrypt
from models import Role, SessionUser
from storage import RecordStore

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth', __name__)


def _payload():
    return request.get_json(silent=True) or request.form.to_dict()


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Staff login (admin and teacher) with username and password
    """
    data = _payload()
    username = str(data.get('username', '')).strip()
    password = str(data.get('password', ''))

    if not username or not password:
        return jsonify({'success': False, 'error': 'Please enter both username and password.'}), 400

    store = RecordStore()
    users = store.get(RecordStore.USERS)

    user = next((u for u in users if u.get('username') == username), None)

    # Students sign in with their student code instead
    if user is None or user.get('role') not in Role.STAFF or not user.get('password') \
            or not bcrypt.check_password_hash(user['password'], password):
        logger.warning("Failed staff login for %s", username)
        return jsonify({'success': False, 'error': 'Invalid username or password.'}), 401

    # Stamp last login for user management
    user['last_login'] = datetime.utcnow().isoformat(timespec='minutes')
    store.set(RecordStore.USERS, users)

    login_user(SessionUser.from_user(user), remember=True)
    logger.info("%s logged in as %s", username, user['role'])

    return jsonify({'success': True, 'user': current_user.to_dict()})


@auth_bp.route('/student-login', methods=['POST'])
def student_login():
    """
    Student login page
    Uses the school-assigned student code
    """
    data = _payload()
    student_code = str(data.get('student_id', '')).strip()

    if not student_code:
        return jsonify({'success': False, 'error': 'Please enter your student ID.'}), 400

    students = RecordStore().get(RecordStore.STUDENTS)
    student = next((s for s in students if s.get('student_id') == student_code), None)

    if student is None:
        logger.warning("Unknown student code %s", student_code)
        return jsonify({'success': False, 'error': 'Student ID not found.'}), 404

    login_user(SessionUser.from_student(student), remember=True)
    logger.info("Student %s logged in", student_code)

    return jsonify({'success': True, 'user': current_user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """
    Logout current user
    """
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, 'user': current_user.to_dict()})
