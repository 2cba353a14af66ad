"""
models.py - Database Models
One key-value table holds every entity collection; session users are
plain objects built from the stored dicts.
"""

from extensions import db
from flask_login import UserMixin
from datetime import datetime


class StoreEntry(db.Model):
    """
    One collection of the record store (users, classes, students, ...)
    Payload is the JSON-encoded list of entities.
    """
    __tablename__ = 'store_entry'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False, default='[]')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<StoreEntry {self.key}>'


class Role:
    ADMIN = 'ADMIN'
    TEACHER = 'TEACHER'
    STUDENT = 'STUDENT'

    STAFF = (ADMIN, TEACHER)


class Gender:
    MALE = 'MALE'
    FEMALE = 'FEMALE'


class SessionUser(UserMixin):
    """
    Logged-in user for Flask-Login.
    Staff sessions wrap a 'users' entity; student sessions wrap a 'students' entity.
    """

    def __init__(self, entity_id, username, name, role, student_id=None):
        self.entity_id = entity_id
        self.username = username
        self.name = name
        self.role = role
        self.student_id = student_id

    def get_id(self):
        # Prefix keeps staff and student ids apart in the session cookie
        prefix = 'student' if self.role == Role.STUDENT else 'user'
        return f'{prefix}:{self.entity_id}'

    def __repr__(self):
        return f'<SessionUser {self.username} ({self.role})>'

    def to_dict(self):
        return {
            'id': self.entity_id,
            'username': self.username,
            'name': self.name,
            'role': self.role,
            'student_id': self.student_id,
        }

    @classmethod
    def from_user(cls, user):
        return cls(user['id'], user.get('username'), user.get('name'), user.get('role'))

    @classmethod
    def from_student(cls, student):
        return cls(
            student['id'],
            student.get('student_id'),
            student.get('name'),
            Role.STUDENT,
            student_id=student.get('student_id'),
        )
