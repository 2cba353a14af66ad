"""
storage.py - Record Store
Key-value persistence of entity collections. Each collection is read and
written whole; there are no partial updates and no relational checks.
"""

import json
import logging
import uuid

from flask import current_app

from extensions import db, bcrypt
from models import StoreEntry

logger = logging.getLogger(__name__)


class RecordStore:
    """
    get/set access to the six logical collections.

    Usage:
        store = RecordStore()
        students = store.get(RecordStore.STUDENTS)
        store.set(RecordStore.STUDENTS, students + [new_student])
    """
    USERS = 'users'
    CLASSES = 'classes'
    STUDENTS = 'students'
    ASSIGNMENTS = 'assignments'
    RECORDS = 'records'
    TEST_ITEMS = 'test_items'

    KEYS = (USERS, CLASSES, STUDENTS, ASSIGNMENTS, RECORDS, TEST_ITEMS)

    def __init__(self, session=None):
        self.session = session or db.session

    def _check_key(self, key):
        if key not in self.KEYS:
            raise KeyError(f"Unknown collection: {key}")

    def _entry(self, key):
        return self.session.query(StoreEntry).filter_by(key=key).populate_existing().first()

    def has(self, key):
        self._check_key(key)
        return self._entry(key) is not None

    def get(self, key, default=None):
        """
        Read a whole collection

        Returns:
            list: Stored entities, or default ([] if not given) when never written
        """
        self._check_key(key)
        fallback = [] if default is None else default

        entry = self._entry(key)
        if entry is None:
            return fallback

        try:
            return json.loads(entry.payload)
        except (TypeError, ValueError):
            logger.error("Collection %s holds unreadable data, using default", key)
            return fallback

    def set(self, key, entities):
        """Replace a whole collection and commit"""
        self._check_key(key)
        entities = list(entities)
        payload = json.dumps(entities, ensure_ascii=False)

        entry = self._entry(key)
        if entry:
            entry.payload = payload
        else:
            entry = StoreEntry(key=key, payload=payload)
            self.session.add(entry)

        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Failed to write collection %s", key)
            raise

        logger.debug("Wrote %d entities to %s", len(entities), key)

    def init(self):
        """
        Seed every collection that has never been written.
        Existing collections are left as they are.
        """
        cfg = current_app.config
        seeds = {
            self.USERS: [hash_user(dict(u, last_login=None)) for u in cfg['DEFAULT_USERS']],
            self.CLASSES: [dict(c) for c in cfg['DEFAULT_CLASSES']],
            self.STUDENTS: [],
            self.ASSIGNMENTS: [],
            self.RECORDS: [],
            self.TEST_ITEMS: [dict(t) for t in cfg['DEFAULT_TEST_ITEMS']],
        }

        seeded = []
        for key in self.KEYS:
            if not self.has(key):
                self.set(key, seeds[key])
                seeded.append(key)

        if seeded:
            logger.info("Seeded collections: %s", ', '.join(seeded))
        return seeded

    @staticmethod
    def new_id(prefix=''):
        return f"{prefix}{uuid.uuid4().hex[:12]}"


def hash_password(raw):
    return bcrypt.generate_password_hash(raw).decode('utf-8')


def hash_user(user):
    """Copy of a user dict with its plain password replaced by a bcrypt hash"""
    user = dict(user)
    if user.get('password'):
        user['password'] = hash_password(user['password'])
    return user


def find_by_id(entities, entity_id):
    for entity in entities:
        if entity.get('id') == entity_id:
            return entity
    return None
