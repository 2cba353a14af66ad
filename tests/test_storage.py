import pytest

from extensions import bcrypt
from storage import RecordStore, find_by_id, hash_user


def test_round_trip_preserves_every_field(app):
    record = {
        'id': 'r1',
        'student_id': 's1',
        'date': '2024-06-01T09:30:00',
        'weight': 50.0,
        'height': 150.0,
        'bmi': 22.22,
        'results': [{'test_item_id': 'push_up', 'score': 12.0, 'level': 'GOOD'}],
    }
    student = {'id': 's1', 'student_id': '1001', 'name': 'สมชาย ใจดี', 'gender': 'MALE',
               'birth_date': '2012-05-15', 'class_id': 'c1', 'weight': None, 'height': None}

    with app.app_context():
        store = RecordStore()
        store.set(RecordStore.RECORDS, [record])
        store.set(RecordStore.STUDENTS, [student])

    with app.app_context():
        store = RecordStore()
        assert store.get(RecordStore.RECORDS) == [record]
        assert store.get(RecordStore.STUDENTS) == [student]


def test_set_replaces_whole_collection(app):
    with app.app_context():
        store = RecordStore()
        store.set(RecordStore.CLASSES, [{'id': 'a', 'name': 'A'}, {'id': 'b', 'name': 'B'}])
        store.set(RecordStore.CLASSES, [{'id': 'c', 'name': 'C'}])
        assert store.get(RecordStore.CLASSES) == [{'id': 'c', 'name': 'C'}]


def test_unknown_collection_raises(app):
    with app.app_context():
        store = RecordStore()
        with pytest.raises(KeyError):
            store.get('grades')
        with pytest.raises(KeyError):
            store.set('grades', [])


def test_get_default_for_unwritten_collection():
    from app import create_app

    app = create_app('testing')
    with app.app_context():
        store = RecordStore()
        assert store.get(RecordStore.RECORDS) == []
        assert store.get(RecordStore.RECORDS, [{'id': 'x'}]) == [{'id': 'x'}]


def test_init_seeds_defaults_and_never_overwrites(app):
    with app.app_context():
        store = RecordStore()
        assert [t['id'] for t in store.get(RecordStore.TEST_ITEMS)] == [
            'bmi', 'sit_reach', 'push_up', 'sit_up', 'step_test'
        ]
        assert [c['id'] for c in store.get(RecordStore.CLASSES)] == ['c1', 'c2']

        store.set(RecordStore.CLASSES, [])
        assert store.init() == []
        assert store.get(RecordStore.CLASSES) == []


def test_seeded_passwords_are_hashed(app):
    with app.app_context():
        admin = find_by_id(RecordStore().get(RecordStore.USERS), '1')
        assert admin['password'] != '0000'
        assert bcrypt.check_password_hash(admin['password'], '0000')
        assert admin['last_login'] is None


def test_hash_user_returns_copy(app):
    with app.app_context():
        user = {'id': 'u', 'password': 'secret'}
        hashed = hash_user(user)
        assert user['password'] == 'secret'
        assert bcrypt.check_password_hash(hashed['password'], 'secret')


def test_new_id_prefix():
    assert RecordStore.new_id('s').startswith('s')
    assert RecordStore.new_id() != RecordStore.new_id()
