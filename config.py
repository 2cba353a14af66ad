"""
config.py - Configuration Classes
Settings for development, production, and testing environments.
"""

import os
from datetime import timedelta


class Config:
    """
    Base Configuration Class
    Contains settings shared across all environments.
    """
    # Secret key for session management
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Seed missing collections when the app starts
    SEED_ON_STARTUP = True

    # ========================================
    # SEED DATA
    # ========================================

    DEFAULT_USERS = [
        {'id': '1', 'username': 'admin', 'password': '0000', 'name': 'ผู้ดูแลระบบ', 'role': 'ADMIN'},
        {'id': '2', 'username': 'teacher1', 'password': '123', 'name': 'ครูสมชาย ใจดี', 'role': 'TEACHER'},
    ]

    DEFAULT_CLASSES = [
        {'id': 'c1', 'name': 'ป.1/1'},
        {'id': 'c2', 'name': 'ป.6/2'},
    ]

    # Standard test battery (order here is the canonical report order)
    DEFAULT_TEST_ITEMS = [
        {'id': 'bmi', 'name': 'ดัชนีมวลกาย (BMI)', 'unit': 'kg/m²',
         'description': 'ประเมินความสมส่วนของร่างกาย'},
        {'id': 'sit_reach', 'name': 'นั่งงอตัวไปข้างหน้า', 'unit': 'ซม.',
         'description': 'ประเมินความอ่อนตัว'},
        {'id': 'push_up', 'name': 'ดันพื้นประยุกต์ 30 วินาที', 'unit': 'ครั้ง',
         'description': 'ความแข็งแรงของกล้ามเนื้อแขน/ไหล่'},
        {'id': 'sit_up', 'name': 'ลุก-นั่ง 60 วินาที', 'unit': 'ครั้ง',
         'description': 'ความแข็งแรงของกล้ามเนื้อท้อง'},
        {'id': 'step_test', 'name': 'ยืนยกเข่าขึ้นลง 3 นาที', 'unit': 'ครั้ง',
         'description': 'ความอดทนของระบบหัวใจและไหลเวียนเลือด'},
    ]

    # ========================================
    # FITNESS LEVEL THRESHOLDS
    # ========================================
    # Keyed by test item id:
    # {
    #   "push_up": {"breakpoints": [8, 12, 18, 24], "higher_is_better": true}
    # }
    # Four ascending breakpoints split scores into the five levels.
    # Items without an entry keep the level entered by the teacher.
    FITNESS_LEVEL_THRESHOLDS = {}

    @classmethod
    def init_app(cls, app):
        """
        Initialize application with this config (optional hook)
        """
        pass


class DevelopmentConfig(Config):
    """
    Development Configuration
    Local SQLite file with debug mode enabled.
    """
    DEBUG = True
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        'sqlite:///' + os.path.join(os.path.dirname(os.path.abspath(__file__)), 'fitness_dev.db')

    SQLALCHEMY_ECHO = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """
    Production Configuration
    """
    DEBUG = False
    TESTING = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(os.path.dirname(os.path.abspath(__file__)), 'fitness.db')

    SESSION_COOKIE_SECURE = True
    SQLALCHEMY_ECHO = False

    @classmethod
    def init_app(cls, app):
        """
        Validate production settings when app is created
        """
        Config.init_app(app)

        if not os.environ.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable must be set in production!")


class TestingConfig(Config):
    """
    Testing Configuration
    In-memory SQLite, fast hashing, nothing seeded automatically.
    """
    DEBUG = False
    TESTING = True

    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    BCRYPT_LOG_ROUNDS = 4
    SQLALCHEMY_ECHO = False
    SEED_ON_STARTUP = False
    LOG_LEVEL = 'WARNING'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
