"""
app.py - Application Factory
Entry point for the school fitness records Flask application.
"""

import logging

from flask import Flask, jsonify
from config import config
from extensions import db, migrate, login_manager, bcrypt
from fitness import validate_thresholds


def create_app(config_name='development'):
    """
    Application Factory Function

    Args:
        config_name (str): Configuration to use ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    configure_logging(app)

    # Fail at startup rather than on the first save
    validate_thresholds(app.config.get('FITNESS_LEVEL_THRESHOLDS'))

    # Initialize extensions with the app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    bcrypt.init_app(app)

    @login_manager.user_loader
    def load_user(session_id):
        """Rebuild the session user from the record store"""
        from models import SessionUser
        from storage import RecordStore, find_by_id

        kind, _, entity_id = session_id.partition(':')
        store = RecordStore()
        if kind == 'student':
            student = find_by_id(store.get(RecordStore.STUDENTS), entity_id)
            return SessionUser.from_student(student) if student else None
        user = find_by_id(store.get(RecordStore.USERS), entity_id)
        return SessionUser.from_user(user) if user else None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Login required'}), 401

    register_blueprints(app)
    register_error_handlers(app)

    with app.app_context():
        import models  # noqa: F401 - register tables
        db.create_all()
        if app.config.get('SEED_ON_STARTUP'):
            from storage import RecordStore
            RecordStore().init()

    return app


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    app.logger.setLevel(level)


def register_blueprints(app):
    """
    Register all application blueprints
    """
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.teacher.routes import teacher_bp
    from blueprints.student.routes import student_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(teacher_bp, url_prefix='/teacher')
    app.register_blueprint(student_bp, url_prefix='/student')

    @app.route('/')
    def index():
        return jsonify({'name': 'school-fitness', 'status': 'ok'})


def register_error_handlers(app):
    """
    JSON handlers for common HTTP errors
    """
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    @app.errorhandler(403)
    def forbidden(error):
        return jsonify({'success': False, 'error': 'Forbidden'}), 403


if __name__ == '__main__':
    app = create_app('development')

    app.run(
        host='0.0.0.0',
        port=5000,
        debug=True
    )
