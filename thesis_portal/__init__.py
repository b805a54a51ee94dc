"""
Thesis Submission Portal - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging
import os

from flask import Flask, render_template
from flask_login import current_user

from thesis_portal.config import Config
from thesis_portal.errors import PortalError
from thesis_portal.extensions import db, login_manager

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    logging.getLogger('thesis_portal').setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message_category = 'warning'

    from thesis_portal.records.notifier import ChangeNotifier
    from thesis_portal.records.view import RecordsViewRegistry
    from thesis_portal.records import hooks  # noqa: F401  registers session events

    app.extensions['change_notifier'] = ChangeNotifier()
    app.extensions['records_views'] = RecordsViewRegistry(
        idle_seconds=app.config['RECORDS_VIEW_IDLE_SECONDS']
    )

    # Register blueprints
    from thesis_portal.public import public_bp
    from thesis_portal.auth import auth_bp
    from thesis_portal.admin import admin_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    # Role flags for templates, resolved per request
    @app.context_processor
    def inject_role_flags():
        from thesis_portal.services.roles import current_role, is_admin
        role = current_role() if current_user.is_authenticated else None
        return dict(user_role=role.value if role else None, is_admin=is_admin(role))

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        from thesis_portal.models import AuthIdentity
        return db.session.get(AuthIdentity, user_id)

    @app.template_filter('category_label')
    def category_label_filter(value):
        from thesis_portal.models.enums import category_labels
        return category_labels(app.config['INSTITUTION_NAME']).get(value, value)

    @app.template_filter('fmt_date')
    def fmt_date_filter(value, fmt='%b %d, %Y'):
        if value is None:
            return 'Never'
        return value.strftime(fmt)

    @app.errorhandler(403)
    def forbidden(error):
        return render_template('errors/403.html'), 403

    @app.errorhandler(PortalError)
    def portal_error(error):
        logger.warning('Unhandled portal error: %s', error.message)
        return render_template('errors/error.html', message=error.message), 503

    # Create database tables
    with app.app_context():
        _ensure_instance_dir(app)
        db.create_all()
        _ensure_default_data(app)

    return app


def _ensure_instance_dir(app):
    uri = app.config['SQLALCHEMY_DATABASE_URI']
    if uri.startswith('sqlite:///') and ':memory:' not in uri:
        os.makedirs(os.path.dirname(uri[len('sqlite:///'):]) or '.', exist_ok=True)


def _ensure_default_data(app):
    """Ensure a bootstrap Admin account exists."""
    from thesis_portal.services.accounts import ensure_bootstrap_admin
    from sqlalchemy.exc import SQLAlchemyError

    try:
        ensure_bootstrap_admin(
            app.config['ADMIN_EMAIL'],
            app.config['ADMIN_PASSWORD'],
            hash_method=app.config['PASSWORD_HASH_METHOD'],
        )
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('Could not create bootstrap admin account')
