import os
import logging
import click
from logging.handlers import RotatingFileHandler
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException
from config import config
from extensions import db, migrate, login_manager, csrf, limiter
from utils.errors import FamilyConnectError, AuthenticationError


def configure_logging(app):
    """Configure application logging"""
    if not app.debug and not app.testing:
        # Create logs directory if it doesn't exist
        if not os.path.exists('logs'):
            os.mkdir('logs')

        # File handler for errors
        file_handler = RotatingFileHandler(
            'logs/familyconnect.log',
            maxBytes=10240000,  # 10MB
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s '
            '[in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('familyconnect').addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        logging.getLogger('familyconnect').setLevel(logging.INFO)
        app.logger.info('FamilyConnect startup')
    else:
        # Development logging to console
        app.logger.setLevel(logging.DEBUG)
        logging.getLogger('familyconnect').setLevel(logging.DEBUG)
        app.logger.info('FamilyConnect startup (DEBUG mode)')


def create_app(config_name=None):
    """Application factory pattern"""

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    # Configure logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # External collaborators: email sender and blob store
    from services.email_service import init_email
    from services.blob_store import init_blob_store
    init_email(app)
    init_blob_store(app)

    # Add security headers
    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses"""
        headers = app.config.get('SECURITY_HEADERS', {})
        for header, value in headers.items():
            response.headers[header] = value
        return response

    # User loader callback for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        from models.users import User
        user = db.session.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user

    # JSON API: answer 401 instead of redirecting to a login page
    @login_manager.unauthorized_handler
    def unauthorized():
        error = AuthenticationError()
        return jsonify(error.to_dict()), error.status_code

    # Import models to ensure they're registered with SQLAlchemy
    with app.app_context():
        import models  # noqa: F401

    # Register blueprints
    from blueprints.auth import auth_bp
    from blueprints.family import family_bp
    from blueprints.posts import posts_bp
    from blueprints.events import events_bp
    from blueprints.newsletters import newsletters_bp
    from blueprints.media import media_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(family_bp)
    app.register_blueprint(posts_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(newsletters_bp)
    app.register_blueprint(media_bp)

    # Create database tables
    with app.app_context():
        db.create_all()

    # Register Flask-Admin (must come after db.init_app and all models are loaded)
    from admin_panel import init_admin
    init_admin(app, db)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_commands(app)

    return app


def register_error_handlers(app):
    """Render every failure as ``{"error": kind, "message": text}``"""

    @app.errorhandler(FamilyConnectError)
    def handle_app_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            app.logger.error(f'{error.kind}: {error.message}')
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({'error': 'csrf_failed', 'message': error.description}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        kind = (error.name or 'error').lower().replace(' ', '_')
        return jsonify({'error': kind, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception(f'Internal Server Error: {error}')
        return jsonify({'error': 'internal_error', 'message': 'Unexpected server error.'}), 500


def register_commands(app):
    """Register Flask CLI commands."""

    @app.cli.group()
    def site_admin():
        """Manage site-level admin access to /admin panel."""
        pass

    @site_admin.command('grant')
    @click.argument('email')
    def grant_site_admin(email):
        """Grant /admin panel access to a user by EMAIL."""
        from models.users import User
        user = User.query.filter_by(email=email).first()
        if not user:
            click.echo(f'ERROR: No user found with email "{email}"', err=True)
            return
        if user.is_site_admin:
            click.echo(f'"{user.display_name}" ({email}) already has site admin access.')
            return
        user.is_site_admin = True
        db.session.commit()
        click.echo(f'SUCCESS: "{user.display_name}" ({email}) granted site admin access.')

    @site_admin.command('revoke')
    @click.argument('email')
    def revoke_site_admin(email):
        """Revoke /admin panel access from a user by EMAIL."""
        from models.users import User
        user = User.query.filter_by(email=email).first()
        if not user:
            click.echo(f'ERROR: No user found with email "{email}"', err=True)
            return
        if not user.is_site_admin:
            click.echo(f'"{user.display_name}" ({email}) does not have site admin access.')
            return
        user.is_site_admin = False
        db.session.commit()
        click.echo(f'SUCCESS: Site admin access revoked from "{user.display_name}" ({email}).')

    @site_admin.command('list')
    def list_site_admins():
        """List all users with site admin access."""
        from models.users import User
        admins = User.query.filter_by(is_site_admin=True).all()
        if not admins:
            click.echo('No site admins found.')
            return
        click.echo(f'{"ID":<34} {"Name":<25} {"Email":<40}')
        click.echo('-' * 100)
        for u in admins:
            click.echo(f'{u.id:<34} {u.display_name:<25} {u.email or "":<40}')

    @app.cli.group()
    def families():
        """Inspect families and memberships."""
        pass

    @families.command('list')
    def list_families():
        """List families with approved and pending member counts."""
        from sqlalchemy import case, func
        from models.family import Family, FamilyMember
        rows = (
            db.session.query(
                Family.id,
                Family.name,
                func.count(FamilyMember.id),
                func.sum(case((FamilyMember.is_approved.is_(False), 1), else_=0)),
                func.sum(case((FamilyMember.role == 'admin', 1), else_=0)),
            )
            .outerjoin(FamilyMember, FamilyMember.family_id == Family.id)
            .group_by(Family.id, Family.name)
            .order_by(Family.id)
            .all()
        )
        if not rows:
            click.echo('No families found.')
            return
        click.echo(f'{"ID":<6} {"Name":<30} {"Members":<8} {"Pending":<8} {"Admins":<8}')
        click.echo('-' * 64)
        for fid, name, members, pending, admins in rows:
            flag = '' if admins else '  (no admin)'
            click.echo(f'{fid:<6} {name:<30} {members:<8} {pending or 0:<8} {admins or 0:<8}{flag}')


if __name__ == '__main__':
    app = create_app()
    # SECURITY: Only bind to localhost in development
    # Never use 0.0.0.0 with debug mode - it exposes the debugger to the network
    app.run(host='127.0.0.1', port=5000, debug=True)
