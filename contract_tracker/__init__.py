from flask import Flask, render_template
from config import Config
from .extensions import db, login_manager, mail, migrate, celery, csrf
from .models import User
from dotenv import load_dotenv
from .celery_utils import init_celery
from .backend import init_backend
from .logging_config import configure_logging
from .utils import format_date, format_datetime

# Load .env file before app creation
load_dotenv()


def create_app(config_class=Config, backend=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize Extensions
    db.init_app(app)
    mail.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Initialize Celery
    init_celery(app, celery)

    # Configure Login Manager
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Faça login para continuar.'
    login_manager.login_message_category = 'info'

    # Reloaded on every request, so a role change applies on the next one
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    init_backend(app, backend)

    app.jinja_env.filters['date'] = format_date
    app.jinja_env.filters['datetime'] = format_datetime

    # Register Blueprints
    from .blueprints.main import main_bp
    from .blueprints.auth import auth_bp
    from .blueprints.admin import admin_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    @app.errorhandler(403)
    def forbidden(error):
        return render_template('errors/403.html'), 403

    from .commands import register_commands
    register_commands(app)

    # With Flask-Migrate, 'flask db upgrade' is the real path; this keeps
    # a fresh development database usable.
    with app.app_context():
        db.create_all()

    app.logger.info("Contract tracker started (blob backend: %s)", app.config.get('BLOB_BACKEND'))
    return app
