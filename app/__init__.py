import logging

from flask import Flask, current_app, session, request, render_template
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_babel import Babel
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config import Config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
login_manager.login_view = 'auth.login'
babel = Babel()
csrf = CSRFProtect()
limiter = Limiter(key_func=get_remote_address)


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('app').setLevel(level)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_mapping(config_class().model_dump())
    if app.config.get('RATELIMIT_STORAGE_URL'):
        app.config['RATELIMIT_STORAGE_URI'] = app.config['RATELIMIT_STORAGE_URL']

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    def get_locale():
        # 1. Check for language in cookie first
        lang = request.cookies.get("language")
        if lang and lang in app.config["LANGUAGES"]:
            return lang

        # 2. Check session
        lang = session.get("language")
        if lang and lang in app.config["LANGUAGES"]:
            return lang

        # 3. Fallback to browser's preferred language
        browser_lang = request.accept_languages.best_match(
            app.config["LANGUAGES"])
        current_app.logger.debug(
            f"Locale selector: falling back to browser language: {browser_lang}"
        )
        return browser_lang

    babel.init_app(app, locale_selector=get_locale)

    from app.routes import register_blueprints
    register_blueprints(app)

    from app.cli import register_commands
    register_commands(app)

    register_error_handlers(app)

    from app import models  # noqa: F401

    return app


def register_error_handlers(app):
    @app.errorhandler(403)
    def forbidden(error):
        return render_template('errors/403.html'), 403

    @app.errorhandler(404)
    def not_found(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return render_template('errors/500.html'), 500


@login_manager.user_loader
def load_user(user_id):
    from app.models import User
    return db.session.get(User, int(user_id))
