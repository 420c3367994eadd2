from app.routes.main import bp as main_bp
from app.routes.auth import bp as auth_bp
from app.routes.memorials import bp as memorials_bp
from app.routes.dashboard import bp as dashboard_bp
from app.routes.payments import bp as payments_bp
from app.routes.site_admin import bp as site_admin_bp


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(memorials_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(site_admin_bp)
