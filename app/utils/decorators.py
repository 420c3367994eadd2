from functools import wraps
from flask import flash, redirect, url_for, request, jsonify
from flask_login import current_user
from flask_babel import _


def admin_required(f):
    """Require a logged-in account with ADMIN status."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            if request.is_json:
                return jsonify({'error': _("You do not have the required privileges to access this page.")}), 403
            flash(_("You do not have the required privileges to access this page."), "danger")
            return redirect(url_for('dashboard.index') if current_user.is_authenticated else url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated_function


def active_account_required(f):
    """Block suspended accounts from owner actions (they are logged out at login anyway)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user.is_authenticated and current_user.is_suspended:
            flash(_("Your account has been suspended. Please contact support."), "danger")
            return redirect(url_for('main.home'))
        return f(*args, **kwargs)
    return decorated_function
