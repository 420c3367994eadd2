from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_user, login_required, logout_user, current_user
from flask_babel import _
from sqlalchemy.exc import IntegrityError

from app import db, limiter
from app.forms import SignupForm, LoginForm
from app.models import User
from app.utils.audit_log import log_failed_login, log_action
from app.utils.password_handler import password_needs_rehash
from app.utils.messages import (
    AUTH_LOGIN_SUCCESS, AUTH_INVALID_CREDENTIALS, AUTH_LOGOUT_SUCCESS,
    AUTH_SIGNUP_SUCCESS, AUTH_EMAIL_TAKEN, AUTH_SUSPENDED,
)

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_next(target):
    # only same-site relative paths
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@bp.route("/signup", methods=['GET', 'POST'])
def signup():
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.index'))

    form = SignupForm()
    if form.validate_on_submit():
        email = form.email.data.strip().lower()
        if User.query.filter_by(email=email).first():
            flash(AUTH_EMAIL_TAKEN, 'danger')
            return render_template('auth/signup.html', form=form, title=_('Sign Up'))

        user = User(email=email)
        user.set_password(form.password.data)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            flash(AUTH_EMAIL_TAKEN, 'danger')
            return render_template('auth/signup.html', form=form, title=_('Sign Up'))

        current_app.logger.info(f"New account created: {user.id}")
        login_user(user)
        flash(AUTH_SIGNUP_SUCCESS, 'success')
        return redirect(url_for('dashboard.index'))

    return render_template('auth/signup.html', form=form, title=_('Sign Up'))


@bp.route("/login", methods=['GET', 'POST'])
@limiter.limit("5 per minute", methods=['POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.index'))

    form = LoginForm()
    if form.validate_on_submit():
        email = form.email.data.strip().lower()
        user = User.query.filter_by(email=email).first()

        if user is None or not user.check_password(form.password.data):
            log_failed_login(email)
            flash(AUTH_INVALID_CREDENTIALS, 'danger')
            return render_template('auth/login.html', form=form, title=_('Log In')), 401

        if user.is_suspended:
            log_action('SUSPENDED_LOGIN', f'Suspended account tried to log in: {email}', subject=user, success=False)
            flash(AUTH_SUSPENDED, 'danger')
            return render_template('auth/login.html', form=form, title=_('Log In')), 403

        if password_needs_rehash(user.password_hash):
            user.set_password(form.password.data)
            db.session.commit()

        login_user(user)
        flash(AUTH_LOGIN_SUCCESS, 'success')
        return redirect(_safe_next(request.args.get('next')) or url_for('dashboard.index'))

    return render_template('auth/login.html', form=form, title=_('Log In'))


@bp.route('/logout')
@login_required
def logout():
    logout_user()
    flash(AUTH_LOGOUT_SUCCESS, 'info')
    return redirect(url_for('main.home'))
