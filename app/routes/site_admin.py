"""
Site administration: account status, memorial moderation and feedback.
"""
from flask import Blueprint, render_template, request, redirect, url_for, flash, abort
from flask_login import login_required, current_user
from flask_babel import _

from app import db
from app.models import User, Feedback, utcnow
from app.services.access_control import OwnerStatus, Visibility
from app.services.memorial_repository import MemorialRepository
from app.utils.decorators import admin_required
from app.utils.audit_log import log_action
from app.utils.messages import (
    USER_STATUS_UPDATED, USER_INVALID_STATUS, USER_CANNOT_CHANGE_SELF,
    MEMORIAL_HIDDEN, MEMORIAL_SHOWN,
)

bp = Blueprint("site_admin", __name__, url_prefix="/pappapage")

USER_SORT_KEYS = {
    'email': lambda u: u['user'].email.lower(),
    'memorial_count': lambda u: u['memorial_count'],
    'signup_date': lambda u: u['user'].signup_date,
    'status': lambda u: u['user'].status,
}
MEMORIAL_SORT_KEYS = {
    'deceased_name': lambda m: m.deceased_name.lower(),
    'owner_email': lambda m: m.owner_email.lower(),
    'view_count': lambda m: m.view_count,
    'owner_status': lambda m: m.owner_status,
    'visibility': lambda m: m.visibility,
}


def change_user_status(user: User, status: OwnerStatus, repository=None) -> int:
    """Set an account status and refresh the owner-status snapshot on its memorials."""
    repository = repository or MemorialRepository()
    old_status = user.status
    user.status = status.value
    user.status_changed_at = utcnow()
    db.session.commit()
    updated = repository.sync_owner_status(user.id, status)
    log_action('USER_STATUS_CHANGED', f'User {user.email} status changed: {old_status} -> {status.value}',
               subject=user, additional_info={'old_status': old_status, 'new_status': status.value,
                                              'memorials_updated': updated})
    return updated


@bp.route('/')
@login_required
@admin_required
def users():
    search = (request.args.get('q') or '').strip().lower()
    sort = request.args.get('sort', 'signup_date')
    direction = request.args.get('dir', 'desc')

    repo = MemorialRepository()
    memorial_counts = repo.count_by_owner()
    qr_counts = repo.count_qr_codes_by_owner()

    rows = []
    for user in User.query.all():
        if search and search not in user.email.lower():
            continue
        rows.append({
            'user': user,
            'memorial_count': memorial_counts.get(user.id, 0),
            'total_qr_codes': qr_counts.get(user.id, 0),
        })
    rows.sort(key=USER_SORT_KEYS.get(sort, USER_SORT_KEYS['signup_date']), reverse=direction == 'desc')

    return render_template('site_admin/users.html', rows=rows, statuses=[s.value for s in OwnerStatus],
                           search=search, sort=sort, direction=direction,
                           active_page='users', title=_('User Management'))


@bp.route('/users/<int:user_id>/status', methods=['POST'])
@login_required
@admin_required
def user_status(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        abort(404)
    status = OwnerStatus.parse(request.form.get('status'))
    if status is None:
        flash(USER_INVALID_STATUS, 'danger')
        return redirect(url_for('site_admin.users'))
    if user.id == current_user.id:
        flash(USER_CANNOT_CHANGE_SELF, 'danger')
        return redirect(url_for('site_admin.users'))

    change_user_status(user, status)
    flash(USER_STATUS_UPDATED % {'email': user.email, 'status': status.value}, 'success')
    return redirect(url_for('site_admin.users'))


@bp.route('/memorials')
@login_required
@admin_required
def memorials():
    search = (request.args.get('q') or '').strip().lower()
    sort = request.args.get('sort', 'deceased_name')
    direction = request.args.get('dir', 'asc')

    rows = MemorialRepository().list_all()
    if search:
        rows = [m for m in rows if search in m.deceased_name.lower() or search in m.owner_email.lower()]
    rows.sort(key=MEMORIAL_SORT_KEYS.get(sort, MEMORIAL_SORT_KEYS['deceased_name']),
              reverse=direction == 'desc')

    return render_template('site_admin/memorials.html', memorials=rows, search=search,
                           sort=sort, direction=direction, active_page='all-memorials',
                           title=_('All Memorials'))


@bp.route('/memorials/<memorial_id>/visibility', methods=['POST'])
@login_required
@admin_required
def memorial_visibility(memorial_id):
    repo = MemorialRepository()
    memorial = repo.get(memorial_id)
    if memorial is None:
        abort(404)

    new_visibility = Visibility.NORMAL if memorial.is_hidden else Visibility.HIDDEN
    memorial = repo.set_visibility(memorial.id, new_visibility)
    log_action('MEMORIAL_VISIBILITY_CHANGED', f'Memorial {memorial.deceased_name} set to {new_visibility.value}',
               subject=memorial, additional_info={'visibility': new_visibility.value})

    message = MEMORIAL_HIDDEN if new_visibility is Visibility.HIDDEN else MEMORIAL_SHOWN
    flash(message % {'name': memorial.deceased_name}, 'success')
    return redirect(url_for('site_admin.memorials'))


@bp.route('/feedback')
@login_required
@admin_required
def feedback():
    show_read = request.args.get('show_read') == '1'
    query = Feedback.query
    if not show_read:
        query = query.filter_by(status='unread')
    entries = query.order_by(Feedback.created_at.desc()).all()
    return render_template('site_admin/feedback.html', entries=entries, show_read=show_read,
                           active_page='feedback', title=_('Feedback'))


@bp.route('/feedback/<int:feedback_id>/toggle', methods=['POST'])
@login_required
@admin_required
def feedback_toggle(feedback_id):
    entry = db.session.get(Feedback, feedback_id)
    if entry is None:
        abort(404)
    entry.status = 'unread' if entry.status == 'read' else 'read'
    db.session.commit()
    return redirect(url_for('site_admin.feedback', show_read=request.args.get('show_read')))
