"""Public memorial pages."""
from datetime import datetime, timezone

from flask import Blueprint, render_template, current_app
from flask_login import current_user

from app.services.access_control import (
    AccessOutcome, RestrictionReason, Viewer, decide_access, should_log_view,
)
from app.services.memorial_repository import MemorialRepository
from app.services.view_counter import log_view
from app.utils.messages import (
    ACCESS_NOT_FOUND_TITLE, ACCESS_NOT_FOUND, ACCESS_DEACTIVATED_TITLE, ACCESS_DEACTIVATED,
    ACCESS_PRIVATE_TITLE, ACCESS_PRIVATE, ACCESS_EXPIRED_TITLE, ACCESS_EXPIRED,
)

bp = Blueprint('memorials', __name__)

TEMPLATES = {
    'classic': 'memorial/classic.html',
    'rustic': 'memorial/rustic.html',
    'skyline': 'memorial/skyline.html',
}


def current_viewer() -> Viewer:
    if current_user.is_authenticated:
        return Viewer(id=str(current_user.id), is_admin=current_user.is_admin)
    return Viewer.anonymous()


def _unavailable(title, message, status, icon):
    return render_template('memorial/unavailable.html', heading=title, message=message,
                           icon=icon, title=title), status


@bp.route('/memorial/<memorial_id>')
def view(memorial_id):
    memorial = MemorialRepository().get(memorial_id)
    viewer = current_viewer()
    decision = decide_access(memorial, viewer, datetime.now(timezone.utc))

    if decision.outcome is AccessOutcome.NOT_FOUND:
        return _unavailable(ACCESS_NOT_FOUND_TITLE, ACCESS_NOT_FOUND, 404, 'feather')
    if decision.outcome is AccessOutcome.DEACTIVATED:
        return _unavailable(ACCESS_DEACTIVATED_TITLE, ACCESS_DEACTIVATED, 403, 'eye-slash')
    if decision.outcome is AccessOutcome.RESTRICTED:
        if decision.reason is RestrictionReason.EXPIRED:
            return _unavailable(ACCESS_EXPIRED_TITLE, ACCESS_EXPIRED, 403, 'clock')
        return _unavailable(ACCESS_PRIVATE_TITLE, ACCESS_PRIVATE, 403, 'lock')

    if should_log_view(memorial, decision):
        log_view(memorial.id)
    else:
        current_app.logger.debug(f"View of memorial {memorial.id} not counted")

    is_owner = viewer.id is not None and viewer.id == str(memorial.owner_id)
    template = TEMPLATES.get(memorial.template, TEMPLATES['classic'])
    return render_template(template, memorial=memorial, is_owner=is_owner,
                           title=memorial.deceased_name)
