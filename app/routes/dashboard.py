"""
Owner dashboard: memorial management, QR codes, scan statistics, feedback and
AI drafting helpers.
"""
from datetime import date, datetime

from flask import (
    Blueprint, render_template, request, redirect, url_for, flash, jsonify, abort,
    current_app, Response,
)
from flask_login import login_required, current_user
from flask_babel import _

from app import db
from app.forms import MemorialForm, FeedbackForm
from app.models import Feedback, MemorialView
from app.services.ai_drafting import generate_biography_draft, organize_content
from app.services.errors import AIDraftingError, MemorialPermissionError
from app.services.memorial_repository import MemorialRepository
from app.services.photo_storage import save_photo
from app.services.qr_service import memorial_qr_png, memorial_qr_data_uri
from app.services.view_counter import weekly_view_counts
from app.utils import active_account_required
from app.utils.audit_log import log_action
from app.utils.messages import (
    MEMORIAL_CREATED, MEMORIAL_UPDATED, MEMORIAL_DELETED, MEMORIAL_NOT_OWNER,
    PHOTO_REJECTED, FEEDBACK_SENT, FEEDBACK_EMPTY,
)

bp = Blueprint("dashboard", __name__, url_prefix="/admin")


def _owned_memorial_or_404(memorial_id):
    memorial = MemorialRepository().get(memorial_id)
    if memorial is None:
        abort(404)
    if memorial.owner_id != current_user.id:
        abort(403)
    return memorial


def _collect_photos(form):
    """Photo rows from the form; uploads are stored and replaced by their URL."""
    photos = []
    for entry in form.photos.entries:
        upload = entry.form.file.data
        url = (entry.form.url.data or '').strip()
        if upload and getattr(upload, 'filename', None):
            stored = save_photo(upload, current_app.config['UPLOAD_FOLDER'],
                                max_size=current_app.config.get('MAX_PHOTO_SIZE', 5 * 1024 * 1024))
            if stored is None:
                flash(PHOTO_REJECTED, 'warning')
                continue
            url = stored
        if url:
            photos.append({'url': url, 'caption': (entry.form.caption.data or '').strip()})
    return photos


def _form_for(memorial):
    data = {
        'deceased_name': memorial.deceased_name,
        'life_summary': memorial.life_summary,
        'biography': memorial.biography,
        'template': memorial.template,
        'photos': [{'url': p.url, 'caption': p.caption} for p in memorial.photos],
        'tributes': list(memorial.tributes or []),
        'stories': list(memorial.stories or []),
    }
    form = MemorialForm(data=data)
    form.birth_date.data = date.fromisoformat(memorial.birth_date) if memorial.birth_date else None
    form.death_date.data = date.fromisoformat(memorial.death_date) if memorial.death_date else None
    # one blank row of each list so owners can add more
    form.photos.append_entry()
    form.tributes.append_entry()
    form.stories.append_entry()
    return form


@bp.route('/')
@login_required
@active_account_required
def index():
    memorials = MemorialRepository().list_by_owner(current_user.id)
    return render_template('dashboard/index.html', memorials=memorials,
                           feedback_form=FeedbackForm(), active_page='memorials', title=_('My Memorials'))


@bp.route('/create', methods=['GET', 'POST'])
@login_required
@active_account_required
def create():
    form = MemorialForm()
    if form.validate_on_submit():
        data = form.content_data()
        data['photos'] = _collect_photos(form)
        memorial = MemorialRepository().create(current_user, data)
        log_action('MEMORIAL_CREATED', f'Memorial {memorial.deceased_name} created', subject=memorial)
        flash(MEMORIAL_CREATED % {'name': memorial.deceased_name}, 'success')
        return redirect(url_for('dashboard.edit', memorial_id=memorial.id))
    return render_template('dashboard/memorial_form.html', form=form, memorial=None,
                           active_page='create', title=_('Create Memorial'))


@bp.route('/edit/<memorial_id>', methods=['GET', 'POST'])
@login_required
@active_account_required
def edit(memorial_id):
    memorial = _owned_memorial_or_404(memorial_id)
    form = _form_for(memorial) if request.method == 'GET' else MemorialForm()
    if form.validate_on_submit():
        data = form.content_data()
        data['photos'] = _collect_photos(form)
        try:
            memorial = MemorialRepository().save(memorial.id, current_user.id, data)
        except MemorialPermissionError:
            flash(MEMORIAL_NOT_OWNER, 'danger')
            return redirect(url_for('dashboard.index'))
        log_action('MEMORIAL_UPDATED', f'Memorial {memorial.deceased_name} updated', subject=memorial)
        flash(MEMORIAL_UPDATED % {'name': memorial.deceased_name}, 'success')
        return redirect(url_for('dashboard.edit', memorial_id=memorial.id))
    return render_template('dashboard/memorial_form.html', form=form, memorial=memorial,
                           active_page='memorials', title=_('Edit Memorial'))


@bp.route('/delete/<memorial_id>', methods=['POST'])
@login_required
@active_account_required
def delete(memorial_id):
    memorial = _owned_memorial_or_404(memorial_id)
    name = memorial.deceased_name
    try:
        MemorialRepository().delete(memorial.id, current_user.id)
    except MemorialPermissionError:
        flash(MEMORIAL_NOT_OWNER, 'danger')
        return redirect(url_for('dashboard.index'))
    log_action('MEMORIAL_DELETED', f'Memorial {name} deleted',
               additional_info={'memorial_id': memorial_id, 'name': name})
    flash(MEMORIAL_DELETED, 'success')
    return redirect(url_for('dashboard.index'))


@bp.route('/qrcodes')
@login_required
@active_account_required
def qrcodes():
    memorials = MemorialRepository().list_by_owner(current_user.id)
    codes = []
    for m in memorials:
        url = url_for('memorials.view', memorial_id=m.id, _external=True)
        codes.append({'memorial': m, 'url': url, 'image': memorial_qr_data_uri(url)})
    return render_template('dashboard/qrcodes.html', codes=codes, active_page='qrcodes',
                           title=_('QR Codes'))


@bp.route('/qrcodes/<memorial_id>.png')
@login_required
def qrcode_png(memorial_id):
    memorial = _owned_memorial_or_404(memorial_id)
    url = url_for('memorials.view', memorial_id=memorial.id, _external=True)
    png = memorial_qr_png(url)
    return Response(png, mimetype='image/png', headers={
        'Content-Disposition': f'attachment; filename=memorial-{memorial.id}-qr.png'})


@bp.route('/scans')
@login_required
@active_account_required
def scans():
    sort = request.args.get('sort', 'last_visited')
    direction = request.args.get('dir', 'desc')
    memorials = MemorialRepository().list_by_owner(current_user.id)

    if sort == 'name':
        key = lambda m: (m.name or '').lower()
    elif sort == 'view_count':
        key = lambda m: m.view_count
    else:
        sort = 'last_visited'
        key = lambda m: m.last_visited or datetime.min
    memorials.sort(key=key, reverse=direction == 'desc')

    weekly = {}
    for m in memorials:
        timestamps = [v.viewed_at for v in MemorialView.query.filter_by(memorial_id=m.id).all()]
        weekly[m.id] = weekly_view_counts(timestamps)

    return render_template('dashboard/scans.html', memorials=memorials, weekly=weekly,
                           sort=sort, direction=direction, active_page='scans', title=_('Scan Statistics'))


@bp.route('/feedback', methods=['POST'])
@login_required
def feedback():
    form = FeedbackForm()
    if not form.validate_on_submit():
        flash(FEEDBACK_EMPTY, 'danger')
        return redirect(url_for('dashboard.index'))
    entry = Feedback(user_id=current_user.id, email=current_user.email,
                     feedback=form.feedback.data.strip(), status='unread')
    db.session.add(entry)
    db.session.commit()
    flash(FEEDBACK_SENT, 'success')
    return redirect(url_for('dashboard.index'))


@bp.route('/ai/biography', methods=['POST'])
@login_required
@active_account_required
def ai_biography():
    payload = request.get_json(silent=True) or {}
    if not (payload.get('name') and payload.get('lifeSummary')):
        return jsonify({'error': _('Name and life summary are required.')}), 400
    try:
        draft = generate_biography_draft(
            payload.get('name'), payload.get('birthDate'), payload.get('deathDate'), payload.get('lifeSummary'))
    except AIDraftingError as e:
        return jsonify({'error': str(e)}), 502
    return jsonify({'biographyDraft': draft})


@bp.route('/ai/organize', methods=['POST'])
@login_required
@active_account_required
def ai_organize():
    payload = request.get_json(silent=True) or {}
    try:
        content = organize_content(
            payload.get('biography', ''),
            payload.get('tributes') or [],
            payload.get('stories') or [],
            payload.get('photos') or [],
        )
    except AIDraftingError as e:
        return jsonify({'error': str(e)}), 502
    return jsonify({'organizedContent': {
        'biography': content.biography,
        'tributes': content.tributes,
        'stories': content.stories,
        'photoGallery': content.photo_gallery,
    }})
