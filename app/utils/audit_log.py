"""
Audit logging for sensitive operations: memorial moderation, account status
changes and plan upgrades.

Each action is written twice: as a JSON line to a daily-rotated audit file
(python-json-logger) and as a compact ``AuditLog`` row for the admin views.
Audit failures are logged and never break the request that triggered them.
"""

import json
import logging
import os
from logging.handlers import TimedRotatingFileHandler

from flask import request, has_request_context, current_app, has_app_context
from flask_login import current_user
from pythonjsonlogger import jsonlogger

from app import db

SENSITIVE_KEYS = ('password', 'token', 'secret', 'reference')

audit_logger = logging.getLogger('app.audit')
audit_logger.propagate = False
_configured_dir = None


def _ensure_handler():
    """(Re)attach the JSON file handler for the configured audit directory."""
    global _configured_dir
    log_dir = current_app.config.get('AUDIT_LOG_DIR') if has_app_context() else None
    if not log_dir or log_dir == _configured_dir:
        return

    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    os.makedirs(log_dir, exist_ok=True)
    handler = TimedRotatingFileHandler(
        os.path.join(log_dir, 'audit.log'), when='midnight', backupCount=90, encoding='utf-8')
    handler.setFormatter(jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(message)s', timestamp=True))
    audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)
    _configured_dir = log_dir


def _mask(additional_info):
    if not isinstance(additional_info, dict):
        return None
    masked = {}
    for k, v in additional_info.items():
        if k.lower() in SENSITIVE_KEYS:
            masked[k] = '***'
        else:
            masked[k] = v
    return masked


def _actor_id():
    try:
        if current_user and getattr(current_user, 'is_authenticated', False):
            return current_user.id
    except Exception:
        # no request/user context (CLI, background job)
        return None
    return None


def log_action(action: str, description: str, subject=None, additional_info: dict = None, success: bool = True):
    """Record an audited action.

    Example: log_action('MEMORIAL_HIDDEN', 'Memorial hidden by admin', subject=memorial)
    """
    record = {
        'action': action,
        'description': description,
        'actor_id': _actor_id(),
        'ip': request.remote_addr if has_request_context() else None,
        'subject_type': subject.__class__.__name__ if subject is not None else None,
        'subject_id': getattr(subject, 'id', None) if subject is not None else None,
        'details': _mask(additional_info),
        'success': bool(success),
    }

    try:
        _ensure_handler()
        level = logging.INFO if success else logging.ERROR
        audit_logger.log(level, description, extra=record)
    except Exception:
        logging.getLogger(__name__).exception('Failed to write audit file entry')

    return log_action_db(record)


def log_action_db(record: dict):
    """Store the audit record as an ``AuditLog`` row in its own commit."""
    try:
        from app.models import AuditLog
        entry = AuditLog(
            actor_id=record.get('actor_id'),
            ip=record.get('ip'),
            action=record['action'],
            object_type=record.get('subject_type'),
            object_id=str(record['subject_id']) if record.get('subject_id') is not None else None,
            details=json.dumps(record['details'], ensure_ascii=False, default=str) if record.get('details') else None,
            success=record.get('success', True),
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception:
        logging.getLogger(__name__).exception('Failed to write DB audit entry')
        try:
            db.session.rollback()
        except Exception:
            pass
        return None


def log_failed_login(email: str):
    log_action('FAILED_LOGIN', f'Failed login attempt for: {email}',
               additional_info={'email': email}, success=False)
