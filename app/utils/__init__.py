from app.utils.decorators import admin_required, active_account_required

__all__ = ['admin_required', 'active_account_required']
