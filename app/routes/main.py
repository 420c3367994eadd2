from flask import Blueprint, render_template, current_app
from flask_babel import lazy_gettext as _l, _

from app.services.access_control import Plan

bp = Blueprint("main", __name__)

PLAN_FEATURES = {
    Plan.SPIRIT: [
        _l('Unlimited memorials.'),
        _l("Can't share created memorials."),
    ],
    Plan.ESSENCE: [
        _l('Unlimited memorials.'),
        _l('Memorials are hosted and shareable for %(years)s years.'),
        _l('Custom QR code plaque to place at a physical resting place.'),
    ],
    Plan.LEGACY: [
        _l('All features from ESSENCE plan.'),
        _l('Memorials are hosted and shareable for %(years)s years.'),
        _l('Priority support.'),
        _l('Optional custom design template.'),
    ],
    Plan.ETERNAL: [
        _l('All features from LEGACY plan.'),
        _l('Memorials are hosted and shareable for eternity.'),
        _l('No renewals, no expiry.'),
        _l('"Eternal" badge displayed on page.'),
    ],
}


def pricing_tiers():
    """Pricing table rows built from the configured plan durations and prices."""
    durations = current_app.config.get('PLAN_DURATION_YEARS', {})
    prices = current_app.config.get('PLAN_PRICES', {})
    tiers = []
    for plan in Plan:
        years = durations.get(plan.value)
        tiers.append({
            'plan': plan.value,
            'price': prices.get(plan.value),
            'features': [str(f) % {'years': years} if '%(years)s' in str(f) else str(f)
                         for f in PLAN_FEATURES[plan]],
        })
    return tiers


@bp.route("/")
def home():
    return render_template("index.html", tiers=pricing_tiers(),
                           currency=current_app.config.get('PLAN_CURRENCY'), title=_('HonouredLives'))


@bp.route("/privacy")
def privacy():
    return render_template("privacy.html", title=_('Privacy Policy'))


@bp.route("/terms")
def terms():
    return render_template("terms.html", title=_('Terms of Service'))
