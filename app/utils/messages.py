"""
Standardized flash messages for the application.
All messages use consistent formatting and categorization.
"""

from flask_babel import lazy_gettext as _

# Generic
ERROR_NOT_FOUND = _("%(item)s not found.")
ERROR_PERMISSION_DENIED = _("You do not have permission to perform this action.")
SUCCESS_SAVED = _("Changes have been saved.")

# Memorials
MEMORIAL_CREATED = _("Memorial for %(name)s has been created.")
MEMORIAL_UPDATED = _("Memorial for %(name)s has been updated.")
MEMORIAL_DELETED = _("The memorial has been deleted.")
MEMORIAL_NOT_OWNER = _("You can only manage your own memorials.")
MEMORIAL_SAVE_FAILED = _("Failed to save memorial data. Please try again.")
MEMORIAL_HIDDEN = _("Memorial %(name)s is now hidden.")
MEMORIAL_SHOWN = _("Memorial %(name)s is visible again.")
PHOTO_REJECTED = _("A photo could not be uploaded. Use a JPG, PNG, GIF or WEBP image under 5MB.")

# Access
ACCESS_NOT_FOUND_TITLE = _("Memorial Not Found")
ACCESS_NOT_FOUND = _("The memorial page you are looking for does not exist or may have been removed.")
ACCESS_DEACTIVATED_TITLE = _("This Memorial Has Been Deactivated")
ACCESS_DEACTIVATED = _("This memorial page has been deactivated by an administrator.")
ACCESS_PRIVATE_TITLE = _("This Memorial is Private")
ACCESS_PRIVATE = _("Memorials on the free plan are only visible to the owner. Please log in as the owner to view this page, or ask them to upgrade their plan to make it public.")
ACCESS_EXPIRED_TITLE = _("This Memorial's Plan Has Expired")
ACCESS_EXPIRED = _("The hosting plan for this memorial has expired. The owner can renew it to make the page public again.")

# Payments
PAYMENT_VERIFIED = _("Payment verified successfully.")
PAYMENT_ALREADY_APPLIED = _("This payment has already been applied.")
PAYMENT_MISSING_FIELDS = _("Missing required fields.")
PAYMENT_FAILED = _("Payment verification failed.")
PAYMENT_CONFIG_ERROR = _("Server configuration error.")
PAYMENT_APPLY_FAILED = _("Your payment was received but the plan could not be applied. Our team has been notified and will resolve it.")
PAYMENT_INVALID_PLAN = _("Invalid plan selected.")

# Users
USER_STATUS_UPDATED = _("Status for %(email)s updated to %(status)s.")
USER_INVALID_STATUS = _("Invalid status.")
USER_CANNOT_CHANGE_SELF = _("You cannot change your own status.")

# Feedback
FEEDBACK_SENT = _("Thank you! Your feedback has been sent.")
FEEDBACK_EMPTY = _("Feedback cannot be empty.")

# Auth
AUTH_LOGIN_SUCCESS = _("Login successful!")
AUTH_INVALID_CREDENTIALS = _("Invalid email or password. Please try again.")
AUTH_SUSPENDED = _("Your account has been suspended. Please contact support.")
AUTH_LOGOUT_SUCCESS = _("You have been logged out.")
AUTH_SIGNUP_SUCCESS = _("Your account has been created. Welcome!")
AUTH_EMAIL_TAKEN = _("An account with this email already exists.")
