from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed
from wtforms import (
    Form, StringField, SubmitField, PasswordField, SelectField, TextAreaField,
    FieldList, FormField, DateField,
)
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional, ValidationError
from flask_babel import lazy_gettext as _

from app.services.photo_storage import ALLOWED_EXTENSIONS

TEMPLATE_CHOICES = [
    ('classic', _('Classic')),
    ('rustic', _('Rustic')),
    ('skyline', _('Skyline')),
]

_PHOTO_EXTENSIONS = [ext.lstrip('.') for ext in ALLOWED_EXTENSIONS]


class SignupForm(FlaskForm):
    email = StringField(_('Email'), validators=[DataRequired(), Email()],
                        render_kw={'placeholder': _('you@example.com')})
    password = PasswordField(_('Password'), validators=[
        DataRequired(), Length(min=8, message=_('Password must be at least 8 characters long.'))])
    confirm_password = PasswordField(_('Confirm Password'), validators=[
        DataRequired(), EqualTo('password', message=_('Passwords must match.'))])
    submit = SubmitField(_('Sign Up'), render_kw={"class": "btn btn-primary"})


class LoginForm(FlaskForm):
    email = StringField(_('Email'), validators=[DataRequired(), Email()])
    password = PasswordField(_('Password'), validators=[DataRequired()])
    submit = SubmitField(_('Log In'), render_kw={"class": "btn btn-primary"})


class PhotoEntryForm(Form):
    """One row of the photo list: either an existing URL or a new upload."""
    url = StringField(_('Photo URL'), validators=[Optional(), Length(max=500)])
    file = FileField(_('Upload Photo'), validators=[
        FileAllowed(_PHOTO_EXTENSIONS, _('Only image files are allowed!'))])
    caption = StringField(_('Caption'), validators=[Optional(), Length(max=300)])


class MemorialForm(FlaskForm):
    deceased_name = StringField(_('Full Name of Deceased'), validators=[DataRequired(), Length(max=200)],
                                render_kw={'placeholder': _('e.g., Jane Doe')})
    birth_date = DateField(_('Date of Birth'), validators=[Optional()])
    death_date = DateField(_('Date of Passing'), validators=[Optional()])
    life_summary = TextAreaField(_('Life Summary (for AI Biography)'), validators=[Optional()],
                                 render_kw={'placeholder': _('e.g., Loved gardening, family, and travel.')})
    biography = TextAreaField(_('Biography'), validators=[Optional()], render_kw={'rows': 10})
    template = SelectField(_('Page Design'), choices=TEMPLATE_CHOICES, default='classic')
    photos = FieldList(FormField(PhotoEntryForm), min_entries=3)
    tributes = FieldList(TextAreaField(_('Tribute'), validators=[Optional()]), min_entries=3)
    stories = FieldList(TextAreaField(_('Story'), validators=[Optional()]), min_entries=3)
    submit = SubmitField(_('Save Memorial'), render_kw={"class": "btn btn-primary"})

    def validate_death_date(self, field):
        if field.data and self.birth_date.data and field.data < self.birth_date.data:
            raise ValidationError(_('Date of passing cannot be before date of birth.'))

    def content_data(self):
        """Content fields as a plain dict for the repository (photos handled by the view)."""
        return {
            'deceased_name': self.deceased_name.data.strip(),
            'birth_date': self.birth_date.data.isoformat() if self.birth_date.data else None,
            'death_date': self.death_date.data.isoformat() if self.death_date.data else None,
            'life_summary': self.life_summary.data or '',
            'biography': self.biography.data or '',
            'template': self.template.data,
            'tributes': [t for t in self.tributes.data if t],
            'stories': [s for s in self.stories.data if s],
        }


class FeedbackForm(FlaskForm):
    feedback = TextAreaField(_('Feedback'), validators=[DataRequired(), Length(max=5000)])
    submit = SubmitField(_('Send Feedback'), render_kw={"class": "btn btn-primary"})
