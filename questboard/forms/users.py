from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional, Regexp

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class SyncUserForm(FlaskForm):
    """Payload the front end posts after the identity provider signs a user in."""
    class Meta:
        csrf = False

    external_id = StringField("Provider id", validators=[DataRequired(), Length(1, 128)])
    email = StringField("Email", validators=[Optional(), Length(0, 255)])
    username = StringField(
        "Username",
        validators=[
            DataRequired(message="Username is required"),
            Length(2, 64),
            Regexp(USERNAME_PATTERN, message="Letters, numbers, dots, dashes and underscores only"),
        ],
    )
    display_name = StringField("Display name", validators=[Optional(), Length(0, 120)])
    avatar_url = StringField("Avatar", validators=[Optional(), Length(0, 500)])


class ProfileForm(FlaskForm):
    class Meta:
        csrf = False

    display_name = StringField("Display name", validators=[Optional(), Length(0, 120)])
    bio = TextAreaField("Bio", validators=[Optional(), Length(0, 500)])
    avatar_url = StringField("Avatar", validators=[Optional(), Length(0, 500)])
    banner_url = StringField("Banner", validators=[Optional(), Length(0, 500)])


class AdminProfileForm(FlaskForm):
    class Meta:
        csrf = False

    display_name = StringField("Display name", validators=[Optional(), Length(0, 120)])
    bio = TextAreaField("Bio", validators=[Optional(), Length(0, 500)])
