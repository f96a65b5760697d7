from flask_wtf import FlaskForm
from wtforms import BooleanField, DateTimeField, FloatField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from questboard.models.collection import CollectionStatus, OwnershipType
from questboard.models.questlog import MAX_DISPLAYED, QuestStatus

DATE_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%d"]

QUEST_STATUS_CHOICES = [(s.value, s.value) for s in QuestStatus]
COLLECTION_STATUS_CHOICES = [("", "Not set")] + [(s.value, s.value) for s in CollectionStatus]
OWNERSHIP_CHOICES = [(o.value, o.value) for o in OwnershipType]


class QuestLogForm(FlaskForm):
    class Meta:
        csrf = False

    game_id = StringField("Game", validators=[DataRequired(message="Game is required")])
    status = SelectField("Status", choices=QUEST_STATUS_CHOICES, default=QuestStatus.PLAYING.value)
    platform = StringField("Platform", validators=[Optional(), Length(0, 80)])
    started_at = DateTimeField("Started", format=DATE_FORMATS, validators=[Optional()])
    completed_at = DateTimeField("Completed", format=DATE_FORMATS, validators=[Optional()])
    notes = TextAreaField("Notes", validators=[Optional(), Length(0, 2000)])


class QuestLogUpdateForm(FlaskForm):
    class Meta:
        csrf = False

    status = SelectField("Status", choices=QUEST_STATUS_CHOICES, validators=[Optional()])
    platform = StringField("Platform", validators=[Optional(), Length(0, 80)])
    difficulty = StringField("Difficulty", validators=[Optional(), Length(0, 80)])
    hours_played = FloatField("Hours played", validators=[Optional(), NumberRange(min=0)])
    started_at = DateTimeField("Started", format=DATE_FORMATS, validators=[Optional()])
    completed_at = DateTimeField("Completed", format=DATE_FORMATS, validators=[Optional()])
    notes = TextAreaField("Notes", validators=[Optional(), Length(0, 2000)])
    quick_rating = IntegerField(
        "Quick rating",
        validators=[Optional(), NumberRange(1, 5, message="Quick rating must be between 1 and 5")],
    )
    display_on_profile = BooleanField("Show on profile")
    display_order = IntegerField("Display order", validators=[Optional(), NumberRange(0, MAX_DISPLAYED - 1)])


class QuestStatusForm(FlaskForm):
    class Meta:
        csrf = False

    status = SelectField("Status", choices=QUEST_STATUS_CHOICES, validators=[DataRequired()])
    quick_rating = IntegerField(
        "Quick rating",
        validators=[Optional(), NumberRange(1, 5, message="Quick rating must be between 1 and 5")],
    )
    share_as_post = BooleanField("Share as post", default=False)


class CollectionForm(FlaskForm):
    class Meta:
        csrf = False

    game_id = StringField("Game", validators=[DataRequired(message="Game is required")])
    ownership_type = SelectField("Ownership", choices=OWNERSHIP_CHOICES, default=OwnershipType.DIGITAL.value)
    status = SelectField("Status", choices=COLLECTION_STATUS_CHOICES, default="", validators=[Optional()])
    platform = StringField("Platform", validators=[Optional(), Length(0, 80)])
    difficulty = StringField("Difficulty", validators=[Optional(), Length(0, 80)])
    acquired_at = DateTimeField("Acquired", format=DATE_FORMATS, validators=[Optional()])


class CollectionUpdateForm(FlaskForm):
    class Meta:
        csrf = False

    ownership_type = SelectField("Ownership", choices=OWNERSHIP_CHOICES, validators=[Optional()])
    status = SelectField("Status", choices=COLLECTION_STATUS_CHOICES, validators=[Optional()])
    platform = StringField("Platform", validators=[Optional(), Length(0, 80)])
    difficulty = StringField("Difficulty", validators=[Optional(), Length(0, 80)])
    hours_played = FloatField("Hours played", validators=[Optional(), NumberRange(min=0)])
    acquired_at = DateTimeField("Acquired", format=DATE_FORMATS, validators=[Optional()])
