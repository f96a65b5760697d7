from flask_wtf import FlaskForm
from wtforms import BooleanField, IntegerField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from questboard.models.comment import MAX_COMMENT_LENGTH
from questboard.models.review import MAX_RATING, MIN_RATING

# List-valued fields (images, game_ids, tags, genres, mentions) are read from
# the JSON body by the blueprints; WTForms would flatten them.


class PostForm(FlaskForm):
    class Meta:
        csrf = False

    content = TextAreaField("Content", validators=[DataRequired(message="Post cannot be empty")])


class ArticleForm(FlaskForm):
    class Meta:
        csrf = False

    title = StringField("Title", validators=[DataRequired(message="Title is required"), Length(1, 200)])
    content = TextAreaField("Content", validators=[DataRequired(message="Content is required")])
    content_json = TextAreaField("Editor document", validators=[Optional()])
    excerpt = StringField("Excerpt", validators=[Optional(), Length(0, 500)])
    cover_image_url = StringField("Cover image", validators=[Optional(), Length(0, 500)])
    cover_file_key = StringField("Cover file key", validators=[Optional(), Length(0, 200)])
    contains_spoilers = BooleanField("Contains spoilers", default=False)
    published = BooleanField("Published", default=False)


class ArticleUpdateForm(ArticleForm):
    title = StringField("Title", validators=[Optional(), Length(1, 200)])
    content = TextAreaField("Content", validators=[Optional()])
    save_history = BooleanField("Save history", default=True)


class ReviewForm(FlaskForm):
    class Meta:
        csrf = False

    game_id = StringField("Game", validators=[DataRequired(message="Game is required")])
    title = StringField("Title", validators=[DataRequired(message="Title is required"), Length(1, 200)])
    content = TextAreaField("Content", validators=[DataRequired(message="Content is required")])
    content_json = TextAreaField("Editor document", validators=[Optional()])
    rating = IntegerField(
        "Rating",
        validators=[
            DataRequired(message="Rating must be between 1 and 5"),
            NumberRange(MIN_RATING, MAX_RATING, message="Rating must be between 1 and 5"),
        ],
    )
    cover_image_url = StringField("Cover image", validators=[Optional(), Length(0, 500)])
    cover_file_key = StringField("Cover file key", validators=[Optional(), Length(0, 200)])
    contains_spoilers = BooleanField("Contains spoilers", default=False)
    published = BooleanField("Published", default=False)


class ReviewUpdateForm(ReviewForm):
    game_id = StringField("Game", validators=[Optional()])
    title = StringField("Title", validators=[Optional(), Length(1, 200)])
    content = TextAreaField("Content", validators=[Optional()])
    rating = IntegerField(
        "Rating",
        validators=[Optional(), NumberRange(MIN_RATING, MAX_RATING, message="Rating must be between 1 and 5")],
    )


class CommentForm(FlaskForm):
    class Meta:
        csrf = False

    content = TextAreaField(
        "Comment",
        validators=[DataRequired(message="Comment cannot be empty"), Length(max=MAX_COMMENT_LENGTH)],
    )
    parent_id = StringField("Reply to", validators=[Optional()])


class ReportForm(FlaskForm):
    class Meta:
        csrf = False

    target_type = StringField("Content type", validators=[DataRequired()])
    target_id = StringField("Content id", validators=[DataRequired()])
    message = TextAreaField(
        "Message",
        validators=[DataRequired(message="Please describe the problem"), Length(max=1000)],
    )
