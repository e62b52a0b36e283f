"""Forms for the match blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import BooleanField, DateTimeLocalField, IntegerField, StringField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional


class ResultForm(FlaskForm):
    """Form an umpire submits when a match ends."""

    class Meta:
        csrf = False

    score = StringField("Score", validators=[Optional()])
    winner_id = StringField("Winner", validators=[DataRequired()])
    forfeited = BooleanField("Forfeited", default=False)


class LiveScoreForm(FlaskForm):
    """Form for a point-by-point score update."""

    class Meta:
        csrf = False

    team1_points = IntegerField(
        "Team 1 Points", validators=[InputRequired(), NumberRange(min=0)]
    )
    team2_points = IntegerField(
        "Team 2 Points", validators=[InputRequired(), NumberRange(min=0)]
    )
    serving_team_id = StringField("Serving Team", validators=[DataRequired()])


class AssignSlotForm(FlaskForm):
    """Form for placing a match on a court by hand."""

    class Meta:
        csrf = False

    court_name = StringField("Court", validators=[DataRequired()])
    start_time = DateTimeLocalField("Start Time", validators=[DataRequired()])
