"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, NumberRange, Optional

from shuttlebracket.core.constants import KNOCKOUT, ROUND_ROBIN


class TournamentForm(FlaskForm):
    """Form for creating/editing the tournament."""

    class Meta:
        csrf = False

    name = StringField("Tournament Name", validators=[DataRequired()])

    host_name = StringField("Host", validators=[Optional()])

    location = StringField("Location", validators=[DataRequired()])

    date = DateField("Date", validators=[DataRequired()])

    tournament_type = SelectField(
        "Tournament Format",
        choices=[(ROUND_ROBIN, "Round Robin"), (KNOCKOUT, "Knockout")],
        validators=[DataRequired()],
    )

    # One court per line, or comma separated
    court_names = TextAreaField("Courts", validators=[Optional()])

    day_start_hour = IntegerField(
        "First Match Hour", validators=[Optional(), NumberRange(min=0, max=23)]
    )
    day_end_hour = IntegerField(
        "Closing Hour", validators=[Optional(), NumberRange(min=1, max=24)]
    )
    match_duration_minutes = IntegerField(
        "Match Length (minutes)", validators=[Optional(), NumberRange(min=1)]
    )

    def court_list(self):
        """Split the courts field into clean names, keeping their order."""
        raw = self.court_names.data or ""
        names = [part.strip() for line in raw.splitlines() for part in line.split(",")]
        return [name for name in names if name]
