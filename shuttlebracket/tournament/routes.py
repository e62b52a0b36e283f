"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify

from shuttlebracket.errors import ValidationError
from shuttlebracket.match.utils import serialize_match

from . import bp
from .forms import TournamentForm
from .models import TournamentConfig
from .services import TournamentService


def _config_payload(config: TournamentConfig) -> dict[str, Any]:
    return {
        "id": config.id,
        "name": config.name,
        "hostName": config.host_name,
        "location": config.location,
        "date": config.date.isoformat(),
        "tournamentType": config.tournament_type,
        "courtNames": config.court_names,
        "numberOfCourts": len(config.court_names),
        "status": config.status,
        "dayStartHour": config.day_start_hour,
        "dayEndHour": config.day_end_hour,
        "matchDurationMinutes": config.match_duration_minutes,
    }


def _config_from_form(form: TournamentForm) -> TournamentConfig:
    """Build a configuration, falling back to the app's scheduling defaults."""

    def pick(field: Any, key: str) -> int:
        return field.data if field.data is not None else current_app.config[key]

    return TournamentConfig(
        id="",
        name=form.name.data.strip(),
        host_name=(form.host_name.data or "").strip() or None,
        location=form.location.data.strip(),
        date=form.date.data,
        tournament_type=form.tournament_type.data,
        court_names=form.court_list(),
        day_start_hour=pick(form.day_start_hour, "SCHEDULE_DAY_START_HOUR"),
        day_end_hour=pick(form.day_end_hour, "SCHEDULE_DAY_END_HOUR"),
        match_duration_minutes=pick(
            form.match_duration_minutes, "SCHEDULE_MATCH_MINUTES"
        ),
        max_probe_hours=current_app.config["SCHEDULE_MAX_PROBE_HOURS"],
    )


def _validated_form() -> TournamentForm:
    form = TournamentForm()
    if not form.validate_on_submit():
        field_name, errors = next(iter(form.errors.items()), ("form", ["Invalid input."]))
        raise ValidationError(f"{field_name}: {errors[0]}")
    return form


def _load_config() -> tuple[Any, TournamentConfig]:
    db = firestore.client()
    config = TournamentService.require_config(
        db, current_app.config["SCHEDULE_MAX_PROBE_HOURS"]
    )
    return db, config


@bp.route("/", methods=["GET"])
def view_tournament() -> Any:
    """Return the tournament configuration."""
    _, config = _load_config()
    return jsonify(_config_payload(config))


@bp.route("/", methods=["POST"])
def create_tournament() -> Any:
    """Configure the tournament. Only one may exist."""
    form = _validated_form()
    db = firestore.client()
    config = TournamentService.create_config(db, _config_from_form(form))
    return jsonify(_config_payload(config)), 201


@bp.route("/", methods=["PUT"])
def update_tournament() -> Any:
    """Change the tournament settings before the schedule exists."""
    form = _validated_form()
    db = firestore.client()
    config = TournamentService.update_config(db, _config_from_form(form))
    return jsonify(_config_payload(config))


@bp.route("/schedule", methods=["POST"])
def generate_schedule() -> Any:
    """Generate the opening schedule from the registered teams."""
    db, config = _load_config()
    draw = TournamentService.generate_schedule(db, config)
    current_app.logger.info(
        f"Schedule generated: {len(draw.matches)} matches, {len(draw.byes)} byes."
    )
    return jsonify(
        {
            "matches": [
                serialize_match({**d.to_document(config.id), "id": d.id})
                for d in draw.matches
            ],
            "byes": [bye.to_document(config.id) for bye in draw.byes],
        }
    ), 201


@bp.route("/reset", methods=["POST"])
def reset_schedule() -> Any:
    """Throw away the generated schedule."""
    db, config = _load_config()
    removed = TournamentService.reset_schedule(db, config)
    return jsonify({"removedMatches": removed, "status": config.status})


@bp.route("/complete", methods=["POST"])
def complete_tournament() -> Any:
    """Mark the tournament as finished."""
    db, config = _load_config()
    TournamentService.complete_tournament(db, config)
    return jsonify({"status": config.status})


@bp.route("/standings", methods=["GET"])
def view_standings() -> Any:
    """Round-robin standings for each event type."""
    db, config = _load_config()
    return jsonify({"standings": TournamentService.get_standings(db, config)})
