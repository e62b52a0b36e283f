"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify, request

from shuttlebracket.errors import NotFoundError, ValidationError
from shuttlebracket.tournament.services import TournamentService

from . import bp
from .forms import AssignSlotForm, LiveScoreForm, ResultForm
from .models import LiveScoreUpdate, ResultSubmission
from .services import MatchService
from .utils import serialize_match


def _first_error(form: Any) -> str:
    for field_name, errors in form.errors.items():
        if errors:
            return f"{field_name}: {errors[0]}"
    return "Invalid input."


@bp.route("/", methods=["GET"])
def list_matches() -> Any:
    """List the tournament's matches, optionally filtered."""
    db = firestore.client()
    config = TournamentService.require_config(db)
    matches = MatchService.list_matches(
        db,
        config.id,
        event_type=request.args.get("eventType") or None,
        status=request.args.get("status") or None,
    )
    return jsonify({"matches": [serialize_match(m) for m in matches]})


@bp.route("/<string:match_id>", methods=["GET"])
def view_match(match_id: str) -> Any:
    """Return a single match."""
    db = firestore.client()
    match = MatchService.get_match_by_id(db, match_id)
    if match is None:
        raise NotFoundError("Match not found.")
    return jsonify(serialize_match(dict(match)))


@bp.route("/<string:match_id>/result", methods=["POST"])
def record_result(match_id: str) -> Any:
    """Record the final score and winner of a match."""
    form = ResultForm()
    if not form.validate_on_submit():
        raise ValidationError(_first_error(form))

    db = firestore.client()
    submission = ResultSubmission(
        match_id=match_id,
        score=(form.score.data or "").strip(),
        winner_id=form.winner_id.data.strip(),
        forfeited=form.forfeited.data,
    )
    config = TournamentService.get_config(
        db, current_app.config["SCHEDULE_MAX_PROBE_HOURS"]
    )
    response = MatchService.record_result(db, submission, config)
    current_app.logger.info(f"Result for {match_id}: {response.message}")
    return jsonify(response.to_dict())


@bp.route("/<string:match_id>/live", methods=["POST"])
def update_live_score(match_id: str) -> Any:
    """Push the current points of a match in progress."""
    form = LiveScoreForm()
    if not form.validate_on_submit():
        raise ValidationError(_first_error(form))

    db = firestore.client()
    match = MatchService.update_live_score(
        db,
        LiveScoreUpdate(
            match_id=match_id,
            team1_points=form.team1_points.data,
            team2_points=form.team2_points.data,
            serving_team_id=form.serving_team_id.data.strip(),
        ),
    )
    return jsonify(serialize_match(dict(match)))


@bp.route("/<string:match_id>/assign", methods=["POST"])
def assign_slot(match_id: str) -> Any:
    """Put a match on a court and start time chosen by the organizer."""
    form = AssignSlotForm()
    if not form.validate_on_submit():
        raise ValidationError(_first_error(form))

    db = firestore.client()
    config = TournamentService.require_config(
        db, current_app.config["SCHEDULE_MAX_PROBE_HOURS"]
    )
    match = MatchService.assign_slot(
        db, config, match_id, form.court_name.data.strip(), form.start_time.data
    )
    return jsonify(serialize_match(dict(match)))
