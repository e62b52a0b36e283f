"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournament")

from . import routes  # noqa: E402, F401
from .models import Tournament, TournamentConfig  # noqa: E402
from .services import TournamentService  # noqa: E402

__all__ = ["Tournament", "TournamentConfig", "TournamentService", "routes"]
