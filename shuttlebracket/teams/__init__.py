"""Teams feature: read access to the registered roster."""

from .models import Team, team_display_name
from .services import TeamService

__all__ = ["Team", "TeamService", "team_display_name"]
