"""Global constants for the shuttlebracket application."""

# Collection names
TEAMS_COLLECTION = "teams"
MATCHES_COLLECTION = "matches"
TOURNAMENTS_COLLECTION = "tournaments"
BYES_COLLECTION = "byes"
SLOTS_COLLECTION = "court_slots"
COHORTS_COLLECTION = "cohort_locks"

# Event types
SINGLES = "singles"
MENS_DOUBLES = "mens_doubles"
WOMENS_DOUBLES = "womens_doubles"
MIXED_DOUBLES = "mixed_doubles"
EVENT_TYPES = (SINGLES, MENS_DOUBLES, WOMENS_DOUBLES, MIXED_DOUBLES)

# Tournament formats
ROUND_ROBIN = "round-robin"
KNOCKOUT = "knockout"
TOURNAMENT_FORMATS = (ROUND_ROBIN, KNOCKOUT)

# Tournament lifecycle
TOURNAMENT_PENDING = "PENDING"
TOURNAMENT_IN_PROGRESS = "IN_PROGRESS"
TOURNAMENT_COMPLETED = "COMPLETED"

# Match lifecycle
MATCH_PENDING = "PENDING"
MATCH_SCHEDULED = "SCHEDULED"
MATCH_IN_PROGRESS = "IN_PROGRESS"
MATCH_COMPLETED = "COMPLETED"
MATCH_STATUSES = (MATCH_PENDING, MATCH_SCHEDULED, MATCH_IN_PROGRESS, MATCH_COMPLETED)

# Scheduling window
DAY_START_HOUR = 9
DAY_END_HOUR = 20
MATCH_DURATION_MINUTES = 60
MAX_PROBE_HOURS = 48

# Result recording
SCORE_PATTERN = r"^\d{1,2}-\d{1,2}$"
FORFEITED_SCORE = "Forfeited"

# Transactions are retried once before a conflict is reported
TRANSACTION_MAX_ATTEMPTS = 2

# The deployment's single tournament document
TOURNAMENT_DOC_ID = "current"
