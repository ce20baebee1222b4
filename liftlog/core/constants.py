"""Application constants."""

from datetime import timedelta

# Session tokens
REMEMBER_ME_CLAIM = "remember_me"

# Drafts older than this are abandoned (not offered for resume, cleaned up)
DRAFT_TTL = timedelta(hours=24)

# Client-local storage keys, suffixed with the program id
DRAFT_KEY_PREFIX = "workout-progress-"
START_KEY_PREFIX = "workout-start-"

# Weight +/- buttons step by one of these; reps always step by 1
WEIGHT_STEP_OPTIONS = (1.0, 5.0)
DEFAULT_WEIGHT_STEP = 5.0
REPS_STEP = 1

MIN_PASSWORD_LENGTH = 6
