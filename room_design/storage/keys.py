"""Key naming scheme shared with data already written by the game client."""

CURRENT_THEME_KEY = "theme:current"
ARCHIVED_THEMES_KEY = "theme:archived"


def design_key(design_id: str) -> str:
    return f"design:{design_id}"


def design_votes_key(design_id: str) -> str:
    return f"design:{design_id}:votes"


def user_designs_key(user_id: str) -> str:
    return f"user:{user_id}:designs"


def theme_key(theme_id: str) -> str:
    return f"theme:{theme_id}"


def vote_key(design_id: str, user_id: str) -> str:
    return f"votes:{design_id}:{user_id}"


def submissions_key(theme_id: str, post_id: str | None = None) -> str:
    return f"submissions:{post_id or theme_id}:{theme_id}"


def user_submission_key(user_id: str, theme_id: str) -> str:
    return f"submission:{user_id}:{theme_id}"


def leaderboard_key(theme_id: str) -> str:
    return f"leaderboard:{theme_id}"


def design_id_from_key(key: str) -> str:
    """Inverse of ``design_key``; bare ids pass through unchanged."""
    prefix = "design:"
    return key[len(prefix):] if key.startswith(prefix) else key
