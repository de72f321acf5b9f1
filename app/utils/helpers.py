"""
General helper functions for the application.
"""

HISTORY_KEY_SEPARATOR = "|"


def normalize_name(raw: str) -> str:
    """Collapse runs of whitespace and trim."""
    return " ".join(raw.split())


def build_history_key(university: str, department: str) -> str:
    """
    Build the saved-analysis key for a university and department.

    Whitespace differences do not create separate entries:
    "서울대학교 ", "경제학부" and "서울대학교", " 경제학부" share one key.
    """
    return f"{normalize_name(university)}{HISTORY_KEY_SEPARATOR}{normalize_name(department)}"

