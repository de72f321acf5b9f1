from app.utils.helpers import build_history_key, normalize_name

__all__ = ["build_history_key", "normalize_name"]
