from __future__ import annotations


def format_duration(seconds: int) -> str:
    """Seconds as HH:MM:SS; hours are not wrapped at 24."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
