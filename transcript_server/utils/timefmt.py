"""Human-readable timestamps."""


def format_time(ms: int) -> str:
    """Format milliseconds as M:SS, or H:MM:SS from one hour on."""
    total_seconds = max(int(ms), 0) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_range(start_ms: int, end_ms: int) -> str:
    return f"{format_time(start_ms)} - {format_time(end_ms)}"
