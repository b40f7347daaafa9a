from datetime import datetime, timedelta, timezone


def format_elapsed(seconds: float) -> str:
    """Render a duration as 1h2m3s / 2m3s / 3s."""
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    mins = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        return f"{hours}h{mins}m{secs}s"
    if mins > 0:
        return f"{mins}m{secs}s"
    return f"{secs}s"


def get_eta(done: float, total: float, elapsed_seconds: float) -> str | None:
    """Estimate completion from linear progress; None until there is progress to go on."""
    if done <= 0 or total <= 0 or done > total:
        return None
    remaining_seconds = elapsed_seconds * (total - done) / done
    completion_time = (datetime.now(timezone.utc) + timedelta(
        seconds=remaining_seconds)).strftime("%Y-%m-%d %H:%M:%S")
    return f"{completion_time} ({format_elapsed(remaining_seconds)})"
