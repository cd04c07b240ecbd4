import datetime
import time


def now_ms() -> int:
    return int(time.time() * 1000)


def days_ago(days: float, now: int) -> int:
    """Epoch milliseconds for a point `days` before `now`."""
    return int(now - days * 24 * 60 * 60 * 1000)


def format_age(creation_timestamp: int, now: int) -> str:
    """
    Format the time elapsed since creation the way kubectl prints an AGE column.

    Examples: 45s, 3m20s, 42m, 5h10m, 30h, 3d4h, 45d, 2y10d
    """
    seconds = max(0, int((now - creation_timestamp) / 1000))
    if seconds < 120:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 10:
        rest = seconds % 60
        return f"{minutes}m{rest}s" if rest else f"{minutes}m"
    if minutes < 180:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 8:
        rest = minutes % 60
        return f"{hours}h{rest}m" if rest else f"{hours}h"
    if hours < 48:
        return f"{hours}h"
    days = hours // 24
    if days < 8:
        rest = hours % 24
        return f"{days}d{rest}h" if rest else f"{days}d"
    if days < 365 * 2:
        return f"{days}d"
    years = days // 365
    rest = days % 365
    return f"{years}y{rest}d" if rest else f"{years}y"


def format_timestamp(ms: int) -> str:
    """RFC 3339 rendering used by describe output (2024-11-10T10:23:15Z)."""
    moment = datetime.datetime.fromtimestamp(ms / 1000, tz=datetime.timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_helm_time(ms: int) -> str:
    """Timestamp in the layout of the UPDATED column of `helm list`."""
    moment = datetime.datetime.fromtimestamp(ms / 1000, tz=datetime.timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S.%f000 +0000 UTC")


def format_deployed_time(ms: int) -> str:
    """Timestamp in the LAST DEPLOYED layout of `helm install` (Mon Jan  2 15:04:05 2006)."""
    moment = datetime.datetime.fromtimestamp(ms / 1000, tz=datetime.timezone.utc)
    return f"{moment:%a %b} {moment.day:2d} {moment:%H:%M:%S %Y}"
