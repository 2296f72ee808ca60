from datetime import datetime


def now() -> datetime:
    """Host clock, naive local time. No timezone normalisation is applied."""
    return datetime.now()
