from datetime import datetime, timedelta

from src.app.services.clock import Clock


class FixedClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current

    def set(self, now: datetime) -> datetime:
        self.current = now
        return self.current
