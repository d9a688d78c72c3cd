"""System clock used by the schedulers (epoch milliseconds, local midnight)."""

import time
from datetime import datetime


class SystemClock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def today_start_ms(self) -> int:
        midnight = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
        return int(midnight.timestamp() * 1000)
