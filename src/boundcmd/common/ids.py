from __future__ import annotations

import random
import string

from boundcmd.common.time import utc_ts_compact


def make_session_id(prefix: str = "S", n: int = 4) -> str:
    return f"{prefix}{utc_ts_compact()}-{''.join(random.choices(string.digits, k=n))}"
