from __future__ import annotations

import secrets
import string
import time
from typing import Callable, Optional

_ALPHABET = string.digits + string.ascii_lowercase


class ContractIdGenerator:
    """Ids of the form ``CONTRACT_<epoch-ms>_<9 random base36 chars>``."""

    def __init__(self, prefix: str = "CONTRACT", *, clock_ms: Optional[Callable[[], int]] = None) -> None:
        self._prefix = prefix
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)

    def next_id(self) -> str:
        token = "".join(secrets.choice(_ALPHABET) for _ in range(9))
        return f"{self._prefix}_{self._clock_ms()}_{token}"
