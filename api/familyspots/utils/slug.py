import re
import time
from typing import Callable, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(*parts: str) -> str:
    """Join the parts with dashes and reduce them to ``[a-z0-9-]``."""
    text = "-".join(part for part in parts if part).lower()
    return _NON_ALNUM.sub("-", text).strip("-")


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def unique_slug(base: str, exists: Callable[[str], bool], now_ms: Optional[int] = None) -> str:
    """Return ``base``, or ``base`` plus a base36 timestamp when it is taken."""
    if not exists(base):
        return base
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{base}-{to_base36(now_ms)}"
