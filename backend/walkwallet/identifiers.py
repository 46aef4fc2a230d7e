# Overview: Entity keys and human-facing ticket/redemption codes.

"""
Identifier generation.

Entity primary keys are UUID4 strings. Ticket and redemption codes keep the
PREFIX-<epoch-ms>-<base36> shape clients already display, with the random
part drawn from a UUID4 rather than a short random string.
"""

import time
import uuid

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"

CODE_PREFIX_METRO = "METRO"
CODE_PREFIX_REWARD = "RWD"


def new_id() -> str:
    return str(uuid.uuid4())


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_code(prefix: str, *, now_ms: int | None = None) -> str:
    """PREFIX-<epoch-ms>-<base36>, e.g. METRO-1760659200000-3kq0z9x1c2."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    # 64 random bits from a UUID4 -> at most 13 base36 chars
    suffix = to_base36(uuid.uuid4().int >> 64)
    return f"{prefix}-{now_ms}-{suffix}"
