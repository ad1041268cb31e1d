from __future__ import annotations

import re
import uuid

ID_PATTERN = r"^[0-9a-f]{32}$"

_ID_RE = re.compile(ID_PATTERN)


def generate_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value: object) -> bool:
    return isinstance(value, str) and bool(_ID_RE.match(value))
