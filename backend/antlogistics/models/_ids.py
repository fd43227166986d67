from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque surrogate key for master data (warehouses, commodities, operators, sessions)."""
    return str(uuid.uuid4())
