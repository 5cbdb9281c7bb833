"""Identifier generation for blocks, extracted documents and jobs."""

import time
import uuid


def generate_id(prefix: str) -> str:
    """
    Generate an id like ``block_1718000000000_3f9a2c1b7``.

    Only characters valid in a block id are used.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
