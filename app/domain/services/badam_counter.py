from __future__ import annotations


BADAM_ACTIONS: tuple[str, ...] = ("increment", "decrement")

# Storage column is a signed 32-bit INTEGER.
MAX_BADAM_COUNT = 2**31 - 1


def clamp_count(value: int) -> int:
    return min(MAX_BADAM_COUNT, max(0, int(value)))


def apply_action(value: int, action: str) -> int:
    if action == "increment":
        return clamp_count(value + 1)
    if action == "decrement":
        return clamp_count(value - 1)
    raise ValueError(f"Unknown badam action: {action!r}")
