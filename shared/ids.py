"""
Document identifiers
24-character hex keys in the ObjectId layout used by both stores:
4-byte seconds timestamp, 5 random bytes per process, 3-byte counter.
"""
import itertools
import os
import threading
import time

_PROCESS_UNIQUE = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))
_lock = threading.Lock()


def generate_object_id() -> str:
    """Return a fresh 24-char lowercase hex identifier"""
    with _lock:
        increment = next(_counter) & 0xFFFFFF
    seconds = int(time.time()) & 0xFFFFFFFF
    raw = seconds.to_bytes(4, "big") + _PROCESS_UNIQUE + increment.to_bytes(3, "big")
    return raw.hex()
