import hashlib
import json


def payload_hash(payload: dict) -> str:
    """Stable sha256 of a JSON payload, used for audit rows."""
    s = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()
