"""
Token Record Codec Module

Encodes the whole token aggregate as one versioned JSON document (UTF-8
bytes), independent of the store that keeps it. Integers are written as JSON
numbers; u64 values round-trip exactly through Python's json module.
"""

import json
from typing import Any, Dict, Optional

from .errors import CorruptTokenRecord, TokenError, UnsupportedSchemaVersion
from .notifications import NotificationSink
from .token import Token


SCHEMA_VERSION = 1
SUPPORTED_SCHEMA_VERSIONS = (1,)


def token_to_record(token: Token) -> Dict[str, Any]:
    record = {"schema_version": SCHEMA_VERSION}
    record.update(token.to_dict())
    return record


def encode_token(token: Token) -> bytes:
    """Serialize the token to the stored blob format"""
    return json.dumps(token_to_record(token), separators=(",", ":"), sort_keys=True).encode("utf-8")


def decode_token(blob: bytes, notifier: Optional[NotificationSink] = None) -> Token:
    """
    Rebuild a token from its stored blob.

    Raises:
        UnsupportedSchemaVersion: the record was written by an unknown schema
        CorruptTokenRecord: the blob is not a consistent token record
    """
    try:
        record = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptTokenRecord(f"not valid JSON ({e})")

    if not isinstance(record, dict):
        raise CorruptTokenRecord("top level must be an object")

    version = record.get("schema_version")
    # True and 1.0 compare equal to 1
    if type(version) is not int or version not in SUPPORTED_SCHEMA_VERSIONS:
        raise UnsupportedSchemaVersion(version)

    try:
        token = Token.from_dict(record, notifier=notifier)
    except CorruptTokenRecord:
        raise
    except (KeyError, TypeError, AttributeError) as e:
        raise CorruptTokenRecord(f"missing or malformed field ({e})")
    except TokenError as e:
        raise CorruptTokenRecord(e.message)

    held = token.accounts.total_balance()
    if held != token.total_supply:
        raise CorruptTokenRecord(
            f"accounts hold {held} but total supply is {token.total_supply}"
        )
    return token
