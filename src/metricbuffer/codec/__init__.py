"""Key codec: folds a metric name and tag list into one map key."""
from __future__ import annotations

from metricbuffer.codec.keys import DecodedKey, decode_key, encode_key

__all__ = ["DecodedKey", "encode_key", "decode_key"]
