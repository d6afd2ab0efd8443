"""Metric key codec.

A buffered counter series is identified by its metric name plus an ordered
tag sequence.  Both are folded into a single string so the series can be
used as a plain ``dict`` key::

    encode_key("req.count")                   -> "req.count"
    encode_key("req.count", ["env:prod"])     -> "req.count[env:prod]"
    encode_key("req.count", ["a:1", "b:2"])   -> "req.count[a:1,b:2]"

Tag order is significant: ``["a", "b"]`` and ``["b", "a"]`` produce two
different keys.  Callers are expected to pass tags in a consistent order.

Names and tags must not contain ``[``, ``]`` or ``,``; this is not
validated, and a key built from such input may decode differently or not
at all.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import NamedTuple

_KEY_PATTERN = re.compile(r"([^\[]+)(\[([^\]]*)\])?")


class DecodedKey(NamedTuple):
    """A metric name and its tag list, as recovered from an encoded key."""

    metric: str
    tags: list[str] | None


def encode_key(metric: str, tags: Sequence[str] | None = None) -> str:
    """Fold *metric* and *tags* into one string key.

    Returns *metric* unchanged when *tags* is ``None`` or empty.

    Examples
    --------
    >>> encode_key("jobs.done", ["queue:high", "region:eu"])
    'jobs.done[queue:high,region:eu]'
    """
    if not tags:
        return metric
    return f"{metric}[{','.join(tags)}]"


def decode_key(key: str) -> DecodedKey | None:
    """Split an encoded key back into its metric name and tags.

    Returns ``None`` when *key* is empty or does not match the
    ``name[tag,tag,...]`` grammar.  An empty bracket decodes to ``tags=None``.

    Examples
    --------
    >>> decode_key("jobs.done[queue:high]")
    DecodedKey(metric='jobs.done', tags=['queue:high'])
    >>> decode_key("jobs.done")
    DecodedKey(metric='jobs.done', tags=None)
    >>> decode_key("") is None
    True
    """
    match = _KEY_PATTERN.fullmatch(key)
    if match is None:
        return None
    raw_tags = match.group(3)
    tags = raw_tags.split(",") if raw_tags else None
    return DecodedKey(metric=match.group(1), tags=tags)
