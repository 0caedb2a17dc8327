"""Decoding of language-model replies into raw task fragments.

Replies are nominally JSON but arrive wrapped in markdown fences, as a
single flat task, or as plain prose. Each shape is handled by one strategy;
strategies are tried in ``DECODE_STRATEGIES`` order and the first one that
yields fragments wins. If none does, the user's original text becomes the
title of a single fragment, so decoding always produces at least one task.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from .models import MultiTaskReply, RawTaskFragment

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = "original_text"

_OPENING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?[ \t]*```$")


@dataclass
class DecodeAttempt:
    """Result of one strategy: fragments on success, otherwise why to move on."""
    fragments: List[RawTaskFragment] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and len(self.fragments) > 0

    @classmethod
    def next_strategy(cls, error: str) -> "DecodeAttempt":
        return cls(error=error)


@dataclass
class DecodedReply:
    """Fragments decoded from a reply and the strategy that produced them."""
    fragments: List[RawTaskFragment]
    strategy: str


def strip_code_fences(reply: str) -> str:
    """Remove surrounding ``` fences (with optional language tag) and whitespace."""
    cleaned = (reply or "").strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def decode_multi_task(cleaned: str) -> DecodeAttempt:
    """Decode ``{"tasks": [{...}, ...]}``, preserving task order."""
    try:
        reply = MultiTaskReply.model_validate_json(cleaned)
    except ValidationError as e:
        return DecodeAttempt.next_strategy(f"not a multi-task object: {e.error_count()} error(s)")

    if not reply.tasks:
        return DecodeAttempt.next_strategy("multi-task object has an empty tasks list")
    return DecodeAttempt(fragments=list(reply.tasks))


def decode_single_task(cleaned: str) -> DecodeAttempt:
    """Decode one flat task object ``{"title": ..., "dueDate": ...}``."""
    try:
        fragment = RawTaskFragment.model_validate_json(cleaned)
    except ValidationError as e:
        return DecodeAttempt.next_strategy(f"not a single task object: {e.error_count()} error(s)")
    return DecodeAttempt(fragments=[fragment])


DECODE_STRATEGIES: List[Tuple[str, Callable[[str], DecodeAttempt]]] = [
    ("multi_task", decode_multi_task),
    ("single_task", decode_single_task),
]


def decode_reply(reply: str, original_text: str) -> DecodedReply:
    """Turn a raw model reply into an ordered, non-empty list of fragments.

    Args:
        reply: Raw reply text from the language model
        original_text: The user's input, used as the title when nothing decodes

    Returns:
        DecodedReply with at least one fragment
    """
    cleaned = strip_code_fences(reply)

    for name, strategy in DECODE_STRATEGIES:
        attempt = strategy(cleaned)
        if attempt.succeeded:
            logger.debug(f"Decoded {len(attempt.fragments)} task(s) with {name} strategy")
            return DecodedReply(fragments=attempt.fragments, strategy=name)
        logger.debug(f"{name} strategy skipped: {attempt.error}")

    logger.warning(f"Could not decode model reply, keeping original text as task title: {(reply or '')[:200]!r}")
    return DecodedReply(
        fragments=[RawTaskFragment(title=original_text)],
        strategy=FALLBACK_STRATEGY,
    )
