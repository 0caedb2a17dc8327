"""Reply-to-tasks extraction pipeline."""

import logging
from datetime import datetime
from typing import Optional

from ..config import current_time
from .builder import build_task
from .decoder import decode_reply
from .models import ExtractionResult

logger = logging.getLogger(__name__)


def extract_tasks(reply: str, original_text: str, now: Optional[datetime] = None) -> ExtractionResult:
    """Decode a model reply and resolve every task in it.

    Never raises for malformed replies or unrecognized phrases; the worst
    case is a single task titled with ``original_text`` and no due date.

    Args:
        reply: Raw reply text from the language model
        original_text: The user's input text
        now: Reference instant (defaults to the current time in the configured timezone)

    Returns:
        ExtractionResult with tasks in reply order
    """
    if now is None:
        now = current_time()

    decoded = decode_reply(reply, original_text)
    tasks = [build_task(fragment, now) for fragment in decoded.fragments]

    logger.info(f"Extracted {len(tasks)} task(s) using {decoded.strategy} strategy")
    return ExtractionResult(tasks=tasks, strategy=decoded.strategy, source_text=original_text)
