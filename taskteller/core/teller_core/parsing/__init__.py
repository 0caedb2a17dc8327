"""Reply decoding and task building for TaskTeller."""

from .models import (
    TaskPriority,
    TaskCategory,
    RawTaskFragment,
    MultiTaskReply,
    ResolvedTask,
    ExtractionResult,
)
from .decoder import DecodeAttempt, DecodedReply, decode_reply, strip_code_fences, DECODE_STRATEGIES
from .builder import build_task, resolve_due_date
from .pipeline import extract_tasks

__all__ = [
    "TaskPriority",
    "TaskCategory",
    "RawTaskFragment",
    "MultiTaskReply",
    "ResolvedTask",
    "ExtractionResult",
    "DecodeAttempt",
    "DecodedReply",
    "decode_reply",
    "strip_code_fences",
    "DECODE_STRATEGIES",
    "build_task",
    "resolve_due_date",
    "extract_tasks",
]
