"""Batch ID context for log correlation.

Each call to the orchestrator gets a short batch ID, stored in a
contextvars.ContextVar so every log line emitted while the batch is being
processed (including from extraction worker threads) can be tied back to it.
"""

import contextvars
import uuid

# Context variable accessible from anywhere in the same async task
batch_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "batch_id", default=""
)


def new_batch_id() -> str:
    return uuid.uuid4().hex[:12]


def get_batch_id() -> str:
    """Get the current batch ID (empty string outside of a batch)."""
    return batch_id_var.get()
