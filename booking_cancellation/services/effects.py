"""The one way secondary effects run during a cancellation.

An effect is any callable. Whatever it raises is captured into an
``EffectOutcome`` and never propagates, so a failing stock update cannot stop
the loyalty reversal that follows it, and nothing can unwind a status change
that was already committed.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

OK = "ok"
SKIPPED = "skipped"
FAILED = "failed"


class EffectSkipped(Exception):
    """Raised by an effect when it has nothing (or nothing safe) to do."""


@dataclass
class EffectOutcome:
    name: str
    status: str
    detail: str = ""
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == OK

    def as_dict(self) -> dict:
        return {"name": self.name, "status": self.status, "detail": self.detail}


def run_effect(name: str, fn: Callable[..., Any], *args, on_error: Callable[[], Any] | None = None, **kwargs) -> EffectOutcome:
    """Run ``fn`` and report what happened. ``on_error`` runs after a skip or failure (e.g. ``db.rollback``)."""
    try:
        value = fn(*args, **kwargs)
    except EffectSkipped as e:
        logger.warning("Skipped %s: %s", name, e)
        _cleanup(name, on_error)
        return EffectOutcome(name=name, status=SKIPPED, detail=str(e))
    except Exception as e:
        logger.error("Side effect %s failed: %s", name, e, exc_info=True)
        _cleanup(name, on_error)
        return EffectOutcome(name=name, status=FAILED, detail=str(e))
    return EffectOutcome(name=name, status=OK, value=value)


def _cleanup(name: str, on_error: Callable[[], Any] | None) -> None:
    if on_error is None:
        return
    try:
        on_error()
    except Exception as e:
        logger.error("Cleanup after %s failed: %s", name, e)
