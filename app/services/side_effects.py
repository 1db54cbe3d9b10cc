"""
Best-effort side effects (calendar sync, WhatsApp notifications)

The primary operation's value is returned together with the outcome of each
secondary effect; a failed effect never changes the primary result.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SideEffectOutcome:
    name: str
    success: bool
    detail: Optional[str] = None
    result: Any = None

    def to_dict(self) -> dict:
        return {"name": self.name, "success": self.success, "detail": self.detail}


@dataclass
class OperationResult(Generic[T]):
    value: T
    side_effects: list[SideEffectOutcome] = field(default_factory=list)

    def add(self, outcome: SideEffectOutcome) -> SideEffectOutcome:
        self.side_effects.append(outcome)
        return outcome

    @property
    def failed_side_effects(self) -> list[SideEffectOutcome]:
        return [s for s in self.side_effects if not s.success]


async def run_side_effect(name: str, effect: Awaitable[Any]) -> SideEffectOutcome:
    """Await a secondary effect, converting any failure into a failed outcome"""
    try:
        result = await effect
    except Exception as e:
        logger.warning(f"⚠️ Side effect '{name}' failed: {str(e)}")
        return SideEffectOutcome(name=name, success=False, detail=str(e))

    if result is None:
        return SideEffectOutcome(name=name, success=False, detail="skipped: integration not configured")

    logger.info(f"✅ Side effect '{name}' completed")
    return SideEffectOutcome(name=name, success=True, result=result)
