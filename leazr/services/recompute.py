"""
Coalescing scheduler for commission recomputation.

Policy:
- A recompute is triggered by a change of financed amount, commission level
  or principal
- Requests for the same target (usually an offer id, else the principal)
  arriving within the window are coalesced: each new request cancels the
  pending one and restarts the window
- A request whose signature (amount to the cent, level, principal) equals
  the last computed one is skipped, and still cancels a pending request for
  other inputs: the last computed value is the one the caller wants again
- Signatures are kept for at most max_tracked targets, least recently used
  first out, and dropped when the target goes away
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple, Union

from leazr.services.commission import CommissionResult
from leazr.services.ranges import to_decimal

logger = logging.getLogger(__name__)

RecomputeKey = Union[Hashable, Tuple[str, Optional[int]]]


@dataclass
class RecomputeRequest:
    financed_amount: Decimal
    level_id: Optional[int]
    principal_type: str
    principal_id: Optional[int]
    target: Optional[Hashable] = None

    @property
    def key(self) -> RecomputeKey:
        if self.target is not None:
            return self.target
        return (self.principal_type, self.principal_id)

    @property
    def signature(self) -> str:
        amount = self.financed_amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{amount}-{self.level_id}-{self.principal_type}-{self.principal_id}"


class CommissionRecomputer:
    """
    Debounces commission computations per target.

    The compute function does the actual lookup (usually a wrapper around
    calculate_commission_by_level with its own session); the result is
    handed to on_result.
    """

    def __init__(
        self,
        compute_fn: Callable[[RecomputeRequest], Awaitable[CommissionResult]],
        on_result: Callable[[RecomputeRequest, CommissionResult], Awaitable[Optional[bool]]],
        window: float = 0.5,
        max_tracked: int = 1024,
    ):
        """
        Args:
            compute_fn: async function(request) -> CommissionResult
            on_result: async function(request, result); returning False means
                the target is gone and its state is dropped
            window: seconds to wait for further changes before computing
            max_tracked: number of targets whose last signature is kept
        """
        self._compute_fn = compute_fn
        self._on_result = on_result
        self._window = window
        self._max_tracked = max_tracked
        self._pending: Dict[RecomputeKey, asyncio.Task] = {}
        self._last_signature: "OrderedDict[RecomputeKey, str]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def request(
        self,
        financed_amount: Any,
        level_id: Optional[int],
        principal_type: str,
        principal_id: Optional[int],
        target: Optional[Hashable] = None,
    ) -> bool:
        """
        Schedule a recompute.

        Returns:
            False if the request was skipped (non-positive amount, or same
            inputs as the last computation), True if it was scheduled
        """
        req = RecomputeRequest(
            financed_amount=to_decimal(financed_amount),
            level_id=level_id,
            principal_type=str(getattr(principal_type, "value", principal_type)),
            principal_id=principal_id,
            target=target,
        )
        if req.financed_amount <= 0:
            return False

        async with self._lock:
            pending = self._pending.pop(req.key, None)
            if pending and not pending.done():
                pending.cancel()

            if self._last_signature.get(req.key) == req.signature:
                logger.debug(f"Skipping recompute, inputs unchanged: {req.signature}")
                return False

            self._pending[req.key] = asyncio.create_task(self._run_after_delay(req))

        return True

    async def _run_after_delay(self, req: RecomputeRequest) -> None:
        """Wait for the window, then compute and deliver the result."""
        await asyncio.sleep(self._window)

        async with self._lock:
            if self._pending.get(req.key) is asyncio.current_task():
                self._pending.pop(req.key, None)
            self._remember(req.key, req.signature)

        try:
            result = await self._compute_fn(req)
            delivered = await self._on_result(req, result)
        except Exception as e:
            logger.error(f"Error recomputing commission for {req.key}: {e}", exc_info=True)
            async with self._lock:
                # Allow the same inputs to be retried
                self._last_signature.pop(req.key, None)
            return

        if delivered is False:
            async with self._lock:
                self._last_signature.pop(req.key, None)

    def _remember(self, key: RecomputeKey, signature: str) -> None:
        self._last_signature[key] = signature
        self._last_signature.move_to_end(key)
        while len(self._last_signature) > self._max_tracked:
            self._last_signature.popitem(last=False)

    async def forget(self, key: RecomputeKey) -> None:
        """Cancel any pending recompute of `key` and drop its last signature."""
        async with self._lock:
            pending = self._pending.pop(key, None)
            if pending and not pending.done():
                pending.cancel()
            self._last_signature.pop(key, None)

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._pending.values() if not task.done())

    @property
    def tracked_count(self) -> int:
        return len(self._last_signature)

    async def flush_all(self) -> None:
        """Cancel all pending recomputes (for shutdown)."""
        async with self._lock:
            for key in list(self._pending.keys()):
                task = self._pending.pop(key, None)
                if task and not task.done():
                    task.cancel()
