"""
Multi-step operations with compensation.

Each step is an async action paired with an optional async compensation.
When a step fails, the compensations of the steps that already completed
run in reverse order, then a SagaError chained to the failure is raised.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Action = Callable[[Dict[str, Any]], Awaitable[Any]]
Compensation = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Optional[Compensation] = None


class SagaError(Exception):
    """A saga step failed; `step` names it and `__cause__` holds the error."""

    def __init__(self, step: str, compensated: List[str]):
        super().__init__(f"Step '{step}' failed")
        self.step = step
        self.compensated = compensated


class Saga:
    """
    Usage:
        saga = Saga("create_offer")
        saga.add_step("insert_offer", insert_offer, delete_offer)
        saga.add_step("insert_equipment", insert_equipment)
        context = await saga.run()

    Every action receives the shared context dict; its return value is
    stored in the context under the step name.
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: List[SagaStep] = []

    def add_step(
        self,
        name: str,
        action: Action,
        compensation: Optional[Compensation] = None,
    ) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    async def run(self, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context = {} if context is None else context
        completed: List[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = await step.action(context)
            except Exception as e:
                logger.error(f"Saga '{self.name}' failed at step '{step.name}': {e}")
                compensated = await self._compensate(completed, context)
                raise SagaError(step.name, compensated) from e
            completed.append(step)

        return context

    async def _compensate(self, completed: List[SagaStep], context: Dict[str, Any]) -> List[str]:
        compensated = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                await step.compensation(context)
                compensated.append(step.name)
            except Exception as e:
                # Keep compensating the remaining steps
                logger.error(
                    f"Saga '{self.name}': compensation of '{step.name}' failed: {e}",
                    exc_info=True,
                )
        return compensated
