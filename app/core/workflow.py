"""
Multi-write workflows with compensating actions.

The backend offers no transaction spanning several documents, so a workflow
records an undo action for every write that succeeds. When a later write
fails, the recorded undo actions run newest first and the original error is
re-raised.
"""

from typing import Any, Callable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class Workflow:
    def __init__(self, name: str):
        self.name = name
        self._undo: List[Tuple[str, Callable[[], Any]]] = []

    def step(
        self,
        description: str,
        action: Callable[[], Any],
        compensate: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """Run action; on failure undo the completed steps and re-raise"""
        try:
            result = action()
        except Exception as e:
            logger.error(f"{self.name}: step '{description}' failed: {e}")
            self.rollback()
            raise
        if compensate is not None:
            self._undo.append((description, lambda: compensate(result)))
        return result

    def rollback(self) -> None:
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                logger.info(f"{self.name}: compensated '{description}'")
            except Exception as e:
                # Nothing left to fall back on; the partial state is reported for manual repair
                logger.error(f"{self.name}: compensation for '{description}' failed: {e}")
