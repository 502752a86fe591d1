"""
Drop orchestration for rogue-audit.

Turns a fresh scan into a drop plan using include/ignore patterns, and
drops the planned tables one at a time after confirmation.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from enum import Enum

from .operations import SafeSchemaOperations
from .patterns import matches
from .reconciler import Candidate, RogueReconciler
from ..exceptions import DropFailureError


logger = logging.getLogger(__name__)


class CleanStatus(str, Enum):
    """Outcome of a clean run. None of these is an error."""

    NO_CANDIDATES = "no_candidates"
    NOTHING_SELECTED = "nothing_selected"
    DRY_RUN = "dry_run"
    ABORTED = "aborted"
    COMPLETED = "completed"


@dataclass
class CleanOptions:
    """Selection options for a clean run."""

    all: bool = False
    include: List[str] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)
    dry_run: bool = False


@dataclass
class CleanResult:
    """Result of a clean run."""

    status: CleanStatus
    candidates: List[Candidate] = field(default_factory=list)
    plan: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)
    # Planned tables that were already gone when their turn came
    missing: List[str] = field(default_factory=list)


def build_plan(candidates: List[Candidate], options: CleanOptions) -> List[str]:
    """
    Select candidate tables for dropping, preserving candidate order.

    Ignore patterns win over both ``all`` and include patterns.
    """
    plan = []
    for candidate in candidates:
        table = candidate.table
        if options.ignore and matches(table, options.ignore):
            continue
        if options.all or (options.include and matches(table, options.include)):
            plan.append(table)
    return plan


class DropOrchestrator:
    """Plans and executes rogue table drops."""

    def __init__(
        self,
        reconciler: RogueReconciler,
        operations: SafeSchemaOperations,
        schema: Optional[str] = None,
    ):
        self.reconciler = reconciler
        self.operations = operations
        self.schema = schema or reconciler.schema

    async def clean(
        self,
        options: CleanOptions,
        confirm: Callable[[List[str]], bool],
        on_plan: Optional[Callable[[List[str]], None]] = None,
        on_dropped: Optional[Callable[[str], None]] = None,
    ) -> CleanResult:
        """
        Scan, plan, confirm and drop.

        Args:
            options: Selection options
            confirm: Asked once with the plan; nothing is dropped unless it
                returns True. Not called for dry runs.
            on_plan: Receives the plan before confirmation
            on_dropped: Called after each table is dropped

        Raises:
            DropFailureError: On the first table the database refuses to
                drop. Tables dropped before it stay dropped.
        """
        candidates = await self.reconciler.find_rogues()
        if not candidates:
            return CleanResult(status=CleanStatus.NO_CANDIDATES)

        plan = build_plan(candidates, options)
        result = CleanResult(
            status=CleanStatus.NOTHING_SELECTED, candidates=candidates, plan=plan
        )
        if not plan:
            logger.warning("No candidate matched the selection, nothing to drop")
            return result

        if on_plan is not None:
            on_plan(plan)

        if options.dry_run:
            logger.info(f"Dry run: {len(plan)} tables would be dropped")
            result.status = CleanStatus.DRY_RUN
            return result

        if not confirm(plan):
            logger.warning("Drop aborted by user")
            result.status = CleanStatus.ABORTED
            return result

        for table in plan:
            try:
                change = await self.operations.drop_table_if_exists(self.schema, table)
            except Exception as e:
                logger.error(
                    f"Stopping clean after {len(result.dropped)} drops: "
                    f"failed to drop {table}: {e}"
                )
                raise DropFailureError(table, result.dropped, cause=e) from e

            if change.skipped:
                result.missing.append(table)
                continue

            result.dropped.append(table)
            logger.info(f"Dropped table {table}")
            if on_dropped is not None:
                on_dropped(table)

        result.status = CleanStatus.COMPLETED
        return result
