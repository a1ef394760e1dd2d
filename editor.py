import logging
from typing import Optional

from executor import IdFactory, PlanExecution, execute_plan
from generator import PlanGenerator
from schemas import EditContext, PortfolioDocument

logger = logging.getLogger(__name__)


def edit_portfolio(instruction: str, document: PortfolioDocument, generator: PlanGenerator,
                   context: Optional[EditContext] = None, *,
                   max_batch_depth: Optional[int] = None,
                   id_factory: Optional[IdFactory] = None) -> PlanExecution:
    """Generate a plan for ``instruction`` and apply it to ``document``.

    GenerationFailed from the generator propagates as-is; the executor only
    runs once a plan exists.
    """
    plan = generator.generate(instruction, document, context or EditContext())
    execution = execute_plan(plan, document, max_batch_depth=max_batch_depth, id_factory=id_factory)
    if not execution.result.success:
        logger.warning("Plan applied partially: %d error(s)", len(execution.result.errors))
    return execution
