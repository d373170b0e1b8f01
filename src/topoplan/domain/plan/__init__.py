"""Plan bounded context: operations, plans and the planner."""

from .exceptions import PlanningError
from .operation import Action, Operation, Step
from .plan import Plan
from .planner import Planner, plan

__all__ = ["Action", "Operation", "Step", "Plan", "Planner", "plan", "PlanningError"]
