"""Movie graph loading and Cypher query-tuning walkthrough."""

__version__ = "1.0.0"

from movie_tuning.config import get_config
from movie_tuning.plan import PlanOperator

__all__ = [
    "get_config",
    "PlanOperator",
    "__version__",
]
