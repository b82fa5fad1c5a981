# Application Package
from .cache import QueryCache
from .lifecycle import ReviewPlanLifecycle
from .queries import DueSetQueryEngine
from .service import ReviewService

__all__ = ["QueryCache", "ReviewPlanLifecycle", "DueSetQueryEngine", "ReviewService"]
