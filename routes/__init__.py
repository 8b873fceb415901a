# Routes package __init__.py - re-exports routers for main.py convenience
from .submissions import router as submissions_router
from .problems import router as problems_router
from .settings import router as settings_router
from .stats import router as stats_router
from .backups import router as backups_router
from .messages import router as messages_router

__all__ = [
    'submissions_router', 'problems_router', 'settings_router',
    'stats_router', 'backups_router', 'messages_router',
]
