"""Route handlers for Web API."""

from learnplatform.web.routes.health import router as health_router
from learnplatform.web.routes.users import router as users_router
from learnplatform.web.routes.skills import router as skills_router
from learnplatform.web.routes.sessions import router as sessions_router
from learnplatform.web.routes.tokens import router as tokens_router
from learnplatform.web.routes.events import router as events_router

__all__ = [
    "health_router",
    "users_router",
    "skills_router",
    "sessions_router",
    "tokens_router",
    "events_router",
]
