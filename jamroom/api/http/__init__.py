from jamroom.api.http.health import router as health_router
from jamroom.api.http.users import router as users_router
from jamroom.api.http.rooms import router as rooms_router
from jamroom.api.http.loops import router as loops_router

__all__ = [
    "health_router",
    "users_router",
    "rooms_router",
    "loops_router"
]
