"""Content module sub-routers."""

from paayo.modules.content.routers.hero_slide_router import router as hero_slide_router
from paayo.modules.content.routers.hotel_router import router as hotel_router
from paayo.modules.content.routers.link_router import router as link_router
from paayo.modules.content.routers.photo_router import router as photo_router
from paayo.modules.content.routers.post_router import (
    activities_router,
    attractions_router,
    events_router,
)
from paayo.modules.content.routers.post_router import router as post_router
from paayo.modules.content.routers.region_router import router as region_router
from paayo.modules.content.routers.video_router import router as video_router

__all__ = [
    "post_router",
    "events_router",
    "activities_router",
    "attractions_router",
    "region_router",
    "video_router",
    "hotel_router",
    "photo_router",
    "hero_slide_router",
    "link_router",
]
