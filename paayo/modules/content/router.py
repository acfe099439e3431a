"""API routes for content module."""

from fastapi import APIRouter

from paayo.modules.content.routers import (
    activities_router,
    attractions_router,
    events_router,
    hero_slide_router,
    hotel_router,
    link_router,
    photo_router,
    post_router,
    region_router,
    video_router,
)

router = APIRouter()

router.include_router(post_router)
router.include_router(events_router)
router.include_router(activities_router)
router.include_router(attractions_router)
router.include_router(region_router)
router.include_router(video_router)
router.include_router(hotel_router)
router.include_router(photo_router, prefix="/photos")
router.include_router(photo_router, prefix="/photo-features", include_in_schema=False)
router.include_router(hero_slide_router)
router.include_router(link_router)
