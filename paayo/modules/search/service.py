"""Full-text search over published content.

Each content table contributes one ranked ``SELECT`` built from
``to_tsvector('english', ...)`` matched against ``plainto_tsquery``; the
selects are combined with ``UNION ALL`` and ordered by rank.
"""

from sqlalchemy import Float, String, Text, cast, func, literal, null, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.exceptions import BadRequestError
from paayo.core.logging import get_logger
from paayo.modules.content.models import Hotel, PhotoFeature, Post, Region, Video

logger = get_logger(__name__)

SEARCH_CONFIG = "english"
DEFAULT_LIMIT = 20
MAX_LIMIT = 50


def _document(*columns):
    parts = [func.coalesce(column, "") for column in columns]
    return func.to_tsvector(SEARCH_CONFIG, func.concat_ws(" ", *parts))


def _ranked(model, kind: str, title, excerpt, cover, document, query):
    return select(
        model.id.label("id"),
        literal(kind, String).label("type"),
        title.label("title"),
        model.slug.label("slug"),
        cast(excerpt, Text).label("excerpt"),
        cast(cover, String).label("cover_image"),
        cast(func.ts_rank(document, query), Float).label("rank"),
    ).where(
        model.deleted_at.is_(None),
        model.status == "published",
        document.op("@@")(query),
    )


def _sources(query) -> dict[str, object]:
    return {
        "post": _ranked(
            Post, "post", Post.title, Post.short_description, Post.cover_image,
            _document(Post.title, Post.short_description, cast(Post.content, Text)), query,
        ),
        "region": _ranked(
            Region, "region", Region.name, Region.description, Region.cover_image,
            _document(Region.name, Region.description), query,
        ),
        "video": _ranked(
            Video, "video", Video.title, Video.description, Video.thumbnail_url,
            _document(Video.title, Video.description), query,
        ),
        "hotel": _ranked(
            Hotel, "hotel", Hotel.name, Hotel.description, Hotel.cover_image,
            _document(Hotel.name, Hotel.description), query,
        ),
        "photo": _ranked(
            PhotoFeature, "photo", PhotoFeature.title, PhotoFeature.description, null(),
            _document(PhotoFeature.title, PhotoFeature.description), query,
        ),
    }


class SearchService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(
        self, q: str, *, content_type: str | None = None, limit: int = DEFAULT_LIMIT
    ) -> list[dict]:
        text = q.strip()
        if not text:
            return []
        limit = max(1, min(limit, MAX_LIMIT))

        query = func.plainto_tsquery(SEARCH_CONFIG, text)
        sources = _sources(query)
        if content_type is not None:
            if content_type not in sources:
                raise BadRequestError(f"Unknown search type '{content_type}'")
            selects = [sources[content_type]]
        else:
            selects = list(sources.values())

        combined = union_all(*selects).subquery("search_results")
        result = await self.db.execute(
            select(combined).order_by(combined.c.rank.desc()).limit(limit)
        )
        rows = [dict(row) for row in result.mappings().all()]

        logger.debug("search_executed", query=text, type=content_type, results=len(rows))
        return rows
