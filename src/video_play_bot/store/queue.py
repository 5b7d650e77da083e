from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import case, create_engine, func, select, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import ConfigError, PersistenceError
from ..models import NewVideoUrl, QueuedVideo, QueueStats, VideoStatus
from .schema import Base, VideoUrl

_logger = logging.getLogger(__name__)


def create_queue_engine(database_url: str, *, sslmode: str = "require") -> Engine:
    """Create an engine for *database_url*.

    ``postgres://`` and ``postgresql://`` URLs are routed to the psycopg driver,
    with *sslmode* applied unless the URL already carries one.
    """
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    url = make_url(database_url)
    connect_args: dict[str, str] = {}
    if url.get_backend_name() == "postgresql":
        url = url.set(drivername="postgresql+psycopg")
        if "sslmode" not in url.query and sslmode:
            connect_args["sslmode"] = sslmode
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class QueueStore:
    """Persistent queue of video URLs backed by the ``video_urls`` table."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._closed = False

    @classmethod
    def from_url(cls, database_url: str, *, sslmode: str = "require") -> QueueStore:
        return cls(create_queue_engine(database_url, sslmode=sslmode))

    def init_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        _logger.info("Database schema initialized")

    def _insert_ignore(self):
        """Dialect-specific ``INSERT ... ON CONFLICT (url) DO NOTHING``."""
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise ConfigError(f"Unsupported database dialect: {dialect}")
        return insert(VideoUrl).on_conflict_do_nothing(index_elements=["url"])

    @staticmethod
    def _row_params(record: NewVideoUrl) -> dict:
        return {
            "url": record.url,
            "user_name": record.user_name,
            "post_id": record.post_id,
            "caption": record.caption,
        }

    def insert_url(self, record: NewVideoUrl) -> None:
        with self.engine.begin() as conn:
            conn.execute(self._insert_ignore(), self._row_params(record))

    def bulk_insert_urls(self, records: Iterable[NewVideoUrl]) -> int:
        """Insert all *records* in one transaction, skipping known URLs.

        Any failure rolls back the whole call and raises PersistenceError.
        Returns the number of records submitted.
        """
        params = [self._row_params(r) for r in records]
        if not params:
            return 0
        stmt = self._insert_ignore()
        try:
            with self.engine.begin() as conn:
                for row in params:
                    conn.execute(stmt, row)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Bulk insert of {len(params)} URLs failed: {exc}") from exc
        _logger.info("Inserted %d URLs", len(params))
        return len(params)

    def get_next_batch(self, limit: int = 5) -> list[QueuedVideo]:
        """Least-viewed, least-recently-played videos first; errored rows never."""
        stmt = (
            select(
                VideoUrl.id,
                VideoUrl.url,
                VideoUrl.user_name,
                VideoUrl.post_id,
                VideoUrl.view_count,
            )
            .where(VideoUrl.status != VideoStatus.ERROR.value)
            .order_by(VideoUrl.view_count.asc(), VideoUrl.last_played_at.asc().nulls_first())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            QueuedVideo(
                id=row.id,
                url=row.url,
                user_name=row.user_name,
                post_id=row.post_id,
                view_count=row.view_count,
            )
            for row in rows
        ]

    def update_view_count(self, video_id: int, device_used: str) -> None:
        stmt = (
            update(VideoUrl)
            .where(VideoUrl.id == video_id)
            .values(
                view_count=VideoUrl.view_count + 1,
                last_played_at=func.now(),
                status=VideoStatus.COMPLETED.value,
                device_used=device_used,
                updated_at=func.now(),
            )
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def mark_error(self, video_id: int, error_message: str) -> None:
        stmt = (
            update(VideoUrl)
            .where(VideoUrl.id == video_id)
            .values(
                status=VideoStatus.ERROR.value,
                error_message=error_message,
                updated_at=func.now(),
            )
        )
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def get_stats(self) -> QueueStats:
        stmt = select(
            func.count().label("total"),
            func.sum(VideoUrl.view_count).label("total_views"),
            func.count(case((VideoUrl.status == VideoStatus.ERROR.value, 1))).label("errors"),
            func.avg(VideoUrl.view_count).label("avg_views"),
        ).select_from(VideoUrl)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).one()
        return QueueStats(
            total=int(row.total or 0),
            total_views=int(row.total_views or 0),
            errors=int(row.errors or 0),
            avg_views=float(row.avg_views or 0),
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.engine.dispose()
