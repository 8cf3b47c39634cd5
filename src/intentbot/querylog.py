"""Fire-and-forget persistence of resolved queries.

Writes are scheduled as detached asyncio tasks. A failed write is reported on
the diagnostic log and dropped; it never reaches the caller.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional, Set

from loguru import logger
from sqlalchemy import DateTime, Float, Integer, String, Text, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .types import QueryLogRecord


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Base(DeclarativeBase):
    pass


class QueryLog(Base):
    __tablename__ = "query_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    query: Mapped[str] = mapped_column(Text)
    intent_detected: Mapped[str] = mapped_column(String(128), default="unknown")
    language: Mapped[str] = mapped_column(String(32), default="unknown")
    confidence_score: Mapped[float] = mapped_column(Float, default=0.0)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


def to_row(record: QueryLogRecord) -> QueryLog:
    query = (record.query or "").strip()
    if not query:
        raise ValueError("Query log record requires a non-empty query")
    return QueryLog(
        query=query,
        intent_detected=record.intent_detected or "unknown",
        language=record.language or "unknown",
        confidence_score=float(record.confidence_score or 0.0),
        timestamp=record.timestamp,
    )


class QueryLogSink:
    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = database_url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._engine is not None

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def connect(self) -> None:
        engine = create_async_engine(self.database_url, echo=self.echo, pool_pre_ping=True)
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)
        except Exception:
            await engine.dispose()
            raise
        self._engine = engine
        self._session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("Query log sink connected")

    def submit(self, record: QueryLogRecord) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, query log record dropped")
            return None
        task = loop.create_task(self._write_safely(record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def write(self, record: QueryLogRecord) -> None:
        if self._session_factory is None:
            raise RuntimeError("Query log sink is not connected")
        row = to_row(record)
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

    async def _write_safely(self, record: QueryLogRecord) -> None:
        try:
            await self.write(record)
        except Exception as exc:
            logger.warning(f"Failed to persist query log: {exc}")

    async def close(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
