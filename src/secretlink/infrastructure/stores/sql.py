"""SQLAlchemy-backed token store.

One short transaction per operation. Consumption is a single conditional
UPDATE so two concurrent redemptions can never both succeed.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.token import Token, TokenKind
from ...exceptions import StorageError
from ...logging_config import get_logger
from ...metrics import record_store_operation
from ..db import models

logger = get_logger(__name__)

BACKEND = "sql"


def _to_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _to_token(row: models.TokenModel) -> Token:
    return Token(
        id=row.id,
        subject=row.subject,
        kind=TokenKind(row.kind),
        created_at=_from_db(row.created_at),
        expires_at=_from_db(row.expires_at),
        consumed_at=_from_db(row.consumed_at),
    )


class SqlAlchemyTokenStore:
    def __init__(self, session_factory: Any):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        start = time.time()
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            record_store_operation(operation, BACKEND, time.time() - start, failed=True)
            logger.error("token_store_failed", operation=operation, backend=BACKEND, error=str(e))
            raise StorageError(f"token store {operation} failed") from e
        record_store_operation(operation, BACKEND, time.time() - start)

    async def get(self, token_id: str) -> Optional[Token]:
        async with self._session("get") as session:
            row = await session.get(models.TokenModel, token_id)
            return _to_token(row) if row is not None else None

    async def put(self, token: Token) -> bool:
        async with self._session("put") as session:
            session.add(
                models.TokenModel(
                    id=token.id,
                    subject=token.subject,
                    kind=token.kind.value,
                    created_at=_to_db(token.created_at),
                    expires_at=_to_db(token.expires_at),
                    consumed_at=_to_db(token.consumed_at) if token.consumed_at else None,
                )
            )
            try:
                await session.commit()
            except IntegrityError:
                # primary key taken: id collision
                await session.rollback()
                return False
            return True

    async def delete(self, token_id: str) -> bool:
        async with self._session("delete") as session:
            res = await session.execute(
                delete(models.TokenModel).where(models.TokenModel.id == token_id)
            )
            await session.commit()
            return bool(res.rowcount)

    async def list_tokens(
        self, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> List[Token]:
        q = select(models.TokenModel).order_by(models.TokenModel.created_at)
        if subject is not None:
            q = q.where(models.TokenModel.subject == subject)
        if kind is not None:
            q = q.where(models.TokenModel.kind == kind.value)
        async with self._session("list") as session:
            res = await session.execute(q)
            return [_to_token(r) for r in res.scalars().all()]

    async def mark_consumed(self, token_id: str, at: datetime) -> Optional[Token]:
        at_db = _to_db(at)
        async with self._session("mark_consumed") as session:
            res = await session.execute(
                update(models.TokenModel)
                .where(models.TokenModel.id == token_id)
                .where(models.TokenModel.consumed_at.is_(None))
                .where(models.TokenModel.expires_at > at_db)
                .values(consumed_at=at_db)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                await session.rollback()
                return None
            row = await session.get(models.TokenModel, token_id, populate_existing=True)
            await session.commit()
            return _to_token(row) if row is not None else None

    async def delete_if_expired(self, token_id: str, now: datetime) -> bool:
        async with self._session("delete_if_expired") as session:
            res = await session.execute(
                delete(models.TokenModel)
                .where(models.TokenModel.id == token_id)
                .where(models.TokenModel.expires_at <= _to_db(now))
            )
            await session.commit()
            return bool(res.rowcount)

    async def purge_expired(self, now: datetime) -> int:
        async with self._session("purge_expired") as session:
            res = await session.execute(
                delete(models.TokenModel).where(models.TokenModel.expires_at <= _to_db(now))
            )
            await session.commit()
            return int(res.rowcount or 0)

    async def count(self) -> int:
        async with self._session("count") as session:
            res = await session.execute(select(func.count()).select_from(models.TokenModel))
            return int(res.scalar_one())

    async def close(self) -> None:
        bind = getattr(self.session_factory, "kw", {}).get("bind")
        if bind is not None:
            await bind.dispose()
