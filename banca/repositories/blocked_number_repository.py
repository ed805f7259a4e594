"""Repository layer for BlockedNumber persistence."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from banca.buckets import BucketKey
from banca.db import insert_if_absent
from banca.models.blocked_number import BlockedNumber


class BlockedNumberRepository:
    def find(self, session: Session, key: BucketKey) -> BlockedNumber | None:
        stmt = select(BlockedNumber).filter_by(**key.as_filter())
        return session.scalars(stmt).first()

    def upsert(
        self,
        session: Session,
        key: BucketKey,
        value_at_block: Decimal,
        limit_at_block: Decimal,
    ) -> BlockedNumber:
        """Create the block if absent; an existing record is returned untouched."""

        existing = self.find(session, key)
        if existing is not None:
            return existing

        insert_if_absent(
            session,
            BlockedNumber,
            {"value_at_block": value_at_block, "limit_at_block": limit_at_block, **key.as_filter()},
        )
        blocked = self.find(session, key)
        if blocked is None:
            raise RuntimeError(f"Blocked number missing after insert: {key}")
        return blocked

    def get_by_id(self, session: Session, blocked_id: int) -> BlockedNumber | None:
        return session.get(BlockedNumber, blocked_id)

    def list_blocked(
        self,
        session: Session,
        modality: str | None = None,
        lottery: str | None = None,
    ) -> Sequence[BlockedNumber]:
        stmt = select(BlockedNumber)
        if modality:
            stmt = stmt.where(BlockedNumber.modality == modality)
        if lottery:
            stmt = stmt.where(BlockedNumber.lottery == lottery)
        stmt = stmt.order_by(BlockedNumber.blocked_at.desc(), BlockedNumber.id.desc())
        return list(session.scalars(stmt).all())

    def delete(self, session: Session, blocked: BlockedNumber) -> None:
        session.delete(blocked)
        session.flush()
