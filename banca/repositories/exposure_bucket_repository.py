"""Row locks anchoring per-bucket serialization in the database."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from banca.buckets import BucketKey
from banca.db import insert_if_absent
from banca.models.exposure_bucket import ExposureBucket


class ExposureBucketRepository:
    def lock(self, session: Session, key: BucketKey) -> ExposureBucket:
        """Lock the bucket row for the rest of the transaction, creating it on first use.

        SQLite ignores ``FOR UPDATE``. There a no-op write opens the
        transaction and takes the database writer lock, which serializes
        every process sharing the file until commit. It must run before
        anything else reads in the transaction.
        """

        if session.get_bind().dialect.name == "sqlite":
            session.execute(
                update(ExposureBucket)
                .filter_by(**key.as_filter())
                .values(id=ExposureBucket.id)
                .execution_options(synchronize_session=False)
            )

        stmt = select(ExposureBucket).filter_by(**key.as_filter()).with_for_update()
        bucket = session.scalars(stmt).first()
        if bucket is not None:
            return bucket

        insert_if_absent(session, ExposureBucket, key.as_filter())
        bucket = session.scalars(stmt).first()
        if bucket is None:
            raise RuntimeError(f"Exposure bucket row missing after insert: {key}")
        return bucket

    def lock_all(self, session: Session, keys: list[BucketKey]) -> None:
        # Same order in every transaction so row locks cannot deadlock.
        for key in sorted(set(keys)):
            self.lock(session, key)
