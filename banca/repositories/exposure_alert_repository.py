"""Repository layer for ExposureAlert persistence."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from banca.buckets import BucketKey
from banca.db import insert_if_absent
from banca.models.exposure_alert import ExposureAlert


class ExposureAlertRepository:
    def find_open(self, session: Session, key: BucketKey) -> ExposureAlert | None:
        stmt = select(ExposureAlert).where(
            ExposureAlert.modality == key.modality,
            ExposureAlert.prize_tier == key.prize_tier,
            ExposureAlert.lottery == key.lottery,
            ExposureAlert.draw_time == key.draw_time,
            ExposureAlert.resolved.is_(False),
        )
        return session.scalars(stmt).first()

    def record(
        self,
        session: Session,
        key: BucketKey,
        limit: Decimal,
        total_staked: Decimal,
        excess: Decimal,
    ) -> ExposureAlert:
        """Open an alert for the bucket's scope, or refresh the unresolved one."""

        alert = self.find_open(session, key)
        if alert is None:
            insert_if_absent(
                session,
                ExposureAlert,
                {
                    "modality": key.modality,
                    "prize_tier": key.prize_tier,
                    "lottery": key.lottery,
                    "draw_time": key.draw_time,
                    "limit": limit,
                    "total_staked": total_staked,
                    "excess": excess,
                    "resolved": False,
                },
            )
            alert = self.find_open(session, key)
            if alert is None:
                raise RuntimeError(f"Exposure alert missing after insert: {key}")

        alert.limit = limit
        alert.total_staked = total_staked
        alert.excess = excess
        session.flush()
        return alert

    def list_alerts(self, session: Session, resolved: bool = False) -> Sequence[ExposureAlert]:
        stmt = (
            select(ExposureAlert)
            .where(ExposureAlert.resolved.is_(resolved))
            .order_by(ExposureAlert.excess.desc(), ExposureAlert.created_at.desc(), ExposureAlert.id.desc())
        )
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, alert_id: int) -> ExposureAlert | None:
        return session.get(ExposureAlert, alert_id)

    def resolve(self, session: Session, alert: ExposureAlert, resolved_by: str | None = None) -> ExposureAlert:
        alert.resolved = True
        alert.resolved_at = dt.datetime.now(dt.timezone.utc)
        alert.resolved_by = resolved_by
        session.flush()
        return alert
