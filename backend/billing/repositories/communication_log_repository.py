from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from billing.models.communication_log import (
    CommunicationLog,
    CommunicationStatus,
    CommunicationType,
)


class CommunicationLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_customer_id(
        self, customer_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[CommunicationLog]:
        return (
            self.db.query(CommunicationLog)
            .filter(CommunicationLog.customer_id == customer_id)
            .order_by(CommunicationLog.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create(
        self,
        customer_id: UUID,
        type: CommunicationType,
        payload: dict[str, Any],
    ) -> CommunicationLog:
        log = CommunicationLog(
            customer_id=customer_id,
            type=type.value,
            status=CommunicationStatus.QUEUED.value,
            payload=payload,
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        return log

    def mark_sent(self, log: CommunicationLog) -> CommunicationLog:
        log.status = CommunicationStatus.SENT.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(log)
        return log
