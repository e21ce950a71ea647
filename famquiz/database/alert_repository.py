"""Repository for AlertHistory rows and the batch alerting scan."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import desc
from sqlalchemy.orm import Session, selectinload

from famquiz.models.alert import AlertHistory, AlertType
from famquiz.models.group import Group
from famquiz.models.quiz import Quiz
from famquiz.database.models import AlertHistoryDB, GroupDB, QuizDB, enum_to_value

logger = logging.getLogger(__name__)


class AlertRepository:
    """Repository for alert history and the data the batch job scans."""

    def __init__(self, db: Session):
        self.db = db

    def list_groups_with_latest_quiz(self) -> List[Tuple[Group, Optional[Quiz]]]:
        """Every group paired with its most recent quiz (None if it has none)."""
        result: List[Tuple[Group, Optional[Quiz]]] = []
        for group_db in self.db.query(GroupDB).order_by(GroupDB.created_at).all():
            latest_db = (
                self.db.query(QuizDB)
                .options(selectinload(QuizDB.options))
                .filter(QuizDB.group_id == group_db.id)
                .order_by(desc(QuizDB.created_at))
                .first()
            )
            result.append((group_db.to_pydantic(), latest_db.to_pydantic() if latest_db else None))
        return result

    def rollback(self) -> None:
        """Discard a failed transaction so later reads can run."""
        self.db.rollback()

    def get_latest(self, group_id: str, alert_type: AlertType) -> Optional[AlertHistory]:
        """Most recent alert of a type for a group."""
        alert_db = (
            self.db.query(AlertHistoryDB)
            .filter(
                AlertHistoryDB.group_id == group_id,
                AlertHistoryDB.type == enum_to_value(alert_type),
            )
            .order_by(desc(AlertHistoryDB.created_at))
            .first()
        )
        return alert_db.to_pydantic() if alert_db else None

    def create(
        self,
        group_id: str,
        alert_type: AlertType,
        triggered_by_user_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> AlertHistory:
        """Append an alert history row."""
        try:
            alert_db = AlertHistoryDB(
                group_id=group_id,
                type=enum_to_value(alert_type),
                triggered_by_user_id=triggered_by_user_id,
                created_at=created_at or datetime.utcnow(),
            )
            self.db.add(alert_db)
            self.db.commit()
            self.db.refresh(alert_db)
            logger.debug(f"Recorded {alert_db.type} alert for group {group_id}")
            return alert_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record alert for group {group_id}: {type(e).__name__}: {str(e)}")
            raise
