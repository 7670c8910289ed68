from sqlalchemy import select

from app.stockflow.db.models import StockMovement


class StockMovementRepository:
    def __init__(self, db):
        self.db = db

    def add(self, movement: StockMovement) -> StockMovement:
        self.db.add(movement)
        return movement

    def list_for_reference(self, reference_document_type: str, reference_document_id: str) -> list[StockMovement]:
        stmt = (
            select(StockMovement)
            .where(
                StockMovement.reference_document_type == reference_document_type,
                StockMovement.reference_document_id == reference_document_id,
            )
            .order_by(StockMovement.id.asc())
        )
        return self.db.execute(stmt).scalars().all()
