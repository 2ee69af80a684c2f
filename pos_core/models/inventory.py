from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from pos_core.database import Base


class Inventory(Base):
    """Stock level of one product. Created and removed together with it."""
    __tablename__ = "inventories"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventories_quantity_non_negative"),
        Index(
            "uq_inventories_product_id_live",
            product_id,
            unique=True,
            postgresql_where=deleted_at.is_(None),
            sqlite_where=deleted_at.is_(None),
        ),
    )
