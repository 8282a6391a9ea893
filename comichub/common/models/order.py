from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from .base import Base, utcnow


class Order(Base):
    __tablename__ = "order"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    # wire value of OrderStatus; written only by OrderStatusMachine
    status = Column(String(32), nullable=False, default="Pending")
    # denormalized from the first custom item, display only
    custom_image_url = Column(String(1024), nullable=True)
    notes = Column(Text, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=utcnow, server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
