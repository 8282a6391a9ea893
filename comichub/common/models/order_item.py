from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class OrderItem(Base):
    """Price/title/image snapshot of one line, decoupled from the live product."""

    __tablename__ = "order_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # plain reference, no FK: catalog rows may change or disappear
    product_id = Column(Integer, nullable=True)
    title = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    image_url = Column(String(1024), nullable=True)
    is_custom = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")
