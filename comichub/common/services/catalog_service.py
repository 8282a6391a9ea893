from typing import Dict, Optional, Tuple

from sqlalchemy import or_

from ..db.session import SessionFactory
from ..models.product import Product
from ..utils.dto import to_product_dto
from ..utils.validators import MAX_ID
from .errors import NotFoundError


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# keeps the OFFSET inside an SQL integer
MAX_PAGE = MAX_ID // MAX_PAGE_SIZE


def page_window(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Clamp a requested page to (page >= 1, 1 <= size <= MAX_PAGE_SIZE)."""
    page = min(max(page or 1, 1), MAX_PAGE)
    size = page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE
    return page, min(size, MAX_PAGE_SIZE)


class CatalogService:
    """Read-only catalog queries.

    Orders never read prices from here after checkout: each order item keeps
    its own price snapshot.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    def list_products(
        self,
        *,
        query: Optional[str] = None,
        product_type: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Dict:
        """Return dict: { items: [ProductDTO], page, page_size, total }"""
        p, ps = page_window(page, page_size)
        with self._session_factory() as session:
            q = session.query(Product)
            if query:
                like = f"%{query}%"
                q = q.filter(or_(Product.title.ilike(like), Product.description.ilike(like)))
            if product_type:
                q = q.filter(Product.type == product_type)
            total = q.count()
            rows = q.order_by(Product.id.asc()).offset((p - 1) * ps).limit(ps).all()
            return {"items": [to_product_dto(r) for r in rows], "page": p, "page_size": ps, "total": total}

    def get_product(self, product_id: int) -> Dict:
        with self._session_factory() as session:
            row = session.get(Product, product_id)
            if row is None:
                raise NotFoundError(f"Product {product_id} not found")
            return to_product_dto(row)
