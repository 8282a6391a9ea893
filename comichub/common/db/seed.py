"""Demo users and catalog rows for local development."""

from decimal import Decimal

from ..models.product import Product
from ..models.user import User
from ..services.logging import log_event
from .session import SessionFactory


DEMO_USERS = [
    {"name": "Admin User", "email": "admin@comichub.com", "is_admin": True},
    {"name": "Test User", "email": "test@example.com", "is_admin": False},
]

DEMO_PRODUCTS = [
    {
        "title": "Cosmic Crusaders #1",
        "price": Decimal("4.99"),
        "image_url": "https://picsum.photos/seed/cosmic1/400/600",
        "description": "The start of a new galactic saga! Join the Crusaders as they defend the galaxy from the Void Lord.",
    },
    {
        "title": "Midnight Detective: Case Files",
        "price": Decimal("5.50"),
        "image_url": "https://picsum.photos/seed/detective2/400/600",
        "description": "A gritty noir tale set in the rain-soaked streets of Neo-Veridia.",
    },
    {
        "title": "Chronicles of Atheria: The Lost Kingdom",
        "price": Decimal("6.99"),
        "image_url": "https://picsum.photos/seed/atheria3/400/600",
        "description": "An epic fantasy adventure to uncover the secrets of a long-lost civilization.",
    },
    {
        "title": "Quantum Leapfrog",
        "price": Decimal("3.99"),
        "image_url": "https://picsum.photos/seed/quantum4/400/600",
        "description": "A quirky, mind-bending journey through time and space with an unlikely hero.",
    },
]


def seed_demo_data(session_factory: SessionFactory) -> None:
    """Insert demo rows once; existing emails/titles are left alone."""
    with session_factory() as session:
        users = 0
        for data in DEMO_USERS:
            if session.query(User).filter(User.email == data["email"]).first() is None:
                session.add(User(**data))
                users += 1
        products = 0
        for data in DEMO_PRODUCTS:
            if session.query(Product).filter(Product.title == data["title"]).first() is None:
                session.add(Product(type="sample", **data))
                products += 1
        log_event("info", "db.seeded", users=users, products=products)
