"""
SQLAlchemy Database Models

Schema for the QR menu platform:
- Restaurants with public slug and guest-facing details
- Per-restaurant categories and menu items
- Admin users with roles
- Guest feedback ratings

The models own table creation only. Route handlers query through the
dialect shim with plain SQL, so column names here are the contract.

Author: Your Name
Version: 1.0.0
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
    true,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.database import Base
import enum


class UserRole(str, enum.Enum):
    """Admin panel roles, highest first."""
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


class Restaurant(Base):
    """
    A restaurant with a public menu.

    The ``slug`` is the stable public identifier used in menu links and
    QR codes.
    """
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    logo_url = Column(String(500), nullable=True)
    image_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    # =========================================================================
    # GUEST INFORMATION
    # =========================================================================
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    wifi_name = Column(String(100), nullable=True)
    wifi_password = Column(String(100), nullable=True)
    custom_sections = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.slug}>"


class Category(Base):
    """Menu section of one restaurant. Names are unique per restaurant."""
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_categories_restaurant_name"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    color = Column(String(7), server_default=text("'#667eea'"))
    sort_order = Column(Integer, server_default=text("0"))

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Category #{self.id} - {self.name}>"


class MenuItem(Base):
    """
    A dish on a restaurant's menu.

    ``category`` holds the category name (what the public menu groups
    by); ``category_id`` links to ``categories`` when known and is set to
    NULL if the category row goes away.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    category = Column(String(100), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=True)
    availability_time = Column(String(50), nullable=True)
    is_available = Column(Boolean, server_default=true())
    sort_order = Column(Integer, server_default=text("0"))
    item_code = Column(Integer, server_default=text("0"))
    is_veg = Column(Boolean, nullable=True)  # NULL reads as veg

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name}>"


class User(Base):
    """
    Admin panel account.

    Identity is asserted upstream; this table only maps a username to a
    role and an active flag.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    role = Column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda roles: [r.value for r in roles],
        ),
        server_default=UserRole.ADMIN.value,
        nullable=False,
    )
    email = Column(String(100), nullable=True)
    full_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, server_default=true())

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User #{self.id} - {self.username} ({self.role})>"


class Feedback(Base):
    """Guest rating of a restaurant, four dimensions scored 1 to 5."""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(
        Integer,
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phone_number = Column(String(15), nullable=True)

    # =========================================================================
    # RATINGS
    # =========================================================================
    food_quality = Column(Integer, nullable=False)
    service = Column(Integer, nullable=False)
    ambiance = Column(Integer, nullable=False)
    pricing = Column(Integer, nullable=False)
    comments = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Feedback #{self.id} - restaurant {self.restaurant_id}>"
