"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment for Settings; must run before the application is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test_secret_key_for_testing_only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import datetime
from decimal import Decimal
from itertools import count
from typing import Iterable, Optional, Tuple

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ecommerce_api.core.database import get_db
from ecommerce_api.core.security import SecurityUtils
from ecommerce_api.main import app
from ecommerce_api.models import (
    Affiliate,
    AdminRegion,
    Base,
    BusinessRule,
    Category,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Referral,
    Reward,
    ShippingAddress,
    User,
    UserRole,
)
from ecommerce_api.services.business_rules import infer_rule_type, serialize_rule_value

TEST_PASSWORD = "secreto123"


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions on a file database, each with its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


class Factory:
    """Creates persisted domain objects for tests."""

    password = TEST_PASSWORD

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = count(1)

    def _next(self) -> int:
        return next(self._seq)

    async def user(
        self,
        role: UserRole = UserRole.VISITOR,
        is_active: bool = True,
        max_referrals: Optional[int] = None,
        password: str = TEST_PASSWORD,
    ) -> User:
        n = self._next()
        user = User(
            dni=f"{40000000 + n}",
            full_name=f"Usuario {n}",
            email=f"user{n}@example.com",
            password_hash=SecurityUtils.hash_password(password),
            role=role,
            is_active=is_active,
            max_referrals=max_referrals,
        )
        self.session.add(user)
        await self.session.commit()
        return user

    async def affiliate(
        self,
        sponsor: Optional[User] = None,
        points: int = 0,
        region: str = "Lima",
        is_active: bool = True,
        max_referrals: Optional[int] = 10,
    ) -> User:
        user = await self.user(UserRole.AFFILIATE, is_active=is_active, max_referrals=max_referrals)
        self.session.add(Affiliate(
            id=user.id,
            sponsor_id=sponsor.id if sponsor else None,
            phone="999888777",
            region=region,
            city=region,
            points=points,
        ))
        if sponsor is not None:
            self.session.add(Referral(referrer_id=sponsor.id, referred_id=user.id))
        await self.session.commit()
        return user

    async def admin(self, general: bool = False, regions: Iterable[str] = ()) -> User:
        user = await self.user(UserRole.ADMIN_GENERAL if general else UserRole.ADMIN)
        for region in regions:
            self.session.add(AdminRegion(admin_id=user.id, region=region))
        await self.session.commit()
        return user

    async def category(self) -> Category:
        n = self._next()
        category = Category(name=f"Categoría {n}", slug=f"categoria-{n}")
        self.session.add(category)
        await self.session.commit()
        return category

    async def product(
        self,
        public_price: str = "100.00",
        affiliate_price: str = "80.00",
        stock: int = 10,
        min_stock: int = 5,
        category: Optional[Category] = None,
    ) -> Product:
        category = category or await self.category()
        n = self._next()
        product = Product(
            name=f"Producto {n}",
            sku=f"SKU-{n:04d}",
            category_id=category.id,
            public_price=Decimal(public_price),
            affiliate_price=Decimal(affiliate_price),
            stock=stock,
            min_stock=min_stock,
        )
        self.session.add(product)
        await self.session.commit()
        return product

    async def address(self, user: User, region: str = "Lima", is_default: bool = True) -> ShippingAddress:
        address = ShippingAddress(
            user_id=user.id,
            name=user.full_name,
            phone="999888777",
            region=region,
            city=region,
            address="Av. Principal 123",
            is_default=is_default,
        )
        self.session.add(address)
        await self.session.commit()
        return address

    async def order(
        self,
        user: User,
        lines: Iterable[Tuple[Product, int, str]],
        status: OrderStatus = OrderStatus.PAID,
        created_at: Optional[datetime] = None,
        address: Optional[ShippingAddress] = None,
    ) -> Order:
        """Order with (product, quantity, unit_price) lines."""
        items = [
            OrderItem(product_id=product.id, quantity=quantity, unit_price=Decimal(unit_price))
            for product, quantity, unit_price in lines
        ]
        total = sum((item.unit_price * item.quantity for item in items), Decimal("0"))
        order = Order(
            user_id=user.id,
            status=status,
            total_amount=total,
            shipping_cost=Decimal("0"),
            shipping_address_id=address.id if address else None,
            items=items,
        )
        if created_at is not None:
            order.created_at = created_at
        self.session.add(order)
        await self.session.commit()
        return order

    async def reward(self, points_required: int = 100, stock: int = 5, is_active: bool = True) -> Reward:
        n = self._next()
        reward = Reward(
            name=f"Premio {n}",
            points_required=points_required,
            stock=stock,
            is_active=is_active,
        )
        self.session.add(reward)
        await self.session.commit()
        return reward

    async def rule(self, key: str, value) -> BusinessRule:
        rule = BusinessRule(key=key, value=serialize_rule_value(value), type=infer_rule_type(value))
        self.session.add(rule)
        await self.session.commit()
        return rule


@pytest.fixture
def factory(db_session):
    return Factory(db_session)


@pytest.fixture
def factory_for():
    """Factory bound to a session other than db_session."""
    return Factory


def auth_headers(user: User) -> dict:
    """Bearer header for a user."""
    token = SecurityUtils.create_access_token(SecurityUtils.token_payload(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return auth_headers
