"""
公共测试夹具

每个测试使用独立的内存 SQLite 数据库，覆盖 get_db 依赖，
通过 httpx ASGITransport 直接调用应用（不触发 lifespan）
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fleet_erp.core.deps import get_db
from fleet_erp.db.base import Base
from fleet_erp.main import app
from fleet_erp.models import Branch, Company

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def company(session_factory) -> Company:
    async with session_factory() as session:
        company = Company(id=1, name="测试车队", cnpj="11.222.333/0001-44")
        session.add(company)
        await session.commit()
        return company


@pytest_asyncio.fixture
async def branch(session_factory, company) -> Branch:
    async with session_factory() as session:
        branch = Branch(company_id=company.id, name="总部", code="HQ")
        session.add(branch)
        await session.commit()
        return branch


@pytest_asyncio.fixture
async def other_branch(session_factory, company) -> Branch:
    async with session_factory() as session:
        branch = Branch(company_id=company.id, name="北区", code="NORTH")
        session.add(branch)
        await session.commit()
        return branch


@pytest_asyncio.fixture
async def client(session_factory, branch) -> AsyncGenerator[AsyncClient, None]:
    """已初始化公司与总部分支的 API 客户端"""

    async def get_db_override() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_db_override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def vehicle(client, branch) -> dict:
    """带两个更换项的车辆：机油 10000km，滤芯 20000km"""
    response = await client.post("/api/v1/vehicles/", json={
        "branch_id": branch.id,
        "brand": "Volvo",
        "model": "FH 540",
        "plates": [
            {"type": "PRIMEIRA_CARRETA", "plate": "car-0001"},
            {"type": "CAVALO", "plate": "abc 1234"},
        ],
        "replacement_items": [
            {"name": "机油", "replace_every_km": 10000},
            {"name": "滤芯", "replace_every_km": 20000},
        ],
    })
    assert response.status_code == 200, response.text
    return response.json()


@pytest_asyncio.fixture
async def employee_factory(client, branch):
    async def create(name: str, monthly_salary: float = 3000, branch_id: int = None) -> dict:
        response = await client.post("/api/v1/employees/", json={
            "name": name,
            "branch_id": branch_id or branch.id,
            "monthly_salary": monthly_salary,
        })
        assert response.status_code == 200, response.text
        return response.json()

    return create
