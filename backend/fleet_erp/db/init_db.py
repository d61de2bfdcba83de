import asyncio

from fleet_erp.db.session import engine
from fleet_erp.db.base import Base

# 导入全部模型，确保表能被创建
import fleet_erp.models  # noqa: F401


async def ensure_tables_exist() -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(ensure_tables_exist())
