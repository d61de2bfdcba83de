"""通用分页字段"""
import math
from pydantic import BaseModel


class PageMeta(BaseModel):
    """分页信息"""
    total: int
    page: int = 1
    limit: int = 15
    total_pages: int = 1


def count_pages(total: int, limit: int) -> int:
    return max(1, math.ceil(total / limit)) if limit else 1


class MessageResponse(BaseModel):
    message: str
