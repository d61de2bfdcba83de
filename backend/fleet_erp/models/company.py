"""
公司与分支模型

结构说明：
- 公司（Company，单租户，默认公司由配置指定）
  └── 分支（Branch）
      车辆、员工、商品、工资、假期、应收应付都归属于某个分支
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from fleet_erp.db.base import Base


class Company(Base):
    """公司"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, comment="公司名称")
    cnpj = Column(String(20), nullable=False, index=True, comment="企业税号")
    trade_name = Column(String(200), comment="商号")
    email = Column(String(100))
    phone = Column(String(30))
    address = Column(String(300))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, comment="软删除时间")

    # 关系
    branches = relationship("Branch", back_populates="company", lazy="selectin")

    def __repr__(self):
        return f"<Company {self.cnpj}: {self.name}>"


class Branch(Base):
    """分支 - 属于某个公司"""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False, comment="分支名称")
    code = Column(String(50), nullable=True, index=True, comment="分支编码（公司内唯一）")
    email = Column(String(100))
    phone = Column(String(30))
    address = Column(String(300))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    # 关系
    company = relationship("Company", back_populates="branches", lazy="joined")

    def __repr__(self):
        return f"<Branch {self.code}: {self.name}>"
