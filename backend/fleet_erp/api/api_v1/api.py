"""V1 API 路由聚合"""
from fastapi import APIRouter

from fleet_erp.api.api_v1.endpoints import (
    companies, branches, employees, units, products, roles,
    vehicles, vehicle_markings, maintenance_orders,
    salaries, vacations, expenses,
    accounts_payable, accounts_receivable, financial_transactions, wallet,
    audit_logs, system,
)
from fleet_erp.api.api_v1.endpoints.maintenance_labels import router as maintenance_labels_router

api_router = APIRouter()

# 组织与基础数据
api_router.include_router(companies.router, prefix="/companies", tags=["公司管理"])
api_router.include_router(branches.router, prefix="/branches", tags=["分支管理"])
api_router.include_router(roles.router, prefix="/roles", tags=["角色权限"])
api_router.include_router(units.router, prefix="/units", tags=["计量单位"])
api_router.include_router(products.router, prefix="/products", tags=["产品管理"])

# 车队
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["车辆管理"])
api_router.include_router(vehicle_markings.router, prefix="/vehicle-markings", tags=["里程标记"])
api_router.include_router(maintenance_labels_router, prefix="/maintenance-labels", tags=["保养标签"])
api_router.include_router(maintenance_orders.router, prefix="/maintenance-orders", tags=["维修单"])

# 人事
api_router.include_router(employees.router, prefix="/employees", tags=["员工管理"])
api_router.include_router(salaries.router, prefix="/salaries", tags=["工资管理"])
api_router.include_router(vacations.router, prefix="/vacations", tags=["假期管理"])

# 财务
api_router.include_router(accounts_payable.router, prefix="/accounts-payable", tags=["应付账款"])
api_router.include_router(accounts_receivable.router, prefix="/accounts-receivable", tags=["应收账款"])
api_router.include_router(financial_transactions.router, prefix="/financial-transactions", tags=["财务流水"])
api_router.include_router(wallet.router, prefix="/wallet", tags=["分支钱包"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["费用管理"])

# 系统
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["操作日志"])
api_router.include_router(system.router, prefix="/system", tags=["系统管理"])
