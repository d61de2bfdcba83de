# 数据模型
# 公司 → 分支 → {车辆, 员工, 商品, 维修单, 工资, 假期, 费用, 应收应付}

from fleet_erp.models.company import Company, Branch
from fleet_erp.models.employee import Employee
from fleet_erp.models.unit import UnitOfMeasurement
from fleet_erp.models.product import Product
from fleet_erp.models.role import Role
from fleet_erp.models.vehicle import (
    Vehicle, VehiclePlate, VehicleReplacementItem, VehicleStatusHistory
)
from fleet_erp.models.vehicle_marking import VehicleMarking
from fleet_erp.models.maintenance import (
    MaintenanceLabel, MaintenanceLabelItem, MaintenanceOrder,
    MaintenanceWorker, MaintenanceServiceItem, MaintenanceMaterial, MaintenanceTimeline,
)
from fleet_erp.models.salary import Salary
from fleet_erp.models.vacation import Vacation
from fleet_erp.models.account import AccountPayable, AccountReceivable
from fleet_erp.models.expense import Expense
from fleet_erp.models.financial import (
    FinancialTransaction, BranchBalance, BalanceAdjustment
)
from fleet_erp.models.audit_log import AuditLog

__all__ = [
    "Company",
    "Branch",
    "Employee",
    "UnitOfMeasurement",
    "Product",
    "Role",
    "Vehicle",
    "VehiclePlate",
    "VehicleReplacementItem",
    "VehicleStatusHistory",
    "VehicleMarking",
    "MaintenanceLabel",
    "MaintenanceLabelItem",
    "MaintenanceOrder",
    "MaintenanceWorker",
    "MaintenanceServiceItem",
    "MaintenanceMaterial",
    "MaintenanceTimeline",
    "Salary",
    "Vacation",
    "AccountPayable",
    "AccountReceivable",
    "Expense",
    "FinancialTransaction",
    "BranchBalance",
    "BalanceAdjustment",
    "AuditLog",
]
