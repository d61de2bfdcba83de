"""
权限目录
按模块分组的权限代码，角色只能引用这里登记过的代码
"""

from typing import Dict, List

PERMISSIONS: Dict[str, List[Dict[str, str]]] = {
    "vehicles": [
        {"code": "vehicles.view", "description": "查看车辆"},
        {"code": "vehicles.create", "description": "新建车辆"},
        {"code": "vehicles.update", "description": "编辑车辆"},
        {"code": "vehicles.delete", "description": "删除车辆"},
        {"code": "vehicles.update-status", "description": "变更车辆状态"},
        {"code": "vehicles.update-km", "description": "更新里程"},
    ],
    "vehicle-markings": [
        {"code": "vehicle-markings.view", "description": "查看到站登记"},
        {"code": "vehicle-markings.create", "description": "新建到站登记"},
        {"code": "vehicle-markings.delete", "description": "删除到站登记"},
    ],
    "maintenance": [
        {"code": "maintenance.view", "description": "查看维修单"},
        {"code": "maintenance.create", "description": "新建维修单"},
        {"code": "maintenance.update", "description": "编辑维修单"},
        {"code": "maintenance.delete", "description": "删除维修单"},
        {"code": "maintenance.complete", "description": "完成维修单"},
        {"code": "maintenance.cancel", "description": "取消维修单"},
    ],
    "maintenance-labels": [
        {"code": "maintenance-labels.view", "description": "查看保养标签"},
        {"code": "maintenance-labels.create", "description": "新建保养标签"},
        {"code": "maintenance-labels.delete", "description": "删除保养标签"},
        {"code": "maintenance-labels.register-change", "description": "登记路边更换"},
    ],
    "employees": [
        {"code": "employees.view", "description": "查看员工"},
        {"code": "employees.create", "description": "新建员工"},
        {"code": "employees.update", "description": "编辑员工"},
        {"code": "employees.delete", "description": "删除员工"},
    ],
    "vacations": [
        {"code": "vacations.view", "description": "查看假期"},
        {"code": "vacations.create", "description": "新建假期"},
        {"code": "vacations.update", "description": "编辑假期"},
        {"code": "vacations.delete", "description": "删除假期"},
    ],
    "payroll": [
        {"code": "payroll.view", "description": "查看工资"},
        {"code": "payroll.process", "description": "处理工资"},
    ],
    "expenses": [
        {"code": "expenses.view", "description": "查看费用"},
        {"code": "expenses.create", "description": "新建费用"},
        {"code": "expenses.update", "description": "编辑费用"},
        {"code": "expenses.delete", "description": "删除费用"},
    ],
    "products": [
        {"code": "products.view", "description": "查看商品"},
        {"code": "products.create", "description": "新建商品"},
        {"code": "products.update", "description": "编辑商品"},
        {"code": "products.delete", "description": "删除商品"},
    ],
    "accounts-payable": [
        {"code": "accounts-payable.view", "description": "查看应付账款"},
        {"code": "accounts-payable.create", "description": "新建应付账款"},
        {"code": "accounts-payable.update", "description": "编辑应付账款"},
        {"code": "accounts-payable.delete", "description": "删除应付账款"},
        {"code": "accounts-payable.pay", "description": "支付应付账款"},
        {"code": "accounts-payable.view-summary", "description": "查看应付汇总"},
    ],
    "accounts-receivable": [
        {"code": "accounts-receivable.view", "description": "查看应收账款"},
        {"code": "accounts-receivable.create", "description": "新建应收账款"},
        {"code": "accounts-receivable.update", "description": "编辑应收账款"},
        {"code": "accounts-receivable.delete", "description": "删除应收账款"},
        {"code": "accounts-receivable.receive", "description": "收取应收账款"},
    ],
    "wallet": [
        {"code": "wallet.view", "description": "查看余额"},
        {"code": "wallet.adjust", "description": "调整余额"},
        {"code": "wallet.view-history", "description": "查看资金流水"},
    ],
    "branches": [
        {"code": "branches.view", "description": "查看分支"},
        {"code": "branches.create", "description": "新建分支"},
        {"code": "branches.update", "description": "编辑分支"},
        {"code": "branches.delete", "description": "删除分支"},
    ],
    "companies": [
        {"code": "companies.view", "description": "查看公司"},
        {"code": "companies.manage", "description": "管理公司"},
    ],
    "roles": [
        {"code": "roles.view", "description": "查看角色"},
        {"code": "roles.create", "description": "新建角色"},
        {"code": "roles.update", "description": "编辑角色"},
        {"code": "roles.delete", "description": "删除角色"},
    ],
    "units": [
        {"code": "units.view", "description": "查看计量单位"},
        {"code": "units.create", "description": "新建计量单位"},
        {"code": "units.update", "description": "编辑计量单位"},
        {"code": "units.delete", "description": "删除计量单位"},
    ],
    "audit": [
        {"code": "audit.view", "description": "查看操作日志"},
    ],
}

ALL_PERMISSION_CODES = frozenset(
    item["code"] for items in PERMISSIONS.values() for item in items
)


def find_unknown_permissions(codes: List[str]) -> List[str]:
    """返回不在权限目录中的代码（保持原顺序，去重）"""
    unknown: List[str] = []
    for code in codes:
        if code not in ALL_PERMISSION_CODES and code not in unknown:
            unknown.append(code)
    return unknown
