"""车队/人事/财务管理系统后端"""
