import uvicorn
import os
import sys

# 开发环境下从 backend 目录启动
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

if __name__ == "__main__":
    uvicorn.run(
        "fleet_erp.main:app",
        host="127.0.0.1",  # 只监听本地
        port=8000,
        reload=True,
        log_level="info"
    )
