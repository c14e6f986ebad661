#!/usr/bin/env python3
"""
开发服务器启动脚本

使用方式:
    python scripts/dev_server.py

服务器通过stdio与MCP客户端通信，提示信息输出到stderr。
"""
import sys
from pathlib import Path

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.server.app import main

if __name__ == "__main__":
    print("=" * 60, file=sys.stderr)
    print("DeFi MCP Server - Development Mode", file=sys.stderr)
    print("=" * 60, file=sys.stderr)

    try:
        main()
    except KeyboardInterrupt:
        print("\n\nServer stopped by user", file=sys.stderr)
