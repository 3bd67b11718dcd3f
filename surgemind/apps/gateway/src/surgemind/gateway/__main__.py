"""Gateway 启动入口 -- python -m surgemind.gateway

SURGEMIND_HOST / SURGEMIND_PORT 控制监听地址（默认 127.0.0.1:8000）。
"""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "surgemind.gateway.main:app",
        host=os.environ.get("SURGEMIND_HOST", "127.0.0.1"),
        port=int(os.environ.get("SURGEMIND_PORT", "8000")),
        # 日志由 structlog 接管
        log_config=None,
    )


if __name__ == "__main__":
    main()
