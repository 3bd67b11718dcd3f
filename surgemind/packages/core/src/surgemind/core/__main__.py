"""CLI 入口模块 -- python -m surgemind.core <command>

支持的命令：
  failures [reason]       列出已上报的故障记录
  recreate <failure_id>   从 SinkUnavailable 故障记录重新写入任务
"""

import asyncio
import json
import sys

from .config import get_db_path
from .models import FailureReason, Task


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m surgemind.core <command>")
        print("命令:")
        print("  failures [reason]       列出已上报的故障记录")
        print("  recreate <failure_id>   从 SinkUnavailable 故障记录重新写入任务")
        sys.exit(1)

    command = sys.argv[1]

    if command == "failures":
        reason = sys.argv[2] if len(sys.argv) > 2 else None
        asyncio.run(list_failures(reason))
    elif command == "recreate" and len(sys.argv) > 2:
        ok = asyncio.run(recreate_task(sys.argv[2]))
        sys.exit(0 if ok else 1)
    else:
        print(f"未知命令: {' '.join(sys.argv[1:])}")
        print("可用命令: failures, recreate <failure_id>")
        sys.exit(1)


async def list_failures(reason: str | None = None) -> None:
    """打印故障记录"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        records = await store_group.failure_store.list_failures(reason)
        for record in records:
            print(
                json.dumps(
                    record.model_dump(mode="json"),
                    ensure_ascii=False,
                )
            )
        print(f"共 {len(records)} 条故障记录")
    finally:
        await store_group.conn.close()


async def recreate_task(failure_id: str) -> bool:
    """将 SinkUnavailable 记录中的任务重新写入 tasks 表

    Returns:
        True 如果写入成功
    """
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        record = await store_group.failure_store.get_failure(failure_id)
        if record is None:
            print(f"故障记录不存在: {failure_id}")
            return False
        if record.reason != FailureReason.SINK_UNAVAILABLE or "task" not in record.context:
            print(f"故障记录 {failure_id} 不含可重建的任务（reason={record.reason}）")
            return False

        task = Task.model_validate(record.context["task"])
        if await store_group.task_store.get_task(task.task_id) is not None:
            print(f"任务已存在: {task.task_id}")
            return True
        await store_group.task_store.append(task)
        print(f"已重建任务 {task.task_id} -> {task.assignee_id}")
        return True
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
