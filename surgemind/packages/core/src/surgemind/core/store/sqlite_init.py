"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# caregivers 表 DDL（排班源写入，rowid 保持登记顺序）
_CAREGIVERS_DDL = """
CREATE TABLE IF NOT EXISTS caregivers (
    caregiver_id  TEXT PRIMARY KEY,
    display_name  TEXT NOT NULL DEFAULT '',
    role          TEXT NOT NULL DEFAULT 'Other',
    availability  TEXT NOT NULL DEFAULT 'Active',
    updated_at    TEXT NOT NULL
);
"""

# tasks 表 DDL（核心流水线只追加）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id      TEXT PRIMARY KEY,
    title        TEXT NOT NULL,
    description  TEXT NOT NULL,
    priority     TEXT NOT NULL,
    location     TEXT NOT NULL DEFAULT '',
    subject_id   TEXT,
    assignee_id  TEXT NOT NULL,
    status       TEXT NOT NULL DEFAULT 'Pending',
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    source_kind  TEXT NOT NULL,
    enriched     INTEGER NOT NULL DEFAULT 0
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    # 工作负载统计：按 assignee + status 聚合
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee_status ON tasks(assignee_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# failures 表 DDL
_FAILURES_DDL = """
CREATE TABLE IF NOT EXISTS failures (
    failure_id  TEXT PRIMARY KEY,
    reason      TEXT NOT NULL,
    ts          TEXT NOT NULL,
    context     TEXT NOT NULL DEFAULT '{}'
);
"""

_FAILURES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_failures_reason_ts ON failures(reason, ts);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_CAREGIVERS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_FAILURES_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _FAILURES_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
