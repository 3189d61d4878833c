"""
数据库持久化层 - 使用SQLite存储排行榜
"""
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from app.core.settings import DEFAULT_DB_PATH
from app.logger import logger


class Database:
    """SQLite数据库管理类"""
    _init_lock = threading.Lock()
    _initialized_db_paths = set()
    # 每个数据库文件一把进程内写锁，所有 Database 实例共享
    _write_locks: dict[str, threading.Lock] = {}

    def __init__(self, db_path: str = None):
        if db_path is None:
            db_path = DEFAULT_DB_PATH

        self.db_path = str(db_path)

        os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)

        # 初始化数据库（同一路径仅执行一次）
        self._init_database_once()

    def _db_identity(self) -> str:
        return str(Path(self.db_path).expanduser().resolve())

    def _init_database_once(self):
        identity = self._db_identity()
        if identity in self._initialized_db_paths:
            return
        with self._init_lock:
            if identity in self._initialized_db_paths:
                return
            self._init_database()
            self._write_locks.setdefault(identity, threading.Lock())
            self._initialized_db_paths.add(identity)

    def _get_connection(self):
        """获取数据库连接"""
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA temp_store=MEMORY;")
        return conn

    def _init_database(self):
        """初始化数据库表结构"""
        conn = self._get_connection()
        try:
            # WAL 模式：读者只看到已提交快照，不会读到替换过程中的中间状态
            conn.execute("PRAGMA journal_mode=WAL;")
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS leaderboard (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_leaderboard_rank
                ON leaderboard(score DESC, created_at ASC)
            """)
            conn.commit()
        finally:
            conn.close()
        logger.info(f"数据库已初始化: {self.db_path}")

    @contextmanager
    def exclusive_transaction(self):
        """
        进程内写锁 + BEGIN IMMEDIATE 写事务。

        块内所有语句作为一个整体提交；任何异常都会回滚并继续抛出。
        锁冲突（database is locked）不重试，直接交给调用方。
        """
        write_lock = self._write_locks[self._db_identity()]
        with write_lock:
            conn = self._get_connection()
            conn.isolation_level = None
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                except BaseException:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
            finally:
                conn.close()
