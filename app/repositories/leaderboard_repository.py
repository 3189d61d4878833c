import sqlite3
from contextlib import contextmanager

from app.core.errors import StorageFailure
from app.logger import logger

# 展示排序：分高在前，同分先到者在前
RANK_ORDER = "score DESC, created_at ASC, id ASC"
# 淘汰排序：分低先淘汰，同分后到者先淘汰
EVICTION_ORDER = "score ASC, created_at DESC, id DESC"

# 毫秒精度时间戳；与表内最大值取 MAX，保证按插入顺序单调不减
_CREATED_AT_EXPR = (
    "MAX(strftime('%Y-%m-%d %H:%M:%f', 'now'), "
    "COALESCE((SELECT MAX(created_at) FROM leaderboard), ''))"
)


class LeaderboardTransaction:
    """排他写事务内可用的存储原语，只能通过 LeaderboardRepository.exclusive_admission 获得"""

    def __init__(self, conn):
        self.conn = conn

    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) AS cnt FROM leaderboard").fetchone()
        return int(row["cnt"])

    def score_at_rank(self, k: int):
        """第 k 名的分数；不足 k 行时返回 None"""
        row = self.conn.execute(
            f"SELECT score FROM leaderboard ORDER BY {RANK_ORDER} LIMIT 1 OFFSET ?",
            (max(int(k), 1) - 1,),
        ).fetchone()
        return int(row["score"]) if row else None

    def insert(self, name: str, score: int) -> dict:
        cursor = self.conn.execute(
            f"INSERT INTO leaderboard (name, score, created_at) VALUES (?, ?, {_CREATED_AT_EXPR})",
            (name, int(score)),
        )
        row = self.conn.execute(
            "SELECT id, name, score, created_at FROM leaderboard WHERE id = ?",
            (cursor.lastrowid,),
        ).fetchone()
        return dict(row)

    def delete_eviction_minimum(self) -> None:
        self.conn.execute(
            f"""
            DELETE FROM leaderboard
            WHERE id = (SELECT id FROM leaderboard ORDER BY {EVICTION_ORDER} LIMIT 1)
            """
        )


class LeaderboardRepository:
    def __init__(self, db):
        self.db = db

    @contextmanager
    def exclusive_admission(self):
        """
        排他准入作用域：计数、取门槛、淘汰、插入必须全部在此块内完成。

        sqlite 错误统一转成 StorageFailure，不做自动重试。
        """
        try:
            with self.db.exclusive_transaction() as conn:
                yield LeaderboardTransaction(conn)
        except sqlite3.Error as exc:
            raise StorageFailure("admission", str(exc)) from exc

    def top_n(self, limit: int) -> list:
        try:
            conn = self.db._get_connection()
            try:
                rows = conn.execute(
                    f"SELECT id, name, score, created_at FROM leaderboard ORDER BY {RANK_ORDER} LIMIT ?",
                    (int(limit),),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageFailure("top_n", str(exc)) from exc
        return [dict(row) for row in rows]

    def count(self) -> int:
        try:
            conn = self.db._get_connection()
            try:
                row = conn.execute("SELECT COUNT(*) AS cnt FROM leaderboard").fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageFailure("count", str(exc)) from exc
        return int(row["cnt"])

    def trim_to_capacity(self, max_slots: int) -> int:
        """容量调小后清理多余记录（按淘汰顺序），返回删除行数"""
        removed = 0
        with self.exclusive_admission() as tx:
            excess = tx.count() - int(max_slots)
            while excess > 0:
                tx.delete_eviction_minimum()
                excess -= 1
                removed += 1
        if removed:
            logger.warning(f"排行榜超出容量 {max_slots}，已按淘汰顺序清理 {removed} 条")
        return removed
