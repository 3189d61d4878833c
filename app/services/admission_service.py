import math

from app.core.errors import BelowCutoff, InvalidScore, NameRequired
from app.core.settings import NAME_MAX_LENGTH
from app.logger import logger
from app.repositories import LeaderboardRepository

SQLITE_MAX_INTEGER = 2 ** 63 - 1


def normalize_name(raw) -> str:
    name = (raw if isinstance(raw, str) else "").strip()[:NAME_MAX_LENGTH]
    if not name:
        raise NameRequired()
    return name


def normalize_score(raw) -> int:
    # bool 是 int 的子类，但不算分数
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidScore(raw)
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise InvalidScore(raw)
        raw_score = math.floor(raw)
    else:
        raw_score = raw
    # 超出 SQLite INTEGER 范围的分数同样视为非法输入
    if raw_score < 0 or raw_score > SQLITE_MAX_INTEGER:
        raise InvalidScore(raw)
    return int(raw_score)


class AdmissionService:
    """有界 Top-K 准入：满员时只有严格高于门槛的分数才能挤掉淘汰最小项"""

    def __init__(self, db, max_slots: int = 10):
        self.repo = LeaderboardRepository(db)
        self.max_slots = max(1, int(max_slots))

    def submit(self, name, score) -> dict:
        name = normalize_name(name)
        score = normalize_score(score)

        with self.repo.exclusive_admission() as tx:
            cnt = tx.count()
            if cnt >= self.max_slots:
                cutoff = tx.score_at_rank(self.max_slots)
                if cutoff is not None and score <= cutoff:
                    raise BelowCutoff(score, cutoff)
                tx.delete_eviction_minimum()
            entry = tx.insert(name, score)

        logger.info(
            f"排行榜写入 | id={entry['id']} name={entry['name']} score={entry['score']} "
            f"evicted={cnt >= self.max_slots}"
        )
        return entry
