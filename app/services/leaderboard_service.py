import asyncio

from app.core.errors import StorageFailure, TokenError
from app.logger import logger
from app.repositories import LeaderboardRepository
from app.services.admission_service import AdmissionService, normalize_name, normalize_score


class LeaderboardService:
    async def get_top(self, *, db, limit: int):
        repo = LeaderboardRepository(db)
        try:
            return await asyncio.to_thread(repo.top_n, limit)
        except StorageFailure:
            logger.error("读取排行榜失败", exc_info=True)
            raise

    def issue_token(self, *, token_guard) -> dict:
        return {"token": token_guard.issue()}

    async def submit_score(self, *, db, token_guard, max_slots: int, name, score, token):
        """
        提交流程：输入校验 -> 令牌核销 -> 排他准入。

        输入不合法时不消耗令牌；令牌一旦核销，无论是否上榜都不可再用。
        """
        name = normalize_name(name)
        score = normalize_score(score)

        try:
            token_guard.validate(token)
        except TokenError as exc:
            logger.warning(f"会话令牌校验失败 | kind={exc.kind} reason={exc}")
            raise

        service = AdmissionService(db, max_slots=max_slots)
        try:
            return await asyncio.to_thread(service.submit, name, score)
        except StorageFailure:
            logger.error(f"排行榜写入失败 | name={name} score={score}", exc_info=True)
            raise
