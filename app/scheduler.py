"""
定时任务调度器 - 清理长期未兑换的会话令牌
"""
from apscheduler.schedulers.background import BackgroundScheduler

from app.core.metrics import log_job_metric, measure_ms
from app.core.settings import LeaderboardConfig
from app.core.token_guard import TokenGuard
from app.logger import logger

SWEEP_JOB_ID = "token_sweep"


class TokenReaper:
    """按固定间隔丢弃超龄未兑换令牌；不影响 5 秒门槛与防重放判定"""

    def __init__(self, token_guard: TokenGuard, config: LeaderboardConfig):
        self.token_guard = token_guard
        self.max_age_ms = config.token_max_age_ms
        self.interval_minutes = config.token_sweep_interval_minutes
        self.scheduler = BackgroundScheduler()

    def sweep(self) -> int:
        status = "success"
        removed = 0
        with measure_ms("job.token_sweep") as snapshot:
            try:
                removed = self.token_guard.sweep_expired(self.max_age_ms)
            except Exception:
                status = "failed"
                logger.exception("令牌清理任务失败")
                raise
            finally:
                log_job_metric(job_name="token_sweep", status=status, snapshot=snapshot, removed=removed)
        if removed:
            logger.info(
                f"已清理超龄令牌 {removed} 个，剩余 {self.token_guard.outstanding_count()} 个"
            )
        return removed

    def start(self):
        """启动定时任务"""
        self.scheduler.add_job(
            func=self.sweep,
            trigger="interval",
            minutes=self.interval_minutes,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"令牌清理任务已启动: 每 {self.interval_minutes} 分钟, 最大存活 {self.max_age_ms // 60000} 分钟"
        )

    def stop(self):
        """停止定时任务"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("令牌清理任务已停止")

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def get_next_run_time(self):
        job = self.scheduler.get_job(SWEEP_JOB_ID)
        return job.next_run_time if job else None
