from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.leaderboard_api import router as leaderboard_api_router
from app.api.session_api import router as session_api_router
from app.api.system_api import router as system_api_router
from app.core.deps import get_token_guard
from app.core.errors import StorageFailure
from app.core.metrics import log_api_metric, measure_ms
from app.core.scheduler_runtime import resolve_worker_count, should_start_token_reaper
from app.core.settings import load_config
from app.database import Database
from app.logger import logger
from app.repositories import LeaderboardRepository
from app.scheduler import TokenReaper

# Load environment variables
load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动时准备数据库与令牌清理任务，关闭时停止"""
    config = load_config()

    repo = LeaderboardRepository(Database(config.db_path))
    try:
        repo.trim_to_capacity(config.max_slots)
    except StorageFailure:
        logger.error("启动时容量检查失败", exc_info=True)

    if resolve_worker_count() > 1:
        logger.warning(
            "检测到多worker部署(WEB_CONCURRENCY/UVICORN_WORKERS > 1)，"
            "会话令牌仅在签发进程内有效，跨进程提交会被拒绝。"
        )

    app.state.token_reaper = None
    should_start, reason = should_start_token_reaper(config)
    if should_start:
        reaper = TokenReaper(get_token_guard(), config)
        reaper.start()
        app.state.token_reaper = reaper
    else:
        logger.info(f"令牌清理任务未启动: {reason}")

    try:
        yield
    finally:
        reaper = app.state.token_reaper
        if reaper:
            reaper.stop()
        app.state.token_reaper = None


app = FastAPI(title="Top-K Leaderboard", lifespan=lifespan)

app.include_router(session_api_router)
app.include_router(leaderboard_api_router)
app.include_router(system_api_router)


@app.middleware("http")
async def api_metrics_middleware(request: Request, call_next):
    with measure_ms("api.request", path=request.url.path) as snapshot:
        response = await call_next(request)
    log_api_metric(
        path=request.url.path,
        method=request.method,
        status_code=response.status_code,
        snapshot=snapshot,
    )
    return response


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    in_body = any(err.get("loc", ("",))[0] == "body" for err in exc.errors())
    detail = "Invalid request body" if in_body else "Invalid request parameters"
    return JSONResponse(status_code=400, content={"detail": detail})
