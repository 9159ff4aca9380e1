"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import payments as payments_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from core.settings import payment_settings
from infrastructure.database import create_tables, engine


# 初始化日志：在入口处显式配置
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时创建数据库表（仅开发环境）
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", message="Database tables created (development)")
    else:
        logger.info("database_migrations_required", message="No auto-create outside DEBUG")
    if not payment_settings.razorpay.webhook_secret:
        logger.warning(
            "razorpay_webhook_secret_missing",
            message="RAZORPAY__WEBHOOK_SECRET not set, every webhook will be rejected",
        )

    yield

    await engine.dispose()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Razorpay 支付事件对账服务",
)

# 添加中间件（注意顺序：后添加的先执行）
app.add_middleware(LoggingMiddleware)
# Request ID 最先执行，为日志中间件提供上下文
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(payments_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc",
        },
        message="Welcome",
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    return success_response(data={"status": "healthy"}, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
