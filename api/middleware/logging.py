"""
请求/响应日志中间件
记录请求开始、结束与耗时。不读取请求体：webhook 验签需要原始字节。
"""
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    # 跳过日志的路径
    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        request_info = self._get_request_info(request)
        logger.info("request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=time.perf_counter() - start_time,
                error=str(exc),
                error_type=type(exc).__name__,
                **request_info,
                exc_info=True,
            )
            # 交给异常处理器
            raise

        duration = time.perf_counter() - start_time
        self._log_response(response, duration, request_info)
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response

    @staticmethod
    def _get_request_info(request: Request) -> dict:
        info = {"query_params": dict(request.query_params)}
        content_length = request.headers.get("Content-Length")
        if content_length:
            info["content_length"] = content_length
        user_agent = request.headers.get("User-Agent")
        if user_agent:
            info["user_agent"] = user_agent
        return info

    @staticmethod
    def _log_response(response: Response, duration: float, request_info: dict):
        status_code = response.status_code
        log_data = {"status_code": status_code, "duration": duration, **request_info}
        if status_code < 400:
            logger.info("request_completed", **log_data)
        elif status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
