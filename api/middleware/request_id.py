"""
Request ID 中间件
生成或透传追踪ID，解析调用方IP，并通过contextvars传递给日志系统
"""
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

import structlog

from core.config import settings


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
client_ip_var: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)


def resolve_client_ip(request: Request, trust_proxy_headers: bool) -> str:
    """
    获取调用方IP

    只有在部署于可信反向代理之后才读取 X-Forwarded-For / X-Real-IP，
    否则这些头可被任意伪造，会绕过 webhook IP 白名单。
    """
    if trust_proxy_headers:
        x_forwarded_for = request.headers.get("X-Forwarded-For")
        if x_forwarded_for:
            # 取第一个IP（原始客户端IP）
            return x_forwarded_for.split(",")[0].strip()
        x_real_ip = request.headers.get("X-Real-IP")
        if x_real_ip:
            return x_real_ip.strip()
    return request.client.host if request.client else "unknown"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Request ID 追踪中间件

    1. 从请求头获取或生成新的request_id
    2. 将request_id、client_ip存入request.state与structlog上下文
    3. 在响应头中返回request_id
    """

    HEADER_NAME = "X-Request-ID"

    def __init__(self, app: ASGIApp, trust_proxy_headers: Optional[bool] = None):
        super().__init__(app)
        self.trust_proxy_headers = (
            settings.TRUST_PROXY_HEADERS if trust_proxy_headers is None else trust_proxy_headers
        )

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        client_ip = resolve_client_ip(request, self.trust_proxy_headers)

        request.state.request_id = request_id
        request.state.client_ip = client_ip
        request_id_var.set(request_id)
        client_ip_var.set(client_ip)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=client_ip,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response


def get_request_id() -> Optional[str]:
    """当前请求的request_id，不在请求上下文中时为None"""
    return request_id_var.get()


def get_client_ip() -> Optional[str]:
    return client_ip_var.get()
