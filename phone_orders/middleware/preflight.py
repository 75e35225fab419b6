"""
Phone Orders — CORS preflight short-circuit

Kitchen displays may be served from any origin. Every OPTIONS request is
answered with 204 and permissive CORS headers, without routing.
"""
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class PreflightMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)
        return await call_next(request)
