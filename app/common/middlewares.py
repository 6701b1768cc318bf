from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

from app.common.models import ANONYMOUS_USER_ID


class UserPopulationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        """
        Populates `request.state.user_id` from the 'x-forwarded-user' header set by the auth proxy.
        Requests without the header are served as the anonymous owner.
        """
        request.state.user_id = request.headers.get("x-forwarded-user") or ANONYMOUS_USER_ID
        response = await call_next(request)
        return response
