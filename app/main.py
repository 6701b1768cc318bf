import io
import os
import sys
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum
from mangum.types import LambdaContext
from loguru import logger

from app.common import get_controllers
from app.common.middlewares import UserPopulationMiddleware

app = FastAPI()

# Use FastAPI's built-in origin pattern matching for CORS
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1|192\.168\.\d+\.\d+)(:\d+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(UserPopulationMiddleware)

for controller in get_controllers():
    app.include_router(controller().router)


@app.post("/migrate")
async def run_migrations():
    """Upgrade the chat history tables to the latest revision"""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(os.path.join(os.getcwd(), "alembic.ini"))
    output = io.StringIO()
    old_stdout = sys.stdout
    sys.stdout = output
    try:
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.exception("Migration failed")
        return {"status": "error", "output": str(e)}
    finally:
        sys.stdout = old_stdout
    return {"status": "success", "output": output.getvalue()}


asgi_handler = Mangum(app)


def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Lambda handler function"""
    headers = event.get("headers") or {}
    user_agent = headers.get("User-Agent", headers.get("user-agent", ""))

    logger_context = {
        "request_id": context.aws_request_id,
        "user_agent": user_agent,
        "x-forwarded-for": headers.get("X-Forwarded-For", ""),
        "httpMethod": event.get("httpMethod", ""),
        "path": event.get("path", ""),
    }

    with logger.contextualize(**logger_context):
        logger.info("Request received")
        response = asgi_handler(event, context)
        logger.info(f"Response generated with status {response.get('statusCode')}")
        return response
