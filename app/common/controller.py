from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar

from fastapi import APIRouter, Request

from app.common.models import ANONYMOUS_USER_ID


class BaseController(ABC):
    """
    Base controller class for the application.
    Subclasses set `prefix` and register their routes on `api_router`.
    """

    prefix: ClassVar[str]
    tags: ClassVar[list[str | Enum] | None] = None

    def __init__(self) -> None:
        self.api_router = APIRouter(prefix=f"/api/v1/{self.prefix}" if self.prefix else "", tags=self.tags if self.tags else [self.prefix], redirect_slashes=False)

    @staticmethod
    def get_user_id(request: Request) -> str:
        """Owner id populated by UserPopulationMiddleware, anonymous when the middleware did not run."""
        return getattr(request.state, "user_id", None) or ANONYMOUS_USER_ID

    @property
    @abstractmethod
    def router(self) -> APIRouter:
        """Abstract property must be implemented by subclasses to return the APIRouter instance."""
        raise NotImplementedError("Subclasses must implement the router property.")
