"""FastAPI dependencies exposing the per-application components.

create_app() builds these once and attaches them to app.state.
"""

from __future__ import annotations

from fastapi import Request

from app.config.settings import Settings
from app.plans.service import TrainingPlanService
from app.plans.store import Stores


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def get_plan_service(request: Request) -> TrainingPlanService:
    return request.app.state.plan_service
