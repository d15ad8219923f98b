"""Request-scoped access to the singletons built by the application factory."""

from __future__ import annotations

from fastapi import Request

from ayush_core.core.config import Settings
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.services.icd11_gateway import Icd11Gateway
from ayush_core.services.intelligent_search import IntelligentSearchService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> ReferenceDataRepository:
    return request.app.state.repository


def get_gateway(request: Request) -> Icd11Gateway:
    return request.app.state.gateway


def get_search_service(request: Request) -> IntelligentSearchService:
    return IntelligentSearchService(
        repository=request.app.state.repository,
        gateway=request.app.state.gateway,
    )
