from fastapi import Request

from shorty.db.repository import MappingStore
from shorty.services.shortener import URLService


def get_service(request: Request) -> URLService:
    return request.app.state.service


def get_store(request: Request) -> MappingStore:
    return request.app.state.store
