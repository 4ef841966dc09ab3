"""
Paginación estándar para los listados
"""
import math
from typing import Annotated, Optional

from fastapi import Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Query as SAQuery

from app.core.config import settings


class PaginationParams(BaseModel):
    page: int = 1
    per_page: int = settings.DEFAULT_PAGE_SIZE


def get_pagination(
    page: int = Query(1, ge=1, description="Página actual"),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Registros por página"),
) -> PaginationParams:
    return PaginationParams(page=page, per_page=per_page)


pagination_dependency = Annotated[PaginationParams, Depends(get_pagination)]


class PaginatedResponse(BaseModel):
    """Respuesta paginada estándar para todas las listas"""
    current_page: int
    per_page: int
    total: int
    last_page: int
    # None cuando la página está vacía
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None

    model_config = {"populate_by_name": True}


def paginate(query: SAQuery, params: PaginationParams) -> dict:
    """
    Ejecuta la query paginada y devuelve el sobre estándar.

    Returns:
        dict con data, current_page, per_page, total, last_page, from y to
    """
    total = query.order_by(None).count()
    offset = (params.page - 1) * params.per_page
    items = query.offset(offset).limit(params.per_page).all()

    return {
        "data": items,
        "current_page": params.page,
        "per_page": params.per_page,
        "total": total,
        "last_page": max(math.ceil(total / params.per_page), 1),
        "from": offset + 1 if items else None,
        "to": offset + len(items) if items else None,
    }
