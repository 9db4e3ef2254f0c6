from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from lnode_server.accounts import AccountService
from lnode_server.auth import principal_from_request
from lnode_server.pagination import PageRequest, page_query
from lnode_server.schemas import UpdateUserRequest, UserListResponse

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(principal_from_request)])


def _accounts(request: Request) -> AccountService:
    return request.app.state.accounts


@router.get("")
def list_users(request: Request, page: PageRequest = Depends(page_query)) -> JSONResponse:
    users, total = _accounts(request).list_users(page)
    body = UserListResponse(users=users, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/search")
def search_users(
    request: Request,
    q: str = Query(default="", max_length=256),
    page: PageRequest = Depends(page_query),
) -> JSONResponse:
    users, total = _accounts(request).search_users(q, page)
    body = UserListResponse(users=users, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/{user_id}")
def get_user(user_id: uuid.UUID, request: Request) -> JSONResponse:
    user = _accounts(request).get_user(user_id)
    return JSONResponse(content=user.model_dump(mode="json"))


@router.put("/{user_id}")
def update_user(user_id: uuid.UUID, payload: UpdateUserRequest, request: Request) -> JSONResponse:
    user = _accounts(request).update_user(user_id, payload)
    return JSONResponse(content=user.model_dump(mode="json"))


@router.delete("/{user_id}")
def delete_user(user_id: uuid.UUID, request: Request) -> JSONResponse:
    _accounts(request).delete_user(user_id)
    return JSONResponse(content={"message": "User deleted successfully"})
