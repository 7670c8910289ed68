from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.core.security import TokenData, decode_token, oauth2_scheme
from app.stockflow.db.session import get_db
from app.stockflow.repos.users import UserRepository


def get_current_token_data(token: str | None = Depends(oauth2_scheme)) -> TokenData:
    if not token:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
    db=Depends(get_db),
):
    try:
        user_id = int(token_data.sub)
    except ValueError as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc

    user = UserRepository(db).get_by_id(user_id)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    request.state.user_id = user.id
    return user


def require_active_user(user=Depends(get_current_user)):
    if not user.is_active or user.deleted_at is not None:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def get_transfer_orchestrator(request: Request):
    return request.app.state.transfer_orchestrator


def get_transfer_item_service(request: Request):
    return request.app.state.transfer_item_service
