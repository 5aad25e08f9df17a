from fastapi import Depends, HTTPException, Request

from .chat import ChatResponder
from .config import Settings
from .database import ProductStore
from .payments import MercadoPagoClient, looks_like_production_token

# Everything a handler needs is resolved from app.state, which create_app() fills once.

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_store(request: Request) -> ProductStore:
    return request.app.state.store

def get_chat_responder(request: Request) -> ChatResponder:
    return request.app.state.chat_responder

def get_payments_client(request: Request) -> MercadoPagoClient:
    return request.app.state.payments_client

def require_payments_token(settings: Settings = Depends(get_settings)) -> str:
    if not settings.mercadopago_access_token:
        raise HTTPException(status_code=400, detail="MERCADOPAGO_ACCESS_TOKEN is not configured")
    return settings.mercadopago_access_token

def require_sandbox_token(
    token: str = Depends(require_payments_token),
    settings: Settings = Depends(get_settings),
) -> str:
    # outside production only test credentials may create preferences
    if not settings.is_production and looks_like_production_token(token):
        raise HTTPException(status_code=400, detail={
            "error": "Production access token detected in a test environment",
            "code": "USE_TEST_ACCESS_TOKEN",
            "hint": "Use the seller's test access token (TEST-...)",
        })
    return token
