# levelup/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import require_admin
from .chat import ChatResponder
from .config import Settings, configure_logging
from .core import ProductIn, StockUpdateIn, ChatIn, PreferenceIn
from .database import ProductStore
from .dependencies import (
    get_settings, get_store, get_chat_responder, get_payments_client,
    require_payments_token, require_sandbox_token
)
from .handlers import (
    list_products_logic, get_product_logic, create_product_logic,
    update_stock_logic, delete_product_logic, chat_logic,
    create_preference_logic, whoami_logic
)
from .models import Product
from .payments import MercadoPagoClient

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    store = ProductStore(settings.store_file, settings.seed_files)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure()
        if settings.mercadopago_access_token:
            logger.info("Mercado Pago configured")
        else:
            logger.error("MERCADOPAGO_ACCESS_TOKEN is not set; checkout is disabled")
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; chat will use scripted replies")
        yield

    app = FastAPI(title="Level Up PC store API", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.chat_responder = ChatResponder(
        AsyncOpenAI(api_key=settings.openai_api_key) if settings.openai_api_key else None,
        model=settings.openai_model,
    )
    app.state.payments_client = MercadoPagoClient(
        access_token=settings.mercadopago_access_token,
        base_url=settings.mercadopago_api_url,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------
    # Error shaping
    # ---------------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
        return JSONResponse(status_code=400, content={"error": "Invalid request", "fields": fields})

    # ---------------------------
    # Product endpoints
    # ---------------------------
    @app.get("/api/products")
    async def list_products(store: ProductStore = Depends(get_store)):
        return await list_products_logic(store)

    @app.get("/api/products/{product_id}")
    async def get_product(product_id: int, store: ProductStore = Depends(get_store)):
        return await get_product_logic(store, product_id)

    # ---------------------------
    # Admin endpoints
    # ---------------------------
    @app.post("/api/products", status_code=201, response_model=Product,
              dependencies=[Depends(require_admin)])
    async def create_product(payload: ProductIn, store: ProductStore = Depends(get_store)):
        return await create_product_logic(store, payload)

    @app.patch("/api/products/{product_id}/stock", dependencies=[Depends(require_admin)])
    async def update_stock(product_id: int, payload: StockUpdateIn, store: ProductStore = Depends(get_store)):
        return await update_stock_logic(store, product_id, payload)

    @app.delete("/api/products/{product_id}", dependencies=[Depends(require_admin)])
    async def delete_product(product_id: int, store: ProductStore = Depends(get_store)):
        return await delete_product_logic(store, product_id)

    # ---------------------------
    # Chat
    # ---------------------------
    @app.post("/api/chat")
    async def chat(payload: ChatIn, responder: ChatResponder = Depends(get_chat_responder)):
        return await chat_logic(responder, payload)

    # ---------------------------
    # Mercado Pago
    # ---------------------------
    @app.post("/api/create_preference", dependencies=[Depends(require_sandbox_token)])
    async def create_preference(
        payload: PreferenceIn,
        settings: Settings = Depends(get_settings),
        client: MercadoPagoClient = Depends(get_payments_client),
    ):
        return await create_preference_logic(settings, client, payload)

    @app.get("/api/mp_whoami", dependencies=[Depends(require_payments_token)])
    async def mp_whoami(client: MercadoPagoClient = Depends(get_payments_client)):
        return await whoami_logic(client)

    # ---------------------------
    # Storefront
    # ---------------------------
    @app.get("/", include_in_schema=False)
    async def index():
        index_file = settings.dist_dir / "index.html"
        if not index_file.is_file():
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(index_file)

    if settings.dist_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(settings.dist_dir)), name="static")

    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    logger.info("Server running on http://localhost:%s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
