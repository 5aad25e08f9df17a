import json
import logging
from typing import Dict, Any

from fastapi import HTTPException

from .chat import ChatResponder, LiveReply
from .config import Settings
from .core import (
    ProductIn, StockUpdateIn, ChatIn, PreferenceIn,
    _make_product_dict, find_product_index, next_product_id
)
from .database import ProductStore
from .payments import (
    MercadoPagoClient, PaymentProviderError,
    build_preference_payload, extract_init_point
)

# This file contains the logic behind every API endpoint; main.py only wires routes.

logger = logging.getLogger(__name__)

def _persist(store: ProductStore, data: Dict[str, Any]) -> None:
    if not store.save(data):
        logger.warning("Mutation applied but the datastore could not be written")

# Product endpoints
async def list_products_logic(store: ProductStore):
    data = store.load()
    return {"products": data["products"], "brands": data.get("brands") or []}

async def get_product_logic(store: ProductStore, product_id: int):
    products = store.load()["products"]
    idx = find_product_index(products, product_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Product not found")
    return products[idx]

# Admin product endpoints
async def create_product_logic(store: ProductStore, payload: ProductIn):
    data = store.load()
    products = data["products"]
    new_id = payload.id if payload.id is not None else next_product_id(products)
    if find_product_index(products, new_id) != -1:
        raise HTTPException(status_code=409, detail="ID already exists")
    product = _make_product_dict(new_id, payload)
    products.append(product)
    _persist(store, data)
    logger.info("Product %s created", new_id)
    return product

async def update_stock_logic(store: ProductStore, product_id: int, payload: StockUpdateIn):
    data = store.load()
    idx = find_product_index(data["products"], product_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Product not found")
    p = data["products"][idx]
    p["stock"] = payload.stock
    _persist(store, data)
    return {"id": p["id"], "stock": p["stock"]}

async def delete_product_logic(store: ProductStore, product_id: int):
    data = store.load()
    idx = find_product_index(data["products"], product_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Product not found")
    removed = data["products"].pop(idx)
    _persist(store, data)
    logger.info("Product %s deleted", product_id)
    return {"removed": removed}

# Chat
async def chat_logic(responder: ChatResponder, payload: ChatIn):
    result = await responder.reply(payload.message)
    if isinstance(result, LiveReply):
        logger.debug("Chat answered by the language model")
    return {"reply": result.text}

# Payments
async def create_preference_logic(settings: Settings, client: MercadoPagoClient, payload: PreferenceIn):
    body = build_preference_payload(payload, settings.public_base_url)
    if settings.debug_mp:
        logger.debug("Mercado Pago preference payload: %s", json.dumps(body, indent=2, ensure_ascii=False))
    try:
        result = await client.create_preference(body)
    except PaymentProviderError as e:
        logger.error("Error creating preference: status=%s msg=%s", e.status, e.message)
        raise HTTPException(status_code=e.status, detail={"error": e.message, "details": e.details})
    init_point = extract_init_point(result)
    if not init_point:
        logger.error("Preference created without init_point: %r", result)
        raise HTTPException(status_code=500, detail="Preference created without init_point")
    return {"init_point": init_point}

async def whoami_logic(client: MercadoPagoClient):
    try:
        return await client.whoami()
    except PaymentProviderError as e:
        logger.error("mp_whoami failed: status=%s msg=%s", e.status, e.message)
        raise HTTPException(status_code=e.status, detail={"error": e.message, "status": e.status})
