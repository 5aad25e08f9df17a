# sdk/levelup_client.py
import requests
from typing import Any, Dict, List, Optional
from rich import print

class StoreClient:
    def __init__(self, base_url: str = "http://localhost:3001", admin_token: Optional[str] = None,
                 timeout: int = 10, session: Optional[Any] = None):
        self.base_url = base_url.rstrip("/")
        # any requests.Session, e.g. one with a custom transport adapter mounted
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        if admin_token:
            self.session.headers.update({"Authorization": f"Bearer {admin_token}"})

    # Catalog
    def list_products(self) -> Dict[str, Any]:
        r = self.session.get(f"{self.base_url}/api/products", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, product_id: int) -> Dict[str, Any]:
        r = self.session.get(f"{self.base_url}/api/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Admin
    def create_product(self, name: str, price: float, category: str = "", brand: str = "",
                       image: str = "", stock: int = 0, product_id: Optional[int] = None):
        payload: Dict[str, Any] = {
            "name": name, "price": price, "category": category,
            "brand": brand, "image": image, "stock": stock,
        }
        if product_id is not None:
            payload["id"] = int(product_id)
        r = self.session.post(f"{self.base_url}/api/products", json=payload, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def update_stock(self, product_id: int, stock: int):
        r = self.session.patch(f"{self.base_url}/api/products/{product_id}/stock",
                               json={"stock": stock}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def delete_product(self, product_id: int):
        r = self.session.delete(f"{self.base_url}/api/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()["removed"]

    # Chat
    def chat(self, message: str) -> str:
        r = self.session.post(f"{self.base_url}/api/chat", json={"message": message}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()["reply"]

    # Checkout
    def create_preference(self, title: str, price: float, quantity: int,
                          items: Optional[List[Dict[str, Any]]] = None, payer_email: Optional[str] = None):
        payload: Dict[str, Any] = {"title": title, "price": price, "quantity": quantity}
        if items:
            payload["items"] = items
        if payer_email:
            payload["payerEmail"] = payer_email
        r = self.session.post(f"{self.base_url}/api/create_preference", json=payload, timeout=self.timeout)
        # do not r.raise_for_status(); callers may want to inspect USE_TEST_ACCESS_TOKEN / provider errors
        return r

    def whoami(self):
        r = self.session.get(f"{self.base_url}/api/mp_whoami", timeout=self.timeout)
        return r


if __name__ == "__main__":
    import argparse
    import os

    parser = argparse.ArgumentParser(description="Level Up PC store client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-products", help="List all products")

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", type=int, required=True, help="ID of the product")

    cp = subparsers.add_parser("create-product", help="Create a product (admin)")
    cp.add_argument("--name", required=True, help="Product name")
    cp.add_argument("--price", type=float, required=True, help="Unit price")
    cp.add_argument("--category", default="", help="Product category")
    cp.add_argument("--brand", default="", help="Brand")
    cp.add_argument("--stock", type=int, default=0, help="Units in stock")

    us = subparsers.add_parser("update-stock", help="Set the stock of a product (admin)")
    us.add_argument("--product-id", type=int, required=True)
    us.add_argument("--stock", type=int, required=True)

    dp = subparsers.add_parser("delete-product", help="Delete a product (admin)")
    dp.add_argument("--product-id", type=int, required=True)

    ch = subparsers.add_parser("chat", help="Ask the store assistant")
    ch.add_argument("message")

    subparsers.add_parser("whoami", help="Show the configured Mercado Pago account")

    args = parser.parse_args()
    c = StoreClient(base_url=os.getenv("LEVELUP_API_URL", "http://127.0.0.1:3001"),
                    admin_token=os.getenv("LEVELUP_ADMIN_TOKEN"))

    if args.command == "list-products":
        print(c.list_products())
    elif args.command == "get-product":
        print(c.get_product(args.product_id))
    elif args.command == "create-product":
        print(c.create_product(args.name, args.price, args.category, args.brand, stock=args.stock))
    elif args.command == "update-stock":
        print(c.update_stock(args.product_id, args.stock))
    elif args.command == "delete-product":
        print(c.delete_product(args.product_id))
    elif args.command == "chat":
        print(c.chat(args.message))
    elif args.command == "whoami":
        print(c.whoami().json())
