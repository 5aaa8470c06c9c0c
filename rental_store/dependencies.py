# rental_store/dependencies.py
from fastapi import Request

from rental_store.services.cart_store import CartStore


def get_cart_store(request: Request) -> CartStore:
    """
    FastAPI dependency returning the cart store created in the app lifespan.

    Usage:

        @router.get("/example")
        def example(cart: CartStore = Depends(get_cart_store)):
            ...
    """
    return request.app.state.cart_store
