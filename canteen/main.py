import base64
import binascii
import logging
import os
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Depends, HTTPException, Query, Request, Response, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from .db import Base, engine, SessionLocal
from . import catalog, crud, payment, procedures, schemas
from .cart import CartService
from .errors import (
    AuthError,
    CartSyncError,
    EmptyCartError,
    InvalidTransitionError,
    NotAuthenticatedError,
    NotFoundError,
    OrderPlacementError,
    PermissionDeniedError,
)
from .guards import Guard, SIGN_IN_PATH, auto_redirect, check_access
from .local_cache import CART_STORAGE_KEY, LocalCache
from .roles import Role
from .session import SessionStore
from .utils import format_price, round_amount

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create tables if not existing (for demo). Older databases go through migration/.
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Campus Canteen")

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["price"] = format_price
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

TOKEN_COOKIE = "access_token"
COOKIE_MAX_AGE = 60 * 60 * 24 * 30

ERROR_STATUS = [
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (AuthError, 401),
    (NotAuthenticatedError, 401),
    (PermissionDeniedError, 403),
    (OrderPlacementError, 500),
]


def http_error(exc: ValueError) -> HTTPException:
    for cls, status_code in ERROR_STATUS:
        if isinstance(exc, cls):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


class RedirectRequired(Exception):
    def __init__(self, location: str, toast: Optional[str] = None):
        super().__init__(location)
        self.location = location
        self.toast = toast


def with_toast(url: str, toast: Optional[str]) -> str:
    if not toast:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode({'toast': toast})}"


@app.exception_handler(RedirectRequired)
async def redirect_required_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(url=with_toast(exc.location, exc.toast), status_code=303)


# Dependency to get DB session per request

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def request_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization")
    if auth and auth.lower().startswith("bearer "):
        return auth.split(None, 1)[1]
    return request.cookies.get(TOKEN_COOKIE)


def get_session_store(request: Request, db: Session = Depends(get_db)) -> SessionStore:
    store = SessionStore(db)
    store.restore(request_token(request))
    return store


def read_cart_cookie(request: Request) -> dict:
    raw = request.cookies.get(CART_STORAGE_KEY)
    if not raw:
        return {}
    try:
        padded = raw + "=" * (-len(raw) % 4)
        return {CART_STORAGE_KEY: base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")}
    except (binascii.Error, UnicodeError, ValueError):
        logger.warning("Ignoring undecodable cart cookie")
        return {}


def persist_cart(response: Response, cart: CartService) -> Response:
    raw = cart.cache.storage.get(cart.cache.key)
    if raw is None:
        response.delete_cookie(CART_STORAGE_KEY)
    else:
        encoded = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
        response.set_cookie(CART_STORAGE_KEY, encoded, max_age=COOKIE_MAX_AGE, httponly=True, samesite="lax")
    return response


def get_cart(
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> CartService:
    cart = CartService(db, LocalCache(read_cart_cookie(request)))
    cart.follow(store)
    return cart


def require(guard: Guard):
    """JSON flavour of the route guards: 401 when signed out, 403 when the role is wrong."""

    def dependency(store: SessionStore = Depends(get_session_store)) -> SessionStore:
        if check_access(guard, store.session, store.role, store.loading).allowed:
            return store
        if store.session is None:
            raise HTTPException(status_code=401, detail="not signed in")
        raise HTTPException(status_code=403, detail="forbidden")

    return dependency


def page(*guards: Guard):
    """HTML flavour: legacy-path auto-redirect first, then each guard in turn."""

    def dependency(request: Request, store: SessionStore = Depends(get_session_store)) -> SessionStore:
        target = auto_redirect(request.url.path, store.role)
        if target:
            raise RedirectRequired(target)
        for guard in guards:
            decision = check_access(guard, store.session, store.role, store.loading)
            if decision.action != "redirect":
                continue
            if decision.location == SIGN_IN_PATH:
                raise RedirectRequired(decision.location, "Please sign in to continue")
            if guard in (Guard.OWNER, Guard.DELIVERY):
                raise RedirectRequired(decision.location, "You don't have permission to access that page")
            raise RedirectRequired(decision.location)
        return store

    return dependency


def landing_page(store: SessionStore) -> str:
    if store.role is None or store.role.role is Role.CUSTOMER:
        return "/"
    return store.role.dashboard


def role_read(store: SessionStore) -> Optional[schemas.RoleRead]:
    role = store.role
    if role is None:
        return None
    return schemas.RoleRead(
        user_id=role.user_id,
        email=role.email,
        role=role.role.value,
        delivery_email_registered=role.delivery_email_registered,
        is_owner=role.is_owner,
        is_delivery_partner=role.is_delivery_partner,
        dashboard=role.dashboard,
    )


def cart_read(cart: CartService) -> schemas.CartRead:
    return schemas.CartRead(
        lines=cart.lines,
        total_items=cart.get_total_items(),
        total_price=cart.get_total_price(),
        warning=cart.warning,
    )


def render(request: Request, name: str, store: SessionStore, cart: Optional[CartService] = None,
           status_code: int = 200, **context):
    toast = context.pop("toast", None) or request.query_params.get("toast")
    if cart is not None and cart.warning and not toast:
        toast = cart.warning
    ctx = {
        "session": store.session,
        "role": store.role,
        "cart_count": cart.get_total_items() if cart is not None else 0,
        "toast": toast,
        "error": context.pop("error", None),
    }
    ctx.update(context)
    response = templates.TemplateResponse(request, name, ctx, status_code=status_code)
    if cart is not None:
        persist_cart(response, cart)
    return response


def redirect(url: str, toast: Optional[str] = None, cart: Optional[CartService] = None) -> RedirectResponse:
    response = RedirectResponse(url=with_toast(url, toast), status_code=303)
    if cart is not None:
        persist_cart(response, cart)
    return response


def find_food(food_item_id: int) -> schemas.FoodItem:
    food = catalog.get_food_item(food_item_id)
    if not food:
        raise HTTPException(status_code=404, detail="food item not found")
    return food


@app.get("/health")
async def health():
    return {"status": "ok"}


# -------------------- JSON API: auth --------------------

@app.post("/api/auth/signup", response_model=schemas.TokenRead, status_code=201)
async def api_signup(payload: schemas.UserCreate, response: Response,
                     store: SessionStore = Depends(get_session_store), cart: CartService = Depends(get_cart)):
    try:
        session = store.sign_up(payload)
    except ValueError as e:
        raise http_error(e)
    persist_cart(response, cart)
    return schemas.TokenRead(access_token=session.access_token)


@app.post("/api/auth/login", response_model=schemas.TokenRead)
async def api_login(payload: schemas.LoginRequest, response: Response,
                    store: SessionStore = Depends(get_session_store), cart: CartService = Depends(get_cart)):
    try:
        session = store.sign_in(payload.email, payload.password)
    except ValueError as e:
        raise http_error(e)
    persist_cart(response, cart)
    return schemas.TokenRead(access_token=session.access_token)


@app.post("/api/auth/logout")
async def api_logout(store: SessionStore = Depends(get_session_store)):
    # tokens are stateless; clients drop theirs
    store.sign_out()
    return {"signed_out": True}


@app.get("/api/session", response_model=schemas.SessionRead)
async def api_session(store: SessionStore = Depends(get_session_store), db: Session = Depends(get_db)):
    if store.session is None:
        return schemas.SessionRead()
    user = crud.get_user_by_email(db, store.session.email)
    return schemas.SessionRead(user=schemas.UserRead.model_validate(user), role=role_read(store))


# -------------------- JSON API: menu and cart --------------------

@app.get("/api/menu", response_model=List[schemas.FoodItem])
async def api_menu(category: str = Query("All")):
    if category not in catalog.CATEGORIES:
        raise HTTPException(status_code=400, detail=f"unknown category: {category}")
    return catalog.get_food_items(category)


@app.get("/api/cart", response_model=schemas.CartRead)
async def api_get_cart(response: Response, cart: CartService = Depends(get_cart)):
    persist_cart(response, cart)
    return cart_read(cart)


@app.post("/api/cart/items", response_model=schemas.CartRead)
async def api_add_to_cart(payload: schemas.CartItemAdd, response: Response, cart: CartService = Depends(get_cart)):
    food = find_food(payload.food_item_id)
    try:
        cart.add_to_cart(food)
    except CartSyncError as e:
        cart.warning = str(e)
    persist_cart(response, cart)
    return cart_read(cart)


@app.put("/api/cart/items/{food_item_id}", response_model=schemas.CartRead)
async def api_update_quantity(food_item_id: int, payload: schemas.CartItemUpdate, response: Response,
                              cart: CartService = Depends(get_cart)):
    if payload.quantity > 0 and cart.get_line(food_item_id) is None:
        raise HTTPException(status_code=404, detail="item not in cart")
    try:
        cart.update_quantity(food_item_id, payload.quantity)
    except CartSyncError as e:
        cart.warning = str(e)
    persist_cart(response, cart)
    return cart_read(cart)


@app.delete("/api/cart/items/{food_item_id}", response_model=schemas.CartRead)
async def api_remove_from_cart(food_item_id: int, response: Response, cart: CartService = Depends(get_cart)):
    try:
        cart.remove_from_cart(food_item_id)
    except CartSyncError as e:
        cart.warning = str(e)
    persist_cart(response, cart)
    return cart_read(cart)


@app.delete("/api/cart", response_model=schemas.CartRead)
async def api_clear_cart(response: Response, cart: CartService = Depends(get_cart)):
    try:
        cart.clear_cart()
    except CartSyncError as e:
        cart.warning = str(e)
    persist_cart(response, cart)
    return cart_read(cart)


# -------------------- JSON API: orders --------------------

@app.post("/api/orders", response_model=schemas.OrderPlaced, status_code=201)
async def api_place_order(response: Response, cart: CartService = Depends(get_cart)):
    total = round_amount(cart.get_total_price())
    try:
        order_id = cart.place_order()
    except ValueError as e:
        raise http_error(e)
    persist_cart(response, cart)
    return schemas.OrderPlaced(order_id=order_id, total_price=total)


@app.get("/api/orders", response_model=List[schemas.OrderRead])
async def api_my_orders(store: SessionStore = Depends(require(Guard.PROTECTED)), db: Session = Depends(get_db)):
    return crud.list_orders_for_user(db, store.user_id)


@app.put("/api/orders/{order_id}/payment", response_model=schemas.OrderRead)
async def api_pay_order(order_id: int, payload: schemas.PaymentRequest,
                        store: SessionStore = Depends(require(Guard.PROTECTED)), db: Session = Depends(get_db)):
    try:
        return payment.complete_payment(db, order_id, store.user_id, payload.details, payload.payment)
    except ValueError as e:
        raise http_error(e)


# -------------------- JSON API: owner --------------------

@app.get("/api/owner/orders", response_model=List[schemas.OrderRead])
async def api_owner_orders(status: Optional[str] = Query(None), store: SessionStore = Depends(require(Guard.OWNER)),
                           db: Session = Depends(get_db)):
    try:
        return crud.list_orders(db, status=status)
    except ValueError as e:
        raise http_error(e)


@app.post("/api/owner/orders/{order_id}/assign", response_model=schemas.OrderRead)
async def api_assign_delivery(order_id: int, payload: schemas.AssignDelivery,
                              store: SessionStore = Depends(require(Guard.OWNER)), db: Session = Depends(get_db)):
    try:
        return crud.assign_delivery(db, order_id, payload.partner_id, payload.estimated_time)
    except ValueError as e:
        raise http_error(e)


@app.post("/api/owner/orders/{order_id}/complete", response_model=schemas.OrderRead)
async def api_complete_order(order_id: int, store: SessionStore = Depends(require(Guard.OWNER)),
                             db: Session = Depends(get_db)):
    try:
        return crud.complete_order(db, order_id)
    except ValueError as e:
        raise http_error(e)


@app.get("/api/owner/partners", response_model=List[schemas.DeliveryPartnerRead])
async def api_list_partners(store: SessionStore = Depends(require(Guard.OWNER)), db: Session = Depends(get_db)):
    return crud.list_delivery_partners(db)


@app.post("/api/owner/partners", response_model=schemas.DeliveryPartnerRead, status_code=201)
async def api_add_partner(payload: schemas.DeliveryPartnerCreate, store: SessionStore = Depends(require(Guard.OWNER)),
                          db: Session = Depends(get_db)):
    try:
        return crud.add_delivery_partner(db, payload)
    except ValueError as e:
        raise http_error(e)


@app.post("/api/owner/roles")
async def api_assign_role(payload: schemas.RoleAssign, store: SessionStore = Depends(require(Guard.OWNER)),
                          db: Session = Depends(get_db)):
    try:
        procedures.assign_role(db, payload.email, payload.role)
    except ValueError as e:
        raise http_error(e)
    return {"email": payload.email.strip().lower(), "role": payload.role}


# -------------------- JSON API: delivery partner --------------------

@app.get("/api/delivery/orders", response_model=List[schemas.OrderRead])
async def api_assigned_orders(store: SessionStore = Depends(require(Guard.DELIVERY)), db: Session = Depends(get_db)):
    return crud.list_assigned_orders(db, store.session.email)


@app.get("/api/delivery/history", response_model=List[schemas.OrderRead])
async def api_delivery_history(store: SessionStore = Depends(require(Guard.DELIVERY)), db: Session = Depends(get_db)):
    return crud.list_delivery_history(db, store.session.email)


@app.post("/api/delivery/orders/{order_id}/delivered", response_model=schemas.OrderRead)
async def api_mark_delivered(order_id: int, store: SessionStore = Depends(require(Guard.DELIVERY)),
                             db: Session = Depends(get_db)):
    try:
        return crud.mark_delivered(db, order_id, store.session.email)
    except ValueError as e:
        raise http_error(e)


# -------------------- UI Views --------------------

@app.get("/", response_class=HTMLResponse)
async def ui_home(request: Request, store: SessionStore = Depends(page()), cart: CartService = Depends(get_cart)):
    featured = [items[0] for items in (catalog.get_food_items(c) for c in catalog.CATEGORIES[1:]) if items]
    return render(request, "home.html", store, cart, featured=featured)


@app.get("/menu", response_class=HTMLResponse)
async def ui_menu(request: Request, category: str = "All", store: SessionStore = Depends(page()),
                  cart: CartService = Depends(get_cart)):
    if category not in catalog.CATEGORIES:
        category = "All"
    return render(request, "menu.html", store, cart, items=catalog.get_food_items(category),
                  categories=catalog.CATEGORIES, category=category)


@app.get("/customer", response_class=HTMLResponse)
@app.get("/customer/{rest:path}", response_class=HTMLResponse)
async def ui_legacy_customer(store: SessionStore = Depends(page())):
    # signed-in users were already sent to their dashboard by page()
    return RedirectResponse(url="/menu", status_code=303)


@app.get("/cart", response_class=HTMLResponse)
async def ui_cart(request: Request, store: SessionStore = Depends(page(Guard.CUSTOMER)),
                  cart: CartService = Depends(get_cart)):
    return render(request, "cart.html", store, cart, lines=cart.lines, total=cart.get_total_price())


@app.post("/cart/add")
async def ui_add_to_cart(food_item_id: int = Form(...), next: str = Form("/menu"),
                         store: SessionStore = Depends(page(Guard.CUSTOMER)), cart: CartService = Depends(get_cart)):
    food = find_food(food_item_id)
    toast = f"Added {food.name} to cart"
    try:
        cart.add_to_cart(food)
    except CartSyncError as e:
        toast = str(e)
    if not next.startswith("/") or next.startswith("//"):
        next = "/menu"
    return redirect(next, toast, cart)


@app.post("/cart/update")
async def ui_update_quantity(food_item_id: int = Form(...), quantity: int = Form(...),
                             store: SessionStore = Depends(page(Guard.CUSTOMER)), cart: CartService = Depends(get_cart)):
    toast = None
    try:
        cart.update_quantity(food_item_id, quantity)
    except CartSyncError as e:
        toast = str(e)
    return redirect("/cart", toast, cart)


@app.post("/cart/remove")
async def ui_remove_from_cart(food_item_id: int = Form(...), store: SessionStore = Depends(page(Guard.CUSTOMER)),
                              cart: CartService = Depends(get_cart)):
    line = cart.get_line(food_item_id)
    toast = f"Removed {line.food_item.name} from cart" if line else None
    try:
        cart.remove_from_cart(food_item_id)
    except CartSyncError as e:
        toast = str(e)
    return redirect("/cart", toast, cart)


@app.post("/cart/clear")
async def ui_clear_cart(store: SessionStore = Depends(page(Guard.CUSTOMER)), cart: CartService = Depends(get_cart)):
    toast = "Cart cleared"
    try:
        cart.clear_cart()
    except CartSyncError as e:
        toast = str(e)
    return redirect("/cart", toast, cart)


@app.post("/checkout")
async def ui_checkout(store: SessionStore = Depends(page(Guard.CUSTOMER)), cart: CartService = Depends(get_cart)):
    try:
        order_id = cart.place_order()
    except NotAuthenticatedError as e:
        return redirect(SIGN_IN_PATH, str(e), cart)
    except EmptyCartError as e:
        return redirect("/cart", str(e), cart)
    except OrderPlacementError as e:
        return redirect("/cart", str(e), cart)
    return redirect(f"/payment/{order_id}", "Order placed successfully!", cart)


@app.get("/payment/{order_id}", response_class=HTMLResponse)
async def ui_payment(request: Request, order_id: int,
                     store: SessionStore = Depends(page(Guard.PROTECTED, Guard.CUSTOMER)),
                     cart: CartService = Depends(get_cart), db: Session = Depends(get_db)):
    order = crud.get_order(db, order_id)
    if not order or order.user_id != store.user_id:
        raise RedirectRequired("/orders", "Order not found")
    return render(request, "payment.html", store, cart, order=order)


@app.post("/payment/{order_id}")
async def ui_submit_payment(
    request: Request,
    order_id: int,
    address: str = Form(...),
    city: str = Form(...),
    pincode: str = Form(...),
    instructions: str = Form(""),
    landmark: str = Form(""),
    method: str = Form("card"),
    card_number: str = Form(""),
    expiry_date: str = Form(""),
    cvv: str = Form(""),
    name_on_card: str = Form(""),
    upi_id: str = Form(""),
    store: SessionStore = Depends(page(Guard.PROTECTED, Guard.CUSTOMER)),
    cart: CartService = Depends(get_cart),
    db: Session = Depends(get_db),
):
    order = crud.get_order(db, order_id)
    if not order or order.user_id != store.user_id:
        raise RedirectRequired("/orders", "Order not found")
    try:
        details = schemas.DeliveryDetails(address=address, city=city, pincode=pincode,
                                          instructions=instructions or None, landmark=landmark or None)
        form = schemas.PaymentForm(method=method, card_number=card_number, expiry_date=expiry_date, cvv=cvv,
                                   name_on_card=name_on_card, upi_id=upi_id)
        payment.complete_payment(db, order_id, store.user_id, details, form)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError too
        return render(request, "payment.html", store, cart, status_code=400, order=order, error=str(e))
    return redirect("/orders", "Payment successful!", cart)


@app.get("/orders", response_class=HTMLResponse)
async def ui_orders(request: Request, store: SessionStore = Depends(page(Guard.PROTECTED, Guard.CUSTOMER)),
                    cart: CartService = Depends(get_cart), db: Session = Depends(get_db)):
    return render(request, "orders.html", store, cart, orders=crud.list_orders_for_user(db, store.user_id))


@app.get("/auth", response_class=HTMLResponse)
async def ui_auth(request: Request, store: SessionStore = Depends(page()), cart: CartService = Depends(get_cart)):
    if store.session is not None:
        return redirect(landing_page(store), cart=cart)
    return render(request, "auth.html", store, cart)


def _signed_in_redirect(store: SessionStore, cart: CartService, toast: str) -> RedirectResponse:
    response = redirect(landing_page(store), toast, cart)
    response.set_cookie(TOKEN_COOKIE, store.session.access_token, max_age=COOKIE_MAX_AGE, httponly=True,
                        samesite="lax")
    return response


@app.post("/auth/login")
async def ui_login(request: Request, email: str = Form(...), password: str = Form(...),
                   store: SessionStore = Depends(get_session_store), cart: CartService = Depends(get_cart)):
    try:
        store.sign_in(email, password)
    except AuthError as e:
        return render(request, "auth.html", store, cart, status_code=401, error=str(e), email=email)
    return _signed_in_redirect(store, cart, "Signed in")


@app.post("/auth/signup")
async def ui_signup(request: Request, email: str = Form(...), password: str = Form(...), name: str = Form(""),
                    store: SessionStore = Depends(get_session_store), cart: CartService = Depends(get_cart)):
    try:
        store.sign_up(schemas.UserCreate(email=email, password=password, name=name or None))
    except ValueError as e:
        return render(request, "auth.html", store, cart, status_code=400, error=str(e), email=email)
    return _signed_in_redirect(store, cart, "Welcome!")


@app.post("/auth/logout")
async def ui_logout(store: SessionStore = Depends(get_session_store), cart: CartService = Depends(get_cart)):
    store.sign_out()
    response = redirect("/", "Signed out", cart)
    response.delete_cookie(TOKEN_COOKIE)
    return response


@app.get("/owner", response_class=HTMLResponse)
async def ui_owner(request: Request, status: str = "", store: SessionStore = Depends(page(Guard.OWNER)),
                   db: Session = Depends(get_db)):
    orders = crud.list_orders(db)
    try:
        shown = crud.filter_orders_by_status(orders, status) if status else orders
    except ValueError:
        status, shown = "", orders
    partners = crud.list_delivery_partners(db)
    return render(
        request, "owner.html", store,
        orders=shown,
        status=status,
        statuses=[s.value for s in schemas.OrderStatus],
        placed=crud.filter_orders_by_status(orders, schemas.OrderStatus.PLACED.value),
        partners=partners,
        available=[p for p in partners if p.status == "Available"],
    )


@app.post("/owner/orders/{order_id}/assign")
async def ui_assign_delivery(order_id: int, partner_id: int = Form(...), estimated_time: str = Form("30-45 minutes"),
                             store: SessionStore = Depends(page(Guard.OWNER)), db: Session = Depends(get_db)):
    try:
        crud.assign_delivery(db, order_id, partner_id, estimated_time)
    except ValueError as e:
        return redirect("/owner", str(e))
    return redirect("/owner", "Delivery partner has been assigned to the order")


@app.post("/owner/orders/{order_id}/complete")
async def ui_complete_order(order_id: int, store: SessionStore = Depends(page(Guard.OWNER)),
                            db: Session = Depends(get_db)):
    try:
        crud.complete_order(db, order_id)
    except ValueError as e:
        return redirect("/owner", str(e))
    return redirect("/owner", "The order has been marked as delivered")


@app.post("/owner/partners")
async def ui_add_partner(email: str = Form(...), partner_name: str = Form(""), phone_number: str = Form(""),
                         store: SessionStore = Depends(page(Guard.OWNER)), db: Session = Depends(get_db)):
    try:
        crud.add_delivery_partner(db, schemas.DeliveryPartnerCreate(
            email=email, partner_name=partner_name or None, phone_number=phone_number or None))
    except ValueError as e:
        return redirect("/owner", str(e))
    return redirect("/owner", "New delivery partner has been added")


@app.post("/owner/roles")
async def ui_assign_role(email: str = Form(...), role: str = Form(...),
                         store: SessionStore = Depends(page(Guard.OWNER)), db: Session = Depends(get_db)):
    try:
        payload = schemas.RoleAssign(email=email, role=role)
        procedures.assign_role(db, payload.email, payload.role)
    except ValueError as e:
        return redirect("/owner", str(e))
    return redirect("/owner", f"{email} is now {role.replace('_', ' ')}")


@app.get("/delivery", response_class=HTMLResponse)
async def ui_delivery(request: Request, store: SessionStore = Depends(page(Guard.DELIVERY)),
                      db: Session = Depends(get_db)):
    email = store.session.email
    return render(request, "delivery.html", store,
                  assigned=crud.list_assigned_orders(db, email),
                  history=crud.list_delivery_history(db, email))


@app.post("/delivery/orders/{order_id}/delivered")
async def ui_mark_delivered(order_id: int, store: SessionStore = Depends(page(Guard.DELIVERY)),
                            db: Session = Depends(get_db)):
    try:
        crud.mark_delivered(db, order_id, store.session.email)
    except ValueError as e:
        return redirect("/delivery", str(e))
    return redirect("/delivery", "Order marked as delivered successfully")
