from canteen.main import TOKEN_COOKIE

OWNER = "owner@campus.edu"


def location(r):
    return r.headers["location"].split("?")[0]


def ui_signup(client, email, password="secret123"):
    client.cookies.clear()
    return client.post("/auth/signup", data={"email": email, "password": password}, follow_redirects=False)


def test_ui_renders(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "Campus Canteen" in r.text
    assert "Today's picks" in r.text


def test_menu_filters_by_category(client):
    r = client.get("/menu", params={"category": "Beverage"})
    assert r.status_code == 200
    assert "Cold Coffee" in r.text
    assert "Chicken Biryani" not in r.text

    # unknown categories fall back to the full menu
    r = client.get("/menu", params={"category": "Dessert"})
    assert "Chicken Biryani" in r.text


def test_guest_cart_flow(client):
    r = client.post("/cart/add", data={"food_item_id": 2, "next": "/menu"}, follow_redirects=False)
    assert r.status_code == 303
    assert location(r) == "/menu"
    assert "toast=" in r.headers["location"]

    r = client.get("/cart")
    assert "Masala Dosa" in r.text
    assert "₹60.00" in r.text

    r = client.post("/cart/update", data={"food_item_id": 2, "quantity": 3}, follow_redirects=False)
    assert location(r) == "/cart"
    assert "₹180.00" in client.get("/cart").text

    # checkout needs an account
    r = client.post("/checkout", follow_redirects=False)
    assert location(r) == "/auth"

    client.post("/cart/remove", data={"food_item_id": 2}, follow_redirects=False)
    assert "Your cart is empty" in client.get("/cart").text


def test_add_to_cart_ignores_offsite_next(client):
    r = client.post("/cart/add", data={"food_item_id": 1, "next": "//evil.example"}, follow_redirects=False)
    assert location(r) == "/menu"


def test_customer_checkout_and_payment(client):
    r = ui_signup(client, "bob@campus.edu")
    assert r.status_code == 303
    assert location(r) == "/"
    assert TOKEN_COOKIE in r.cookies
    client.post("/cart/add", data={"food_item_id": 1}, follow_redirects=False)

    assert "No orders yet" in client.get("/orders").text

    r = client.post("/checkout", follow_redirects=False)
    assert r.status_code == 303
    payment_url = location(r)
    assert payment_url.startswith("/payment/")

    r = client.get(payment_url)
    assert r.status_code == 200
    assert "Veg Thali" in r.text

    form = {"address": "Room 12, Hostel B", "city": "Chennai", "pincode": "6000", "method": "upi", "upi_id": "bob@okbank"}
    r = client.post(payment_url, data=form, follow_redirects=False)
    assert r.status_code == 400
    assert "pincode" in r.text

    r = client.post(payment_url, data={**form, "pincode": "600036"}, follow_redirects=False)
    assert r.status_code == 303
    assert location(r) == "/orders"
    r = client.get("/orders")
    assert "Room 12, Hostel B" in r.text
    assert "Placed" in r.text


def test_empty_checkout_stays_on_cart(client):
    ui_signup(client, "bob@campus.edu")
    r = client.post("/checkout", follow_redirects=False)
    assert location(r) == "/cart"


def test_login_errors_and_logout(client):
    ui_signup(client, "bob@campus.edu")
    client.cookies.clear()
    r = client.post("/auth/login", data={"email": "bob@campus.edu", "password": "nope"}, follow_redirects=False)
    assert r.status_code == 401
    assert "invalid credentials" in r.text

    r = client.post("/auth/login", data={"email": "bob@campus.edu", "password": "secret123"}, follow_redirects=False)
    assert r.status_code == 303
    assert client.get("/orders", follow_redirects=False).status_code == 200
    # signed-in users skip the sign-in page
    assert location(client.get("/auth", follow_redirects=False)) == "/"

    client.post("/auth/logout", follow_redirects=False)
    assert location(client.get("/orders", follow_redirects=False)) == "/auth"


def test_guests_are_sent_to_sign_in(client):
    for path in ("/orders", "/owner", "/delivery", "/payment/1"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303
        assert location(r) == "/auth"


def test_customer_cannot_open_staff_pages(client):
    ui_signup(client, "bob@campus.edu")
    for path in ("/owner", "/delivery"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303
        assert location(r) == "/"
        assert "toast=" in r.headers["location"]


def test_owner_is_kept_on_owner_pages(client):
    r = ui_signup(client, OWNER)
    assert location(r) == "/owner"

    assert location(client.get("/cart", follow_redirects=False)) == "/owner"
    assert location(client.get("/orders", follow_redirects=False)) == "/owner"
    assert location(client.get("/delivery", follow_redirects=False)) == "/"

    r = client.get("/owner")
    assert r.status_code == 200
    assert "Owner dashboard" in r.text


def test_owner_manages_partners_from_dashboard(client):
    ui_signup(client, OWNER)
    r = client.post("/owner/partners", data={"email": "rider@campus.edu", "partner_name": "Ravi"}, follow_redirects=False)
    assert location(r) == "/owner"
    r = client.get("/owner")
    assert "Ravi" in r.text
    assert "Available" in r.text

    r = client.post("/owner/partners", data={"email": "rider@campus.edu"}, follow_redirects=False)
    assert "already+registered" in r.headers["location"] or "already%20registered" in r.headers["location"]


def test_delivery_partner_dashboard(client):
    ui_signup(client, OWNER)
    client.post("/owner/partners", data={"email": "rider@campus.edu", "partner_name": "Ravi"}, follow_redirects=False)

    r = ui_signup(client, "rider@campus.edu")
    assert location(r) == "/delivery"
    r = client.get("/delivery")
    assert r.status_code == 200
    assert "No orders assigned to you right now." in r.text
    assert location(client.get("/owner", follow_redirects=False)) == "/"


def test_legacy_customer_paths(client):
    r = client.get("/customer", follow_redirects=False)
    assert location(r) == "/menu"

    ui_signup(client, "bob@campus.edu")
    assert location(client.get("/customer/orders", follow_redirects=False)) == "/orders"

    ui_signup(client, OWNER)
    assert location(client.get("/customer", follow_redirects=False)) == "/owner"
