from locust import HttpUser, task, between
import random

MENU_IDS = list(range(1, 13))


class CustomerUser(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Sign up a customer for this simulated client
        email = f"user_{random.randint(1, 1_000_000)}@campus.edu"
        r = self.client.post("/api/auth/signup", json={"email": email, "password": "secret123"})
        if r.status_code == 201:
            self.client.headers["Authorization"] = f"Bearer {r.json()['access_token']}"
            self.signed_in = True
        else:
            self.signed_in = False

    @task(5)
    def browse_menu(self):
        self.client.get("/api/menu", params={"category": random.choice(["All", "Veg", "Non-Veg", "Beverage"])})

    @task(3)
    def add_to_cart(self):
        self.client.post("/api/cart/items", json={"food_item_id": random.choice(MENU_IDS)})

    @task(1)
    def place_order(self):
        if not self.signed_in:
            return
        self.client.post("/api/cart/items", json={"food_item_id": random.choice(MENU_IDS)})
        self.client.post("/api/orders")

    @task(1)
    def list_orders(self):
        if self.signed_in:
            self.client.get("/api/orders")
