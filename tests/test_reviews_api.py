from conftest import ORDER_PAYLOAD


def deliver_order(client, headers, admin_headers, product):
    client.post("/api/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)
    order = client.post("/api/orders", json=ORDER_PAYLOAD, headers=headers).json()["data"]
    for status in ("confirmed", "processing", "shipped", "delivered"):
        client.put(f"/api/admin/orders/{order['id']}/status", json={"status": status}, headers=admin_headers)
    return order


def test_verified_review_needs_delivered_order(client, make_user, make_product, admin_headers):
    user = make_user()
    headers = {"X-User-Id": str(user.id)}
    product = make_product()

    client.post("/api/cart/items", json={"product_id": product.id, "quantity": 1}, headers=headers)
    pending = client.post("/api/orders", json=ORDER_PAYLOAD, headers=headers).json()["data"]
    resp = client.post(
        "/api/reviews", json={"product_id": product.id, "order_id": pending["id"], "rating": 5}, headers=headers
    )
    assert resp.status_code == 400

    delivered = deliver_order(client, headers, admin_headers, product)
    resp = client.post(
        "/api/reviews", json={"product_id": product.id, "order_id": delivered["id"], "rating": 5}, headers=headers
    )
    assert resp.status_code == 201
    review = resp.json()["data"]
    assert review["is_verified"] is True
    assert review["is_approved"] is False


def test_duplicate_review_conflicts(client, make_user, make_product):
    user = make_user()
    headers = {"X-User-Id": str(user.id)}
    product = make_product()
    body = {"product_id": product.id, "rating": 4, "title": "Good"}

    assert client.post("/api/reviews", json=body, headers=headers).status_code == 201
    assert client.post("/api/reviews", json=body, headers=headers).status_code == 409


def test_rating_range_is_validated(client, make_user, make_product):
    user = make_user()
    resp = client.post(
        "/api/reviews", json={"product_id": make_product().id, "rating": 6}, headers={"X-User-Id": str(user.id)}
    )
    assert resp.status_code == 400


def test_moderation_updates_product_rating(client, make_user, make_product, admin_headers):
    product = make_product()
    ids = []
    for n, rating in enumerate((5, 4, 1)):
        user = make_user(email=f"reviewer{n}@example.com")
        resp = client.post(
            "/api/reviews", json={"product_id": product.id, "rating": rating}, headers={"X-User-Id": str(user.id)}
        )
        ids.append(resp.json()["data"]["id"])

    pending = client.get("/api/admin/reviews/pending", headers=admin_headers).json()["data"]
    assert len(pending) == 3

    for review_id in ids[:2]:
        client.put(f"/api/admin/reviews/{review_id}/moderate", json={"is_approved": True}, headers=admin_headers)
    client.put(f"/api/admin/reviews/{ids[2]}/moderate", json={"is_approved": False}, headers=admin_headers)

    product_json = client.get(f"/api/products/{product.id}").json()["data"]
    assert product_json["rating_average"] == 4.5
    assert product_json["review_count"] == 2

    listing = client.get(f"/api/products/{product.id}/reviews").json()["data"]
    assert len(listing["reviews"]) == 2
    assert listing["stats"]["distribution"] == {"5": 1, "4": 1, "3": 0, "2": 0, "1": 0}


def test_only_author_can_edit_or_delete(client, make_user, make_product):
    author = make_user(email="author@example.com")
    other = make_user(email="other@example.com")
    review = client.post(
        "/api/reviews", json={"product_id": make_product().id, "rating": 3}, headers={"X-User-Id": str(author.id)}
    ).json()["data"]

    url = f"/api/reviews/{review['id']}"
    assert client.put(url, json={"rating": 1}, headers={"X-User-Id": str(other.id)}).status_code == 403
    assert client.put(url, json={"rating": 4}, headers={"X-User-Id": str(author.id)}).json()["data"]["rating"] == 4

    mine = client.get("/api/reviews/me", headers={"X-User-Id": str(author.id)}).json()["data"]
    assert [r["id"] for r in mine] == [review["id"]]

    assert client.delete(url, headers={"X-User-Id": str(author.id)}).status_code == 200
    assert client.delete(url, headers={"X-User-Id": str(author.id)}).status_code == 404
