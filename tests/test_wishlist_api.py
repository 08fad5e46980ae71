def test_add_list_check_and_remove(client, make_user, make_product):
    user = make_user()
    headers = {"X-User-Id": str(user.id)}
    racket = make_product(name="Vợt Lining Axforce 80")

    first = client.post("/api/wishlist", json={"product_id": racket.id}, headers=headers)
    assert first.status_code == 201
    assert first.json()["data"]["product"]["name"] == "Vợt Lining Axforce 80"

    again = client.post("/api/wishlist", json={"product_id": racket.id}, headers=headers)
    assert again.status_code == 200
    assert again.json()["message"] == "Product already in wishlist"

    listing = client.get("/api/wishlist", headers=headers).json()
    assert [i["product_id"] for i in listing["data"]] == [racket.id]
    assert listing["pagination"]["total"] == 1
    assert client.get("/api/wishlist/count", headers=headers).json()["data"] == {"count": 1}
    assert client.get(f"/api/wishlist/check/{racket.id}", headers=headers).json()["data"] == {"in_wishlist": True}

    assert client.delete(f"/api/wishlist/{racket.id}", headers=headers).status_code == 200
    assert client.get("/api/wishlist/count", headers=headers).json()["data"] == {"count": 0}
    assert client.delete(f"/api/wishlist/{racket.id}", headers=headers).status_code == 404


def test_wishlists_are_per_user(client, make_user, make_product):
    owner = make_user(email="owner@example.com")
    other = make_user(email="other@example.com")
    racket = make_product()

    client.post("/api/wishlist", json={"product_id": racket.id}, headers={"X-User-Id": str(owner.id)})

    assert client.get("/api/wishlist", headers={"X-User-Id": str(other.id)}).json()["data"] == []


def test_unknown_product_is_404(client, make_user):
    user = make_user()
    resp = client.post("/api/wishlist", json={"product_id": 999}, headers={"X-User-Id": str(user.id)})
    assert resp.status_code == 404


def test_wishlist_needs_a_user(client):
    assert client.get("/api/wishlist").status_code == 401
