from decimal import Decimal

import pytest

from badminton_shop.services.chat_service import detect_intent, extract_price_band
from conftest import ORDER_PAYLOAD


@pytest.mark.parametrize(
    "text, intent",
    [
        ("Xin chào shop", "greeting"),
        ("Tôi muốn tìm vợt cầu lông", "racket"),
        ("Cho tôi xem giày cầu lông", "shoes"),
        ("Có chương trình khuyến mãi nào không?", "promotion"),
        ("Phí giao hàng là bao nhiêu?", "shipping"),
        ("Thanh toán bằng MoMo được không", "payment"),
        ("Kiểm tra giúp mình ORD1700000000000ABC123", "order_tracking"),
        ("Cảm ơn nhé", "farewell"),
        ("asdfgh", "fallback"),
    ],
)
def test_detect_intent(text, intent):
    assert detect_intent(text) == intent


def test_price_bands():
    assert extract_price_band("vợt dưới 2 triệu") == (None, Decimal("2000000"))
    assert extract_price_band("giày trên 800k") == (Decimal("800000"), None)
    assert extract_price_band("vợt từ 1 đến 2.5 triệu") == (Decimal("1000000"), Decimal("2500000"))
    assert extract_price_band("vợt yonex") == (None, None)


@pytest.mark.parametrize(
    "text, upper",
    [
        ("vợt dưới 500.000đ", Decimal("500000")),
        ("vợt dưới 1.500.000", Decimal("1500000")),
        ("vợt dưới 500,000 đồng", Decimal("500000")),
        ("vợt dưới 1,5 triệu", Decimal("1500000")),
        ("vợt dưới 500k", Decimal("500000")),
        ("vợt dưới 3", Decimal("3000000")),
    ],
)
def test_upper_price_formats(text, upper):
    assert extract_price_band(text) == (None, upper)


def test_range_with_thousands_separators():
    assert extract_price_band("giày 800.000 - 1.200.000") == (Decimal("800000"), Decimal("1200000"))


def test_product_question_returns_matching_products(client, make_product, make_brand):
    yonex = make_brand("Yonex")
    make_brand("Victor")
    make_product(name="vợt Yonex Astrox 77", price="3000000", brand=yonex)
    make_product(name="vợt Yonex Nanoflare 001", price="1200000", brand=yonex)
    make_product(name="vợt Yonex hết hàng", price="1000000", brand=yonex, stock=0)

    session = client.post("/api/chat/sessions").json()["data"]
    assert session["greeting"]["sender"] == "assistant"

    resp = client.post(
        f"/api/chat/sessions/{session['session_key']}/messages",
        json={"message": "Shop có vợt Yonex dưới 2 triệu không?"},
    )
    data = resp.json()["data"]
    assert data["intent"] == "racket"
    assert [p["name"] for p in data["products"]] == ["vợt Yonex Nanoflare 001"]
    assert data["products"][0]["brand_name"] == "Yonex"
    assert "1.200.000đ" in data["message"]["text"]


def test_order_tracking_reply(client, make_product):
    client.post("/api/cart/items", json={"product_id": make_product().id, "quantity": 1}, headers={"X-Session-Id": "chat-guest-01"})
    order = client.post("/api/orders", json=ORDER_PAYLOAD, headers={"X-Session-Id": "chat-guest-01"}).json()["data"]

    key = client.post("/api/chat/sessions").json()["data"]["session_key"]
    reply = client.post(
        f"/api/chat/sessions/{key}/messages", json={"message": f"đơn {order['order_number']} tới đâu rồi"}
    ).json()["data"]
    assert reply["intent"] == "order_tracking"
    assert order["order_number"] in reply["message"]["text"]
    assert "Chờ xác nhận" in reply["message"]["text"]


def test_history_and_ending_a_session(client):
    key = client.post("/api/chat/sessions").json()["data"]["session_key"]
    client.post(f"/api/chat/sessions/{key}/messages", json={"message": "hello"})

    history = client.get(f"/api/chat/sessions/{key}/messages").json()["data"]
    assert [m["sender"] for m in history] == ["assistant", "user", "assistant"]

    client.post(f"/api/chat/sessions/{key}/end")
    assert client.post(f"/api/chat/sessions/{key}/messages", json={"message": "hello"}).status_code == 400
    assert client.get("/api/chat/sessions/unknown/messages").status_code == 404


def test_quick_replies(client):
    replies = client.get("/api/chat/quick-replies").json()["data"]
    assert all({"title", "message"} <= set(r) for r in replies)
