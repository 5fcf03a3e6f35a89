import re
from datetime import datetime, timedelta

from app import models
from app.domain.quotes.service import QUOTE_CODE_ALPHABET, generate_quote_code


def create_quote(client, service, **extra):
    payload = {"serviceId": service.id, "selections": {"bedrooms": 2}, **extra}
    response = client.post("/quotes", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def test_quote_code_format():
    codes = {generate_quote_code() for _ in range(200)}
    assert len(codes) == 200
    for code in codes:
        assert len(code) == 12
        assert code[0] == "Q"
        assert set(code[1:]) <= set(QUOTE_CODE_ALPHABET)


def test_create_quote_prices_server_side(client, bedroom_service):
    quote = create_quote(
        client,
        bedroom_service,
        customerName="Mona",
        customerPhone="010 1234 5678",
        customerEmail="Mona@Example.com",
    )

    assert re.fullmatch(r"Q[A-Z2-9]{11}", quote["quoteCode"])
    assert quote["totalPrice"] == 120000
    assert quote["totalPriceDisplay"] == "1,200.00 EGP"
    assert quote["pricingBreakdown"]["finalPrice"] == 120000
    assert quote["selections"]["selections"]["bedrooms"] == 2
    assert quote["customerPhone"] == "+201012345678"
    assert quote["customerEmail"] == "mona@example.com"
    assert quote["viewCount"] == 0
    assert quote["convertedToBooking"] is False
    assert quote["shareUrl"].endswith(f"/quote/{quote['quoteCode']}")

    expires_in = datetime.fromisoformat(quote["expiresAt"]) - datetime.utcnow()
    assert timedelta(days=29) < expires_in <= timedelta(days=30)


def test_create_quote_rejects_bad_phone(client, bedroom_service):
    response = client.post(
        "/quotes",
        json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 1}, "customerPhone": "12345"},
    )
    assert response.status_code == 422


def test_create_quote_with_invalid_selection(client, bedroom_service):
    response = client.post("/quotes", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 9}})
    assert response.status_code == 422
    assert response.json()["error"] == "ConfigurationError"


def test_viewing_quote_counts_views(client, bedroom_service):
    code = create_quote(client, bedroom_service)["quoteCode"]

    assert client.get(f"/quotes/{code}").json()["viewCount"] == 1
    assert client.get(f"/quotes/{code.lower()}").json()["viewCount"] == 2


def test_unknown_quote_is_404(client):
    assert client.get("/quotes/QAAAAAAAAAAA").status_code == 404


def test_expired_quote_is_410(client, db, bedroom_service):
    quote = create_quote(client, bedroom_service)
    row = db.query(models.Quote).filter(models.Quote.id == quote["id"]).one()
    row.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    assert client.get(f"/quotes/{quote['quoteCode']}").status_code == 410
    update = client.put(
        f"/quotes/{quote['id']}", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    )
    assert update.status_code == 410


def test_update_quote_reprices(client, bedroom_service):
    quote = create_quote(client, bedroom_service)
    updated = client.put(
        f"/quotes/{quote['id']}", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    ).json()

    assert updated["quoteCode"] == quote["quoteCode"]
    assert updated["totalPrice"] == 150000
    assert updated["expiresAt"] == quote["expiresAt"]


def test_converted_quote_is_locked(client, bedroom_service):
    quote = create_quote(client, bedroom_service)

    converted = client.post(f"/quotes/{quote['id']}/convert")
    assert converted.json()["convertedToBooking"] is True
    assert client.post(f"/quotes/{quote['id']}/convert").status_code == 200

    update = client.put(
        f"/quotes/{quote['id']}", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    )
    assert update.status_code == 409


def test_convert_unknown_quote_is_404(client):
    assert client.post("/quotes/999/convert").status_code == 404
