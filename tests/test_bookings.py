from app import models

BOOKING = {
    "customerName": "Ahmed Hassan",
    "customerEmail": "ahmed@example.com",
    "phone": "+20 100 123 4567",
    "address": "12 Nile Street, Zamalek",
    "dateTime": "2026-12-25T10:00:00",
}


def create_booking(client, **payload):
    response = client.post("/bookings", json={**BOOKING, **payload})
    assert response.status_code == 200, response.text
    return response.json()


def test_booking_freezes_breakdown(client, bedroom_service):
    booking = create_booking(
        client, pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    )

    assert booking["amount"] == 150000
    assert booking["amountDisplay"] == "1,500.00 EGP"
    assert booking["pricingBreakdown"]["finalPrice"] == booking["amount"]
    assert booking["status"] == "pending"
    assert booking["paymentStatus"] == "pending"
    assert booking["phone"] == "+201001234567"


def test_breakdown_unchanged_after_pricing_tables_change(client, db, bedroom_service):
    booking = create_booking(
        client, pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    )

    tier = (
        db.query(models.PricingTier)
        .filter(models.PricingTier.service_id == bedroom_service.id, models.PricingTier.bedrooms == 3)
        .one()
    )
    tier.price = 999900
    db.commit()

    stored = client.get(f"/bookings/{booking['publicId']}").json()
    assert stored["amount"] == 150000
    assert stored["pricingBreakdown"] == booking["pricingBreakdown"]

    fresh = create_booking(
        client, pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}}
    )
    assert fresh["amount"] == 999900


def test_status_update_keeps_breakdown(client, bedroom_service):
    booking = create_booking(
        client, pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 1}}
    )
    updated = client.patch(
        f"/bookings/{booking['publicId']}/status",
        json={"status": "confirmed", "paymentStatus": "success"},
    ).json()

    assert updated["status"] == "confirmed"
    assert updated["paymentStatus"] == "success"
    assert updated["pricingBreakdown"] == booking["pricingBreakdown"]
    assert updated["amount"] == booking["amount"]


def test_status_update_rejects_unknown_status(client, bedroom_service):
    booking = create_booking(
        client, pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 1}}
    )
    response = client.patch(f"/bookings/{booking['publicId']}/status", json={"status": "teleported"})
    assert response.status_code == 422


def test_booking_from_quote_keeps_quoted_price(client, db, bedroom_service):
    quote = client.post(
        "/quotes", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 2}}
    ).json()

    db.query(models.PricingTier).filter(models.PricingTier.bedrooms == 2).update({"price": 500000})
    db.commit()

    booking = create_booking(client, quoteCode=quote["quoteCode"])
    assert booking["amount"] == 120000
    assert booking["pricingBreakdown"] == quote["pricingBreakdown"]
    assert booking["quoteCode"] == quote["quoteCode"]

    reopened = client.get(f"/quotes/{quote['quoteCode']}").json()
    assert reopened["convertedToBooking"] is True
    assert reopened["bookingId"] == booking["id"]

    second = client.post("/bookings", json={**BOOKING, "quoteCode": quote["quoteCode"]})
    assert second.status_code == 409


def test_booking_needs_exactly_one_price_source(client, bedroom_service):
    neither = client.post("/bookings", json=BOOKING)
    assert neither.status_code == 422

    both = client.post(
        "/bookings",
        json={
            **BOOKING,
            "quoteCode": "QAAAAAAAAAAA",
            "pricing": {"serviceId": bedroom_service.id, "selections": {"bedrooms": 1}},
        },
    )
    assert both.status_code == 422


def test_booking_with_unknown_quote_is_404(client):
    response = client.post("/bookings", json={**BOOKING, "quoteCode": "QAAAAAAAAAAA"})
    assert response.status_code == 404


def test_booking_with_invalid_selection_is_not_stored(client, db, sqm_service):
    response = client.post(
        "/bookings",
        json={**BOOKING, "pricing": {"serviceId": sqm_service.id, "selections": {"bedrooms": 2}}},
    )
    assert response.status_code == 400
    assert db.query(models.Booking).count() == 0


def test_list_bookings_by_status(client, sqm_service):
    first = create_booking(
        client, pricing={"serviceId": sqm_service.id, "selections": {"squareMeters": 120}}
    )
    create_booking(client, pricing={"serviceId": sqm_service.id, "selections": {"squareMeters": 40}})
    client.patch(f"/bookings/{first['publicId']}/status", json={"status": "completed"})

    assert len(client.get("/bookings").json()) == 2
    completed = client.get("/bookings", params={"status": "completed"}).json()
    assert [b["publicId"] for b in completed] == [first["publicId"]]
    assert completed[0]["amount"] == 360000


def test_unknown_booking_is_404(client):
    assert client.get("/bookings/00000000-0000-0000-0000-000000000000").status_code == 404


def test_quote_converted_by_concurrent_booking_is_409(client, db, bedroom_service):
    quote = client.post(
        "/quotes", json={"serviceId": bedroom_service.id, "selections": {"bedrooms": 2}}
    ).json()
    row = db.query(models.Quote).filter(models.Quote.id == quote["id"]).one()
    assert row.converted_to_booking is False

    # Another request claims the quote after this session already loaded it
    db.query(models.Quote).filter(models.Quote.id == row.id).update(
        {models.Quote.converted_to_booking: True}, synchronize_session=False
    )

    response = client.post("/bookings", json={**BOOKING, "quoteCode": quote["quoteCode"]})
    assert response.status_code == 409
    assert db.query(models.Booking).count() == 0


def test_booking_loyalty_redemption_bounded_by_price(client, bedroom_service):
    booking = create_booking(
        client,
        pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}, "loyaltyPoints": 10**9},
    )

    breakdown = booking["pricingBreakdown"]
    assert booking["amount"] == 0
    assert breakdown["loyaltyDiscount"] == breakdown["subtotal"] == 150000
    assert breakdown["loyaltyPointsRedeemed"] == 15000


def test_partial_loyalty_redemption(client, bedroom_service):
    booking = create_booking(
        client,
        pricing={"serviceId": bedroom_service.id, "selections": {"bedrooms": 3}, "loyaltyPoints": 500},
    )
    assert booking["amount"] == 150000 - 500 * 10
    assert booking["pricingBreakdown"]["loyaltyPointsRedeemed"] == 500
