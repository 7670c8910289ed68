from datetime import date, datetime, timezone

from tests.transfer_helpers import (
    TRANSFERS_URL,
    create_product,
    create_shop,
    create_transfer,
    create_user,
    create_variant,
    create_warehouse,
    auth_headers,
    seed_world,
    ship,
    transfer_payload,
)


def _post(client, world, payload):
    return client.post(TRANSFERS_URL, json=payload, headers=world.headers)


def test_create_requires_one_location_per_side(client, db_session):
    world = seed_world(db_session)
    payload = transfer_payload(world, destination_shop_id=None)

    response = _post(client, world, payload)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["details"]["field"] == "destination"


def test_create_rejects_same_source_and_destination(client, db_session):
    world = seed_world(db_session)
    payload = transfer_payload(world, destination_shop_id=None, destination_warehouse_id=world.warehouse.id)

    response = _post(client, world, payload)

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_warehouse_to_warehouse_transfer_is_allowed(client, db_session):
    world = seed_world(db_session)
    other = create_warehouse(db_session, code="WH-2")
    payload = transfer_payload(world, destination_shop_id=None, destination_warehouse_id=other.id)

    response = _post(client, world, payload)

    assert response.status_code == 201
    assert response.json()["destination"]["code"] == "WH-2"


def test_create_rejects_unknown_or_inactive_locations(client, db_session):
    world = seed_world(db_session)
    closed_shop = create_shop(db_session, code="SHOP-CLOSED", is_active=False)

    missing = _post(client, world, transfer_payload(world, source_warehouse_id=999))
    inactive = _post(client, world, transfer_payload(world, destination_shop_id=closed_shop.id))

    assert missing.status_code == 422
    assert missing.json()["code"] == "REFERENCE_NOT_FOUND"
    assert missing.json()["details"]["id"] == 999
    assert inactive.status_code == 422
    assert inactive.json()["code"] == "REFERENCE_NOT_FOUND"


def test_create_validates_items(client, db_session):
    world = seed_world(db_session)
    other_product = create_product(db_session, sku="SKU-OTHER")
    foreign_variant = create_variant(db_session, product=other_product, sku="SKU-OTHER-RED")

    cases = [
        ([], 400, "INVALID_REQUEST"),
        ([{"quantity_requested": "1"}], 400, "INVALID_REQUEST"),
        ([{"product_id": 999, "quantity_requested": "1"}], 422, "REFERENCE_NOT_FOUND"),
        ([{"product_id": world.product.id, "quantity_requested": "0"}], 400, "INVALID_REQUEST"),
        ([{"product_id": world.product.id, "quantity_requested": "-2"}], 400, "INVALID_REQUEST"),
        ([{"product_id": world.product.id, "quantity_requested": "1.0001"}], 400, "INVALID_REQUEST"),
        (
            [{"product_id": world.product.id, "product_variant_id": foreign_variant.id, "quantity_requested": "1"}],
            400,
            "INVALID_REQUEST",
        ),
        (
            [{"product_id": world.product.id, "product_variant_id": 999, "quantity_requested": "1"}],
            422,
            "REFERENCE_NOT_FOUND",
        ),
        (
            [
                {"product_id": world.product.id, "quantity_requested": "1"},
                {"product_id": world.product.id, "quantity_requested": "2"},
            ],
            400,
            "INVALID_REQUEST",
        ),
    ]
    for items, status_code, code in cases:
        response = _post(client, world, transfer_payload(world, items=items))
        assert response.status_code == status_code, items
        assert response.json()["code"] == code, items

    listing = client.get(TRANSFERS_URL, headers=world.headers)
    assert listing.json()["total"] == 0


def test_create_with_variant_and_item_notes(client, db_session):
    world = seed_world(db_session)
    variant = create_variant(db_session, product=world.product, sku="SKU-0001-BLUE")

    created = create_transfer(
        client,
        world,
        items=[
            {
                "product_id": world.product.id,
                "product_variant_id": variant.id,
                "quantity_requested": "2.5",
                "notes": "fragile",
            }
        ],
    )

    item = created["items"][0]
    assert item["product_variant"]["sku_variant"] == "SKU-0001-BLUE"
    assert item["product"]["sku"] == "SKU-0001"
    assert item["notes"] == "fragile"


def test_request_date_defaults_to_today(client, db_session):
    world = seed_world(db_session)
    payload = transfer_payload(world)
    payload.pop("request_date")

    response = _post(client, world, payload)

    assert response.status_code == 201
    assert date.fromisoformat(response.json()["request_date"]) == datetime.now(timezone.utc).date()


def test_transfer_numbers_are_unique(client, db_session):
    world = seed_world(db_session)
    numbers = {create_transfer(client, world)["transfer_number"] for _ in range(5)}
    assert len(numbers) == 5


def test_detail_and_not_found(client, db_session):
    world = seed_world(db_session)
    created = create_transfer(client, world)

    detail = client.get(f"{TRANSFERS_URL}/{created['id']}", headers=world.headers)
    without_items = client.get(f"{TRANSFERS_URL}/{created['id']}?include_items=false", headers=world.headers)
    missing = client.get(f"{TRANSFERS_URL}/999", headers=world.headers)

    assert detail.status_code == 200
    assert detail.json()["transfer_number"] == created["transfer_number"]
    assert len(detail.json()["items"]) == 1
    assert without_items.json()["items"] is None
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


def test_list_filters_search_and_pagination(client, db_session):
    world = seed_world(db_session)
    second_shop = create_shop(db_session, code="SHOP-02")
    other_user = create_user(db_session, suffix="other")
    other_headers = auth_headers(other_user)

    first = create_transfer(client, world, notes="urgent restock", request_date="2026-03-01")
    second = create_transfer(client, world, destination_shop_id=second_shop.id, request_date="2026-03-05")
    third_response = client.post(
        TRANSFERS_URL,
        json=transfer_payload(world, request_date="2026-03-10"),
        headers=other_headers,
    )
    assert third_response.status_code == 201
    third = third_response.json()
    assert ship(client, world, second["id"], [(second["items"][0]["id"], "5")]).status_code == 200

    def ids(params: str = "") -> list[int]:
        response = client.get(f"{TRANSFERS_URL}{params}", headers=world.headers)
        assert response.status_code == 200, response.text
        return [row["id"] for row in response.json()["rows"]]

    assert set(ids()) == {first["id"], second["id"], third["id"]}
    assert ids("?status=IN_TRANSIT") == [second["id"]]
    assert ids(f"?destination_shop_id={second_shop.id}") == [second["id"]]
    assert set(ids(f"?source_warehouse_id={world.warehouse.id}")) == {first["id"], second["id"], third["id"]}
    assert ids(f"?requested_by_user_id={other_user.id}") == [third["id"]]
    assert ids(f"?shipped_by_user_id={world.user.id}") == [second["id"]]
    assert ids("?request_date_from=2026-03-02&request_date_to=2026-03-06") == [second["id"]]
    assert ids("?q=urgent") == [first["id"]]
    assert ids(f"?q={third['transfer_number']}") == [third["id"]]
    assert ids("?sort=request_date") == [first["id"], second["id"], third["id"]]
    assert ids("?sort=-request_date") == [third["id"], second["id"], first["id"]]

    page = client.get(f"{TRANSFERS_URL}?sort=request_date&limit=2&offset=1", headers=world.headers).json()
    assert page["total"] == 3
    assert page["limit"] == 2
    assert page["offset"] == 1
    assert [row["id"] for row in page["rows"]] == [second["id"], third["id"]]
    assert page["rows"][0]["items"] is None

    with_items = client.get(f"{TRANSFERS_URL}?include_items=true&status=IN_TRANSIT", headers=world.headers).json()
    assert len(with_items["rows"][0]["items"]) == 1


def test_list_rejects_bad_query_parameters(client, db_session):
    world = seed_world(db_session)

    bad_sort = client.get(f"{TRANSFERS_URL}?sort=-password", headers=world.headers)
    bad_status = client.get(f"{TRANSFERS_URL}?status=LOST", headers=world.headers)
    bad_limit = client.get(f"{TRANSFERS_URL}?limit=100000", headers=world.headers)

    assert bad_sort.status_code == 400
    assert bad_sort.json()["code"] == "INVALID_REQUEST"
    assert bad_status.status_code == 422
    assert bad_status.json()["code"] == "VALIDATION_ERROR"
    assert bad_limit.status_code == 422


def test_create_rejects_quantities_beyond_storage_range(client, db_session):
    world = seed_world(db_session)

    for value in ("1e30", "1e13"):
        response = _post(client, world, transfer_payload(world, quantity=value))

        assert response.status_code == 400, value
        body = response.json()
        assert body["code"] == "INVALID_REQUEST"
        assert body["details"]["field"] == "items[0].quantity_requested"


def test_search_treats_wildcards_literally(client, db_session):
    world = seed_world(db_session)
    marked = create_transfer(client, world, notes="50% of pallet_a")
    create_transfer(client, world, notes="Weekly replenishment")

    def ids(q: str) -> list[int]:
        response = client.get(TRANSFERS_URL, params={"q": q}, headers=world.headers)
        assert response.status_code == 200, response.text
        return [row["id"] for row in response.json()["rows"]]

    assert ids("_") == [marked["id"]]
    assert ids("%") == [marked["id"]]
    assert ids("t_a") == [marked["id"]]
    assert ids("\\") == []
    assert ids("y_r") == []
