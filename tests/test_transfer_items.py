from tests.transfer_helpers import TRANSFERS_URL, create_product, create_transfer, qty, seed_world, ship


def _items_url(transfer_id, item_id=None):
    base = f"{TRANSFERS_URL}/{transfer_id}/items"
    return f"{base}/{item_id}" if item_id is not None else base


def test_add_list_get_update_remove_items(client, db_session):
    world = seed_world(db_session)
    second_product = create_product(db_session, sku="SKU-0002")
    created = create_transfer(client, world, quantity="5")
    first_id = created["items"][0]["id"]

    added = client.post(
        _items_url(created["id"]),
        json={"product_id": second_product.id, "quantity_requested": "4", "notes": "top shelf"},
        headers=world.headers,
    )
    assert added.status_code == 201, added.text
    added_item = added.json()
    assert added_item["notes"] == "top shelf"
    assert qty(added_item["quantity_shipped"]) == 0

    listing = client.get(_items_url(created["id"]), headers=world.headers).json()
    assert [row["id"] for row in listing["rows"]] == [first_id, added_item["id"]]

    updated = client.patch(
        _items_url(created["id"], added_item["id"]),
        json={"quantity_requested": "6", "notes": None},
        headers=world.headers,
    )
    assert updated.status_code == 200
    assert qty(updated.json()["quantity_requested"]) == qty("6")
    assert updated.json()["notes"] is None

    fetched = client.get(_items_url(created["id"], added_item["id"]), headers=world.headers)
    assert qty(fetched.json()["quantity_requested"]) == qty("6")

    removed = client.delete(_items_url(created["id"], first_id), headers=world.headers)
    assert removed.status_code == 204
    remaining = client.get(f"{TRANSFERS_URL}/{created['id']}", headers=world.headers).json()["items"]
    assert [item["id"] for item in remaining] == [added_item["id"]]


def test_item_mutations_are_validated(client, db_session):
    world = seed_world(db_session)
    created = create_transfer(client, world, quantity="5")
    item_id = created["items"][0]["id"]

    duplicate = client.post(
        _items_url(created["id"]),
        json={"product_id": world.product.id, "quantity_requested": "1"},
        headers=world.headers,
    )
    zero = client.patch(_items_url(created["id"], item_id), json={"quantity_requested": "0"}, headers=world.headers)
    last = client.delete(_items_url(created["id"], item_id), headers=world.headers)
    unknown_product = client.post(
        _items_url(created["id"]),
        json={"product_id": 404, "quantity_requested": "1"},
        headers=world.headers,
    )

    assert duplicate.status_code == 400
    assert zero.status_code == 400
    assert last.status_code == 400
    assert last.json()["code"] == "INVALID_REQUEST"
    assert unknown_product.status_code == 422


def test_items_belong_to_their_transfer(client, db_session):
    world = seed_world(db_session)
    first = create_transfer(client, world)
    second = create_transfer(client, world)
    foreign_item_id = second["items"][0]["id"]

    fetched = client.get(_items_url(first["id"], foreign_item_id), headers=world.headers)
    patched = client.patch(
        _items_url(first["id"], foreign_item_id),
        json={"quantity_requested": "2"},
        headers=world.headers,
    )

    assert fetched.status_code == 404
    assert patched.status_code == 404
    assert client.get(_items_url(999), headers=world.headers).status_code == 404


def test_item_mutations_forbidden_after_shipment(client, db_session):
    world = seed_world(db_session)
    second_product = create_product(db_session, sku="SKU-0002")
    created = create_transfer(client, world, quantity="5")
    item_id = created["items"][0]["id"]
    assert ship(client, world, created["id"], [(item_id, "5")]).status_code == 200

    responses = [
        client.post(
            _items_url(created["id"]),
            json={"product_id": second_product.id, "quantity_requested": "1"},
            headers=world.headers,
        ),
        client.patch(_items_url(created["id"], item_id), json={"quantity_requested": "9"}, headers=world.headers),
        client.delete(_items_url(created["id"], item_id), headers=world.headers),
    ]

    for response in responses:
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
    reads = client.get(_items_url(created["id"], item_id), headers=world.headers)
    assert reads.status_code == 200
    assert qty(reads.json()["quantity_shipped"]) == qty("5")
