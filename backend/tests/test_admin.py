import inspect
from pathlib import Path

from storefront.models import Category, Lead, Product, ProductTag
from storefront.routers import categories, products

from conftest import bearer, png_bytes


# ============== Auth gate ==============

def test_admin_requires_token(client):
    response = client.get("/api/admin/leads")
    assert response.status_code == 401


def test_admin_rejects_malformed_header(client):
    response = client.get("/api/admin/leads", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


def test_admin_rejects_non_admin(client, user_headers):
    response = client.get("/api/admin/leads", headers=user_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Forbidden: Admin access required"}


def test_admin_rejects_token_without_email(client):
    response = client.get("/api/admin/leads", headers=bearer(None))
    assert response.status_code == 403


def test_admin_allow_list_is_case_insensitive(client):
    response = client.get("/api/admin/leads", headers=bearer("OWNER@example.COM"))
    assert response.status_code == 200


def test_expired_token_is_unauthorized(client):
    response = client.get("/api/admin/leads", headers=bearer("admin@example.com", expires_in=-60))
    assert response.status_code == 401


def test_admin_lists_leads_newest_first(client, admin_headers):
    for subject in ("First", "Second"):
        client.post("/api/leads", json={
            "firstName": "A", "lastName": "B", "email": "a@example.com",
            "subject": subject, "message": "Hi",
        })
    response = client.get("/api/admin/leads", headers=admin_headers)
    assert response.status_code == 200
    assert [lead["subject"] for lead in response.json()] == ["Second", "First"]


# ============== Categories ==============

def test_create_category_derives_slug(client, db, admin_headers):
    response = client.post(
        "/api/admin/categories",
        json={"name": "Gift Hampers & Kits", "description": "Curated sets"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "gift-hampers-kits"
    assert body["icon"] == "Gift"
    assert db.get(Category, "gift-hampers-kits").description == "Curated sets"


def test_create_category_with_explicit_id_and_duplicate(client, admin_headers):
    payload = {"id": "eco", "name": "Eco-Friendly Gifts", "icon": "Leaf"}
    assert client.post("/api/admin/categories", json=payload, headers=admin_headers).status_code == 201

    response = client.post("/api/admin/categories", json=payload, headers=admin_headers)
    assert response.status_code == 400
    assert "already exists" in response.json()["error"]


def test_create_category_requires_name(client, admin_headers):
    response = client.post("/api/admin/categories", json={"description": "x"}, headers=admin_headers)
    assert response.status_code == 400
    assert "name" in response.json()["fields"]


def test_create_category_requires_admin(client, user_headers):
    response = client.post("/api/admin/categories", json={"name": "Nope"}, headers=user_headers)
    assert response.status_code == 403


def test_update_category(client, db, catalog, admin_headers):
    response = client.patch(
        "/api/admin/categories/office",
        json={"description": "Workplace essentials", "icon": "Folder"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Office & Utility"
    assert body["description"] == "Workplace essentials"
    assert body["icon"] == "Folder"


def test_update_missing_category_is_404(client, admin_headers):
    response = client.patch("/api/admin/categories/missing", json={"name": "X"}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_category_cascades_products(client, db, catalog, admin_headers):
    response = client.delete("/api/admin/categories/drinkware", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Category deleted"}

    remaining = {p["id"] for p in client.get("/api/products").json()}
    assert catalog["bottle"] not in remaining
    assert catalog["mug"] not in remaining
    assert len(remaining) == 3
    assert db.query(ProductTag).filter(ProductTag.product_id.in_([catalog["bottle"], catalog["mug"]])).count() == 0


def test_delete_missing_category_is_404(client, admin_headers):
    assert client.delete("/api/admin/categories/missing", headers=admin_headers).status_code == 404


# ============== Products ==============

def product_form(**overrides):
    form = {
        "name": "Branded Pen Set",
        "description": "Metal pens with engraving",
        "price": "249.50",
        "categoryId": "corporate",
        "inStock": "true",
        "defaultQuantity": "25",
        "tags": "Bulk Order, Customizable, ,Bulk Order",
    }
    form.update(overrides)
    return form


def stored_file(settings, reference: str) -> Path:
    return Path(settings.upload_dir) / Path(reference).name


def test_create_product_with_image(client, db, catalog, settings, admin_headers):
    response = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("pens.png", png_bytes(size=(1600, 800)), "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Branded Pen Set"
    assert body["price"] == 249.5
    assert body["defaultQuantity"] == 25
    assert body["tags"] == ["Bulk Order", "Customizable"]
    assert body["category"]["id"] == "corporate"
    assert body["image"].startswith("/uploads/")

    path = stored_file(settings, body["image"])
    assert path.exists()

    from PIL import Image
    with Image.open(path) as img:
        assert max(img.size) <= 1000

    uploaded = client.get(body["image"])
    assert uploaded.status_code == 200


def test_create_product_without_image_uses_defaults(client, catalog, admin_headers):
    response = client.post(
        "/api/admin/products",
        data={"name": "Sticker Pack", "price": "0", "categoryId": "office", "defaultQuantity": "many"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["image"] is None
    assert body["inStock"] is True
    assert body["defaultQuantity"] == 1
    assert body["tags"] == []


def test_create_product_markup_stripped(client, catalog, admin_headers):
    response = client.post(
        "/api/admin/products",
        data=product_form(name="<b>Pen</b> Set", description="<script>x</script>Nice"),
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["name"] == "Pen Set"
    assert response.json()["description"] == "Nice"


def test_create_product_validation(client, db, catalog, admin_headers):
    bad_price = client.post("/api/admin/products", data=product_form(price="abc"), headers=admin_headers)
    assert bad_price.status_code == 400
    assert "price" in bad_price.json()["fields"]

    negative = client.post("/api/admin/products", data=product_form(price="-1"), headers=admin_headers)
    assert negative.status_code == 400

    form = product_form()
    del form["name"]
    missing = client.post("/api/admin/products", data=form, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing required fields"

    assert db.query(Product).count() == 5


def test_create_product_unknown_category(client, catalog, admin_headers):
    response = client.post("/api/admin/products", data=product_form(categoryId="nope"), headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Category not found"}


def test_create_product_rejects_bad_upload_type(client, db, catalog, settings, admin_headers):
    response = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert "allowed" in response.json()["error"]
    assert db.query(Product).count() == 5
    upload_dir = Path(settings.upload_dir)
    assert not upload_dir.exists() or not any(upload_dir.iterdir())


def test_create_product_rejects_oversized_upload(client, db, catalog, settings, admin_headers):
    too_big = b"0" * (settings.max_upload_bytes + 1)
    response = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("huge.png", too_big, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert db.query(Product).count() == 5


def test_create_product_rejects_fake_image(client, catalog, admin_headers):
    response = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("fake.jpg", b"not really a jpeg", "image/jpeg")},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_update_product_fields(client, db, catalog, admin_headers):
    response = client.patch(
        f"/api/admin/products/{catalog['mug']}",
        data={"price": "19.99", "inStock": "false", "tags": "Gift"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Ceramic Mug"
    assert body["price"] == 19.99
    assert body["inStock"] is False
    assert body["tags"] == ["Gift"]


def test_update_product_replaces_image(client, catalog, settings, admin_headers):
    created = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("a.png", png_bytes(), "image/png")},
        headers=admin_headers,
    ).json()
    old_path = stored_file(settings, created["image"])
    assert old_path.exists()

    response = client.patch(
        f"/api/admin/products/{created['id']}",
        files={"image": ("b.webp", png_bytes(color=(0, 0, 255)), "image/webp")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    new_image = response.json()["image"]
    assert new_image != created["image"]
    assert stored_file(settings, new_image).exists()
    assert not old_path.exists()


def test_update_product_unknown_category(client, catalog, admin_headers):
    response = client.patch(
        f"/api/admin/products/{catalog['mug']}", data={"categoryId": "nope"}, headers=admin_headers
    )
    assert response.status_code == 404


def test_delete_product_removes_image(client, db, catalog, settings, admin_headers):
    created = client.post(
        "/api/admin/products",
        data=product_form(),
        files={"image": ("a.jpg", png_bytes(), "image/jpeg")},
        headers=admin_headers,
    ).json()
    path = stored_file(settings, created["image"])
    assert path.exists()

    response = client.delete(f"/api/admin/products/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "Product deleted"}
    assert not path.exists()
    assert client.get(f"/api/products/{created['id']}").status_code == 404


def test_delete_product_with_missing_local_file(client, db, catalog, admin_headers):
    product = db.get(Product, catalog["organizer"])
    product.image = "/uploads/already-gone.jpg"
    db.commit()

    response = client.delete(f"/api/admin/products/{catalog['organizer']}", headers=admin_headers)
    assert response.status_code == 200


def test_delete_missing_product_is_404(client, admin_headers):
    assert client.delete("/api/admin/products/missing", headers=admin_headers).status_code == 404


def test_leads_are_not_listed_publicly(client, db):
    db.add(Lead(first_name="A", last_name="B", email="a@example.com", subject="S", message="M"))
    db.commit()
    assert client.get("/api/admin/leads").status_code == 401


def test_admin_mutations_run_off_the_event_loop():
    # FastAPI runs plain functions in its threadpool
    handlers = [
        categories.create_category,
        categories.update_category,
        categories.delete_category,
        products.create_product,
        products.update_product,
        products.delete_product,
    ]
    for handler in handlers:
        assert not inspect.iscoroutinefunction(handler), handler.__name__
