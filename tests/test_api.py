# Storefront API Tests
#
# Tests for:
# - Admin login, verify, logout and login throttling
# - Authorization on admin routes
# - Category / product routes and their error payloads
# - Image upload, serving and orphan cleanup
# - Public storefront listing

import json
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, PNG_BYTES
from configs.settings import Settings
from runtime.api.server import create_app


pytestmark = pytest.mark.api


class TestAuthentication:

    def test_login_verify_logout(self, client: TestClient):
        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        )
        assert response.status_code == 200
        token = response.json()["token"]

        verify = client.get("/api/admin/verify", headers={"Authorization": f"Bearer {token}"})
        assert verify.json() == {
            "valid": True,
            "user": {"id": 1, "username": ADMIN_USERNAME, "role": "admin"},
        }
        # A bare token is accepted as well.
        assert client.get("/api/admin/verify", headers={"Authorization": token}).status_code == 200

        assert client.post("/api/admin/logout", headers={"Authorization": token}).json() == {
            "success": True
        }
        after = client.get("/api/admin/verify", headers={"Authorization": token})
        assert after.status_code == 401
        assert after.json() == {"valid": False}

    def test_bad_credentials(self, client: TestClient):
        response = client.post(
            "/api/admin/login", json={"username": ADMIN_USERNAME, "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_login_is_rate_limited(self, client: TestClient, app_settings: Settings):
        for _ in range(app_settings.login_max_attempts):
            client.post("/api/admin/login", json={"username": "x", "password": "y"})

        response = client.post(
            "/api/admin/login",
            json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
        )

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/stats"),
            ("get", "/api/admin/products"),
            ("get", "/api/admin/categories"),
            ("get", "/api/admin/orders"),
            ("post", "/api/admin/cleanup-images"),
            ("delete", "/api/admin/products/1"),
        ],
    )
    def test_admin_routes_require_session(self, client: TestClient, method, path):
        response = getattr(client, method)(path, headers={"Authorization": "Bearer bogus"})

        assert response.status_code == 401


class TestCatalogRoutes:

    def test_product_lifecycle(self, client: TestClient, admin_headers: Dict[str, str], app_settings):
        created = client.post(
            "/api/admin/products",
            json={"name": "Tee", "price": "15", "category": "Shirts", "stock": 2},
            headers=admin_headers,
        )
        assert created.status_code == 200, created.text
        product = created.json()["product"]
        assert product["id"] == 1 and product["createdAt"]

        updated = client.put(
            "/api/admin/products/1", json={"status": "inactive"}, headers=admin_headers
        )
        assert updated.json()["product"]["status"] == "inactive"

        public = client.get("/api/products").json()
        assert public["products"] == [] and public["pagination"]["total"] == 0

        admin_list = client.get("/api/admin/products", headers=admin_headers).json()
        assert admin_list["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}

        on_disk = json.loads(app_settings.data_file.read_text(encoding="utf-8"))
        assert on_disk["products"][0]["status"] == "inactive"

        assert client.delete("/api/admin/products/1", headers=admin_headers).status_code == 200
        assert client.delete("/api/admin/products/1", headers=admin_headers).status_code == 404

    def test_validation_errors_are_listed(self, client: TestClient, admin_headers):
        response = client.post(
            "/api/admin/products", json={"price": -5}, headers=admin_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid data"
        assert len(body["details"]) >= 2

    def test_category_in_use_reports_count(self, client: TestClient, admin_headers):
        category = client.post(
            "/api/admin/categories", json={"name": "Shirts"}, headers=admin_headers
        ).json()["category"]
        client.post(
            "/api/admin/products",
            json={"name": "Tee", "price": 1, "category": "Shirts"},
            headers=admin_headers,
        )

        response = client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["count"] == 1
        assert [c["name"] for c in client.get("/api/categories").json()] == ["Shirts"]

    def test_dashboard_endpoints(self, client: TestClient, admin_headers):
        client.post(
            "/api/admin/products", json={"name": "Tee", "price": 1, "sales": 4}, headers=admin_headers
        )

        stats = client.get("/api/admin/stats", headers=admin_headers).json()
        activity = client.get("/api/admin/activity", headers=admin_headers).json()
        popular = client.get("/api/admin/popular-products", headers=admin_headers).json()

        assert stats["totalProducts"] == 1
        assert activity[0]["product"] == "Tee" and activity[0]["action"] == "Added"
        assert popular == [{"name": "Tee", "sales": 4}]
        assert client.get("/api/admin/orders", headers=admin_headers).json() == []


class TestImages:

    def test_upload_serve_and_cleanup(self, client: TestClient, admin_headers, app_settings):
        client.post("/api/admin/products", json={"name": "Tee", "price": 1}, headers=admin_headers)

        uploaded = client.post(
            "/api/admin/products/1/image",
            files={"productImage": ("tee.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )
        assert uploaded.status_code == 200, uploaded.text
        image_path = uploaded.json()["product"]["image"]

        served = client.get(image_path)
        assert served.status_code == 200
        assert served.content == PNG_BYTES

        (app_settings.uploads_dir / "stray.png").write_bytes(b"x")
        scan = client.get("/api/admin/check-orphaned-images", headers=admin_headers).json()
        assert scan["orphanedFiles"] == ["stray.png"]

        cleanup = client.post("/api/admin/cleanup-images", headers=admin_headers).json()
        assert cleanup["details"]["deletedFiles"] == ["stray.png"]
        assert cleanup["details"]["deletedCount"] == 1
        assert client.get(image_path).status_code == 200

    def test_rejects_non_images(self, client: TestClient, admin_headers):
        client.post("/api/admin/products", json={"name": "Tee", "price": 1}, headers=admin_headers)

        response = client.post(
            "/api/admin/products/1/image",
            files={"productImage": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_missing_image_is_404(self, client: TestClient):
        assert client.get("/uploads/products/nothing.png").status_code == 404


def test_healthz(client: TestClient):
    assert client.get("/healthz").json() == {"status": "ok"}


def _write_document(settings: Settings, document) -> None:
    settings.data_file.parent.mkdir(parents=True, exist_ok=True)
    text = document if isinstance(document, str) else json.dumps(document)
    settings.data_file.write_text(text, encoding="utf-8")


def _stock_images(settings: Settings, *names: str) -> None:
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    for name in names:
        (settings.uploads_dir / name).write_bytes(PNG_BYTES)


class TestLifecycle:
    """Startup cleanup and the final save, including unreadable data files."""

    def test_startup_removes_only_orphans(self, app_settings: Settings):
        _stock_images(app_settings, "cap.png", "stray.png")
        _write_document(
            app_settings,
            {"products": [{"id": 1, "name": "Cap", "price": 5, "image": "/uploads/products/cap.png"}]},
        )

        with TestClient(create_app(app_settings)):
            assert (app_settings.uploads_dir / "cap.png").exists()
            assert not (app_settings.uploads_dir / "stray.png").exists()

    def test_shutdown_writes_in_memory_document(self, app_settings: Settings):
        app = create_app(app_settings)

        with TestClient(app) as client:
            login = client.post(
                "/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
            )
            headers = {"Authorization": f"Bearer {login.json()['token']}"}
            client.post("/api/admin/products", json={"name": "Tee", "price": 3}, headers=headers)
            # Not saved by any route; only the shutdown save can persist it.
            app.state.context.store.document.stats.total_revenue = 42.0

        on_disk = json.loads(app_settings.data_file.read_text(encoding="utf-8"))
        assert on_disk == app.state.context.store.document.to_json_dict()
        assert on_disk["stats"]["totalRevenue"] == 42.0

    def test_legacy_document_with_nulls_is_kept(self, app_settings: Settings):
        _stock_images(app_settings, "cap.png")
        _write_document(
            app_settings,
            {
                "categories": [{"id": 1, "name": "Caps"}],
                "products": [
                    {
                        "id": 1,
                        "name": "Cap",
                        "category": "Caps",
                        "price": 5,
                        "stock": None,
                        "image": "/uploads/products/cap.png",
                        "sizes": ["S", "M"],
                    }
                ],
            },
        )

        with TestClient(create_app(app_settings)) as client:
            listed = client.get("/api/products").json()
            assert [p["name"] for p in listed["products"]] == ["Cap"]

        assert (app_settings.uploads_dir / "cap.png").exists()
        on_disk = json.loads(app_settings.data_file.read_text(encoding="utf-8"))
        assert [c["name"] for c in on_disk["categories"]] == ["Caps"]
        product = on_disk["products"][0]
        assert product["stock"] == 0 and product["sizes"] == ["S", "M"]

    def test_unreadable_document_is_left_untouched(self, app_settings: Settings):
        _stock_images(app_settings, "cap.png")
        _write_document(app_settings, '{"products": [{"id": 1, "name": "Cap"')

        with TestClient(create_app(app_settings)):
            pass

        assert (app_settings.uploads_dir / "cap.png").exists()
        assert app_settings.data_file.read_text(encoding="utf-8") == '{"products": [{"id": 1, "name": "Cap"'
        copies = list(app_settings.data_file.parent.glob("database.json.corrupt-*"))
        assert len(copies) == 1
