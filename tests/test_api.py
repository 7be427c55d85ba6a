"""
API tests over the in-memory store.

Run: pytest tests/test_api.py -v
"""

from tests.factories import MaterialFactory, RecipeFactory


def _seed(client):
    client.put("/api/materials/mat-a", json=MaterialFactory.create(id="mat-a"))
    client.put("/api/products/prod-a", json=RecipeFactory.create(id="prod-a"))


class TestHealth:

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["store"]["status"] == "healthy"


class TestCatalogRoutes:

    def test_put_then_get(self, test_client):
        response = test_client.put("/api/materials/mat-a", json=MaterialFactory.create(id="mat-a"))
        assert response.status_code == 200

        response = test_client.get("/api/materials/mat-a")
        assert response.status_code == 200
        assert response.json()["id"] == "mat-a"

    def test_missing_record_is_404(self, test_client):
        response = test_client.get("/api/products/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    def test_delete(self, test_client):
        test_client.put("/api/clients/c1", json={"id": "c1", "name": "Snack Co"})
        assert test_client.delete("/api/clients/c1").status_code == 204
        assert test_client.get("/api/clients").json() == []


class TestProductionRoutes:

    def test_calculate(self, test_client):
        _seed(test_client)
        response = test_client.post("/api/production/calculate", json={
            "product_id": "prod-a", "quantity": 1000, "unit": "COUNT"
        })
        assert response.status_code == 200
        assert response.json()["gross_linear_meters"] == 579

    def test_recommendations(self, test_client):
        _seed(test_client)
        response = test_client.post("/api/production/recommendations", json={"product_id": "prod-a"})
        assert response.status_code == 200
        assert response.json()["layers"][0]["selected_material_id"] == "mat-a"

    def test_stock_check(self, test_client):
        _seed(test_client)
        response = test_client.post("/api/production/stock-check", json={
            "product_id": "prod-a",
            "quantity": 1000,
            "selections": {"layer1": "mat-a"},
        })
        assert response.status_code == 200
        assert response.json()["layers"][0]["stock_ok"] is True


class TestOrderRoutes:

    def test_confirm_and_advance(self, test_client):
        _seed(test_client)
        response = test_client.post("/api/orders", json={
            "product_id": "prod-a",
            "quantity": 1000,
            "selections": {"layer1": "mat-a"},
        })
        assert response.status_code == 201
        order = response.json()
        assert order["order_code"] == "OP-1001"

        response = test_client.post(f"/api/orders/{order['id']}/advance")
        assert response.json()["current_stage"] == "Print"

        queue = test_client.get("/api/orders/queue/Print").json()
        assert [o["id"] for o in queue] == [order["id"]]

    def test_missing_selection_is_422(self, test_client):
        _seed(test_client)
        response = test_client.post("/api/orders", json={"product_id": "prod-a", "quantity": 1000})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "MISSING_MATERIAL_SELECTION"

    def test_invalid_stage_is_422(self, test_client):
        _seed(test_client)
        order = test_client.post("/api/orders", json={
            "product_id": "prod-a",
            "quantity": 1000,
            "selections": {"layer1": "mat-a"},
        }).json()
        response = test_client.patch(f"/api/orders/{order['id']}/stage", json={"stage": "Bag Making"})
        assert response.status_code == 422


class TestConfigRoutes:

    def test_patch_config(self, test_client):
        response = test_client.patch("/api/config", json={"reprint_meters": 120})
        assert response.status_code == 200
        assert response.json()["reprint_meters"] == 120
        assert test_client.get("/api/config").json()["reprint_meters"] == 120
