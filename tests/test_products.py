"""Integration tests for /api/productos."""
import pytest

from tienda_api.infrastructure.memory import MemoryStore
from tienda_api.infrastructure.store import get_document_store


def names(response):
    return [p["nombre"] for p in response.json()["productos"]]


class TestProductCrud:

    def test_list_excludes_soft_deleted(self, authenticated_client, catalog):
        """Test listing only active products."""
        response = authenticated_client.get("/api/productos")

        assert response.status_code == 200
        assert response.json()["total"] == 4
        assert "Monitor" not in names(response)

    def test_get_by_id(self, authenticated_client, catalog):
        """Test fetching one product."""
        response = authenticated_client.get("/api/productos/p2")

        assert response.status_code == 200
        assert response.json()["nombre"] == "Mouse"
        assert response.json()["id"] == "p2"

    def test_get_soft_deleted_returns_404(self, authenticated_client, catalog):
        """Test that a soft-deleted product reads as missing."""
        response = authenticated_client.get("/api/productos/p5")

        assert response.status_code == 404
        assert response.json() == {"mensaje": "Producto no encontrado o no está activo"}

    def test_create_stamps_lifecycle_fields(self, authenticated_client):
        """Test creating a product with defaults and timestamps."""
        response = authenticated_client.post("/api/productos", json={
            "nombre": "  Mouse  ",
            "precio": 25,
            "categoria": "Perifericos",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["mensaje"] == "Producto creado: Mouse ($25)"
        producto = data["producto"]
        assert producto["nombre"] == "Mouse"
        assert producto["stock"] == 0
        assert producto["descripcion"] == ""
        assert producto["activo"] is True
        assert producto["fechaCreacion"] == producto["fechaActualizacion"]

    @pytest.mark.parametrize("body,message", [
        ({"precio": 10, "categoria": "A"}, "Nombre, precio y categoría son requeridos"),
        ({"nombre": "X", "categoria": "A"}, "Nombre, precio y categoría son requeridos"),
        ({"nombre": "   ", "precio": 10, "categoria": "A"}, "Nombre, precio y categoría son requeridos"),
        ({"nombre": "X", "precio": 0, "categoria": "A"}, "El precio debe ser mayor a 0"),
        ({"nombre": "X", "precio": 10, "categoria": "A", "stock": -1}, "El stock no puede ser negativo"),
    ])
    def test_create_validation(self, authenticated_client, body, message):
        """Test create validation messages."""
        response = authenticated_client.post("/api/productos", json=body)

        assert response.status_code == 400
        assert response.json() == {"mensaje": message}

    def test_update_keeps_creation_date(self, authenticated_client, catalog):
        """Test that update refreshes fechaActualizacion only."""
        before = authenticated_client.get("/api/productos/p1").json()

        response = authenticated_client.put("/api/productos/p1", json={
            "precio": 14,
            "fechaCreacion": "2030-01-01T00:00:00Z",
        })

        assert response.status_code == 200
        producto = response.json()["producto"]
        assert producto["precio"] == 14
        assert producto["fechaCreacion"] == before["fechaCreacion"]
        assert producto["fechaActualizacion"] > before["fechaActualizacion"]

    def test_empty_update_is_rejected(self, authenticated_client, catalog):
        """Test an update without fields."""
        response = authenticated_client.put("/api/productos/p1", json={})

        assert response.status_code == 400

    def test_update_soft_deleted_returns_404(self, authenticated_client, catalog):
        """Test updating a soft-deleted product."""
        response = authenticated_client.put("/api/productos/p5", json={"precio": 99})

        assert response.status_code == 404

    def test_soft_delete_hides_product(self, authenticated_client, catalog):
        """Test that soft delete hides the product from every read."""
        response = authenticated_client.delete("/api/productos/p2")

        assert response.status_code == 200
        assert response.json()["producto"]["activo"] is False
        assert response.json()["producto"]["fechaEliminacion"] is not None

        assert authenticated_client.get("/api/productos/p2").status_code == 404
        assert "Mouse" not in names(authenticated_client.get("/api/productos"))
        assert "Mouse" not in names(authenticated_client.get("/api/productos/buscar?texto=mouse"))
        assert "Mouse" not in names(authenticated_client.get("/api/productos/filtrar?categoria=Perifericos"))
        # Still in the store
        assert catalog._collections["products"]["p2"]["activo"] is False

    def test_soft_delete_twice_returns_404(self, authenticated_client, catalog):
        """Test deleting an already deleted product."""
        authenticated_client.delete("/api/productos/p2")

        assert authenticated_client.delete("/api/productos/p2").status_code == 404

    def test_hard_delete(self, authenticated_client, catalog):
        """Test permanent deletion."""
        response = authenticated_client.delete("/api/productos/p5/permanente")

        assert response.status_code == 200
        assert "p5" not in catalog._collections["products"]
        assert authenticated_client.delete("/api/productos/p5/permanente").status_code == 404


class TestStock:

    def test_reduce_stock_scenario(self, authenticated_client, catalog):
        """Test reducing stock and refusing to go below zero."""
        response = authenticated_client.put("/api/productos/p2/reducir-stock", json={"cantidad": 3})

        assert response.status_code == 200
        assert response.json()["producto"]["stock"] == 2

        response = authenticated_client.put("/api/productos/p2/reducir-stock", json={"cantidad": 10})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "Stock insuficiente"}
        assert authenticated_client.get("/api/productos/p2").json()["stock"] == 2

    def test_reduce_defaults_to_one(self, authenticated_client, catalog):
        """Test that cantidad defaults to 1."""
        response = authenticated_client.put("/api/productos/p2/reducir-stock", json={})

        assert response.json()["producto"]["stock"] == 4

    def test_reduce_to_exactly_zero(self, authenticated_client, catalog):
        """Test that reducing to zero marks the product out of stock."""
        response = authenticated_client.put("/api/productos/p2/reducir-stock", json={"cantidad": 5})

        assert response.status_code == 200
        assert "Mouse" in names(authenticated_client.get("/api/productos/agotados"))

    @pytest.mark.parametrize("cantidad", [0, -2])
    def test_reduce_requires_positive_amount(self, authenticated_client, catalog, cantidad):
        """Test that cantidad must be positive."""
        response = authenticated_client.put("/api/productos/p2/reducir-stock", json={"cantidad": cantidad})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "La cantidad debe ser un número positivo"}

    def test_set_stock(self, authenticated_client, catalog):
        """Test setting stock directly."""
        response = authenticated_client.put("/api/productos/p3/stock", json={"stock": 7})

        assert response.status_code == 200
        assert response.json()["producto"]["stock"] == 7

    def test_set_negative_stock(self, authenticated_client, catalog):
        """Test that stock cannot be set negative."""
        response = authenticated_client.put("/api/productos/p3/stock", json={"stock": -1})

        assert response.status_code == 400

    def test_stock_of_soft_deleted_returns_404(self, authenticated_client, catalog):
        """Test stock changes on a soft-deleted product."""
        response = authenticated_client.put("/api/productos/p5/reducir-stock", json={"cantidad": 1})

        assert response.status_code == 404

    def test_in_stock_and_out_of_stock(self, authenticated_client, catalog):
        """Test the con-stock and agotados listings."""
        con_stock = authenticated_client.get("/api/productos/con-stock")
        agotados = authenticated_client.get("/api/productos/agotados")

        assert sorted(names(con_stock)) == ["Café Especial", "Mouse", "Té Verde"]
        assert names(agotados) == ["Teclado Mecánico"]


class TestProductFilter:

    def test_price_range(self, authenticated_client, catalog):
        """Test filtering by price range."""
        response = authenticated_client.get("/api/productos/filtrar?precio_min=10&precio_max=50")

        assert response.status_code == 200
        assert sorted(names(response)) == ["Café Especial", "Mouse"]
        assert response.json()["filtros_aplicados"] == {"precio_min": "10", "precio_max": "50"}

    def test_descending_name_fallback(self, authenticated_client, catalog):
        """Test ordering by name descending."""
        response = authenticated_client.get("/api/productos/filtrar?ordenar=nombre_desc")

        assert names(response) == ["Teclado Mecánico", "Té Verde", "Mouse", "Café Especial"]

    def test_ascending_date_fallback(self, authenticated_client, catalog):
        """Test ordering by creation date ascending."""
        response = authenticated_client.get("/api/productos/filtrar?ordenar=fecha_asc")

        assert names(response) == ["Café Especial", "Mouse", "Teclado Mecánico", "Té Verde"]

    def test_native_price_order(self, authenticated_client, catalog):
        """Test ordering by price descending."""
        response = authenticated_client.get("/api/productos/filtrar?ordenar=precio_desc")

        assert names(response) == ["Teclado Mecánico", "Mouse", "Café Especial", "Té Verde"]

    def test_limit(self, authenticated_client, catalog):
        """Test limiting an ordered result."""
        response = authenticated_client.get("/api/productos/filtrar?ordenar=precio_asc&limite=2")

        assert names(response) == ["Té Verde", "Café Especial"]

    def test_category_and_name(self, authenticated_client, catalog):
        """Test category combined with a name fragment."""
        response = authenticated_client.get("/api/productos/filtrar?categoria=Bebidas&nombre=TE")

        assert names(response) == ["Té Verde"]

    def test_unparsable_numbers_are_ignored(self, authenticated_client, catalog):
        """Test that unparsable numbers do not filter."""
        response = authenticated_client.get("/api/productos/filtrar?stock_min=abc&precio_max=")

        assert response.status_code == 200
        assert response.json()["total"] == 4

    def test_decimal_integer_params_are_dropped(self, authenticated_client, catalog):
        """Test that decimal stock_min and limite are ignored, not truncated."""
        response = authenticated_client.get("/api/productos/filtrar?stock_min=5.5&limite=1.5")

        assert response.status_code == 200
        assert response.json()["total"] == 4
        assert "Teclado Mecánico" in names(response)

    def test_negative_bounds_are_rejected(self, authenticated_client, catalog):
        """Test that negative bounds are a 400."""
        response = authenticated_client.get("/api/productos/filtrar?precio_min=-5")

        assert response.status_code == 400


class TestProductSearch:

    def test_accent_insensitive(self, authenticated_client, catalog):
        """Test accent-insensitive search."""
        response = authenticated_client.get("/api/productos/buscar?texto=cafe")

        assert names(response) == ["Café Especial"]
        assert response.json()["texto_buscado"] == "cafe"

    def test_matches_description_and_category(self, authenticated_client, catalog):
        """Test that search covers descripcion and categoria."""
        assert names(authenticated_client.get("/api/productos/buscar?texto=INFUSION")) == ["Té Verde"]
        assert sorted(names(authenticated_client.get("/api/productos/buscar?texto=perif"))) == [
            "Mouse", "Teclado Mecánico",
        ]

    def test_missing_text_is_rejected(self, authenticated_client, catalog):
        """Test search without text."""
        response = authenticated_client.get("/api/productos/buscar?texto=%20%20")

        assert response.status_code == 400
        assert response.json() == {"mensaje": "Texto de búsqueda es requerido"}


class TestCategoriesAndStatistics:

    def test_categories_skip_inactive(self, authenticated_client, catalog):
        """Test distinct categories of active products."""
        response = authenticated_client.get("/api/productos/categorias")

        assert response.json() == {"total": 2, "categorias": ["Bebidas", "Perifericos"]}

    def test_by_category(self, authenticated_client, catalog):
        """Test listing one category."""
        response = authenticated_client.get("/api/productos/categoria/Bebidas")

        assert response.json()["total"] == 2
        assert response.json()["categoria"] == "Bebidas"

    def test_statistics(self, authenticated_client, catalog):
        """Test product statistics."""
        response = authenticated_client.get("/api/productos/estadisticas")

        assert response.status_code == 200
        assert response.json() == {
            "tipo": "productos",
            "total": 4,
            "precio_promedio": 31.38,
            "stock_total": 35,
            "productos_agotados": 1,
            "por_categoria": {"Bebidas": 2, "Perifericos": 2},
        }

    def test_general_statistics(self, authenticated_client, catalog, people):
        """Test the general statistics route."""
        response = authenticated_client.get("/api/estadisticas")

        assert response.json()["productos"] == 4
        assert response.json()["usuarios"] == 3
        assert authenticated_client.get("/api/estadisticas?tipo=productos").json()["tipo"] == "productos"


class BrokenStore(MemoryStore):
    async def query_collection(self, *args, **kwargs):
        raise RuntimeError("deadline exceeded")


class TestErrorBoundary:

    def test_unknown_route_returns_404(self, test_client):
        """Test unmatched route."""
        response = test_client.get("/no-existe")

        assert response.status_code == 404
        assert response.json() == {"mensaje": "Ruta no encontrada"}

    def test_store_failure_returns_500(self, authenticated_client):
        """Test that a failing store answers 500."""
        from main import app

        app.dependency_overrides[get_document_store] = lambda: BrokenStore()

        response = authenticated_client.get("/api/productos")

        assert response.status_code == 500
        assert response.json() == {"mensaje": "Error al obtener productos: deadline exceeded"}

    def test_request_id_header(self, authenticated_client):
        """Test that responses carry X-Request-ID."""
        response = authenticated_client.get("/api/productos")

        assert "X-Request-ID" in response.headers
