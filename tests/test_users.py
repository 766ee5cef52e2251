"""Integration tests for /api/usuarios."""
import pytest


def names(response):
    return [u["nombre"] for u in response.json()["usuarios"]]


NEW_USER = {
    "nombre": "Elena Mora",
    "email": "elena@example.com",
    "password": "clave-segura",
    "categoria": "cliente",
    "edad": 29,
}


class TestUserCrud:

    def test_list_hides_passwords_and_inactive(self, authenticated_client, people):
        """Test listing active users without password hashes."""
        response = authenticated_client.get("/api/usuarios")

        assert response.status_code == 200
        assert response.json()["total"] == 3
        assert all("password" not in u for u in response.json()["usuarios"])
        assert "Dora Gil" not in names(response)

    def test_get_by_id(self, authenticated_client, people):
        """Test fetching one user."""
        response = authenticated_client.get("/api/usuarios/u2")

        assert response.status_code == 200
        assert response.json()["email"] == "bea@example.com"
        assert "password" not in response.json()

    def test_get_inactive_returns_404(self, authenticated_client, people):
        """Test that a soft-deleted user reads as missing."""
        response = authenticated_client.get("/api/usuarios/u4")

        assert response.status_code == 404
        assert response.json() == {"mensaje": "Usuario no encontrado o no está activo"}

    def test_create(self, authenticated_client):
        """Test creating a user."""
        response = authenticated_client.post("/api/usuarios", json=NEW_USER)

        assert response.status_code == 201
        usuario = response.json()["usuario"]
        assert response.json()["mensaje"] == "Usuario creado: Elena Mora"
        assert usuario["edad"] == 29
        assert usuario["activo"] is True
        assert "password" not in usuario

    def test_create_missing_fields(self, authenticated_client):
        """Test create without required fields."""
        response = authenticated_client.post("/api/usuarios", json={"nombre": "Sin Email"})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "Nombre, email, contraseña y categoría son requeridos."}

    def test_create_negative_age(self, authenticated_client):
        """Test create with a negative age."""
        response = authenticated_client.post("/api/usuarios", json={**NEW_USER, "edad": -1})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "La edad no puede ser negativa"}

    def test_create_invalid_email(self, authenticated_client):
        """Test create with a malformed email."""
        response = authenticated_client.post("/api/usuarios", json={**NEW_USER, "email": "no-es-email"})

        assert response.status_code == 400

    def test_duplicate_active_email(self, authenticated_client, people):
        """Test that an active user's email cannot be reused."""
        response = authenticated_client.post("/api/usuarios", json={**NEW_USER, "email": "bea@example.com"})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "Ya existe un usuario registrado con este email."}

    def test_email_of_inactive_user_can_be_reused(self, authenticated_client, people):
        """Test reusing the email of a soft-deleted user."""
        response = authenticated_client.post("/api/usuarios", json={**NEW_USER, "email": "dora@example.com"})

        assert response.status_code == 201

    def test_update_rehashes_password(self, authenticated_client, people):
        """Test that a new password is stored hashed."""
        response = authenticated_client.put("/api/usuarios/u1", json={"password": "nueva-clave", "edad": 35})

        assert response.status_code == 200
        assert response.json()["usuario"]["edad"] == 35
        assert people._collections["users"]["u1"]["password"].startswith("$2")

    def test_blank_password_is_left_unchanged(self, authenticated_client, people):
        """Test that a blank password leaves the hash alone."""
        response = authenticated_client.put("/api/usuarios/u1", json={"password": "   ", "edad": 36})

        assert response.status_code == 200
        assert people._collections["users"]["u1"]["password"] == "not-a-bcrypt-hash"

    def test_blank_password_alone_is_an_empty_update(self, authenticated_client, people):
        """Test an update whose only field is a blank password."""
        response = authenticated_client.put("/api/usuarios/u1", json={"password": ""})

        assert response.status_code == 400
        assert response.json() == {"mensaje": "No se proporcionaron campos válidos para actualizar."}

    def test_email_is_not_editable(self, authenticated_client, people):
        """Test that update ignores email."""
        response = authenticated_client.put("/api/usuarios/u1", json={"email": "otro@example.com", "nombre": "Álvaro N."})

        assert response.status_code == 200
        assert response.json()["usuario"]["email"] == "alvaro@example.com"

    def test_soft_and_hard_delete(self, authenticated_client, people):
        """Test soft delete followed by permanent delete."""
        assert authenticated_client.delete("/api/usuarios/u3").status_code == 200
        assert authenticated_client.get("/api/usuarios/u3").status_code == 404

        assert authenticated_client.delete("/api/usuarios/u3/permanente").status_code == 200
        assert "u3" not in people._collections["users"]
        assert authenticated_client.delete("/api/usuarios/u3/permanente").status_code == 404


class TestUserFilter:

    def test_age_range(self, authenticated_client, people):
        """Test filtering by age range."""
        response = authenticated_client.get("/api/usuarios/filtrar?edad_min=30&edad_max=50")

        assert sorted(names(response)) == ["Carlos Ruiz", "Álvaro Núñez"]

    def test_age_order(self, authenticated_client, people):
        """Test ordering by age descending."""
        response = authenticated_client.get("/api/usuarios/filtrar?ordenar=edad_desc")

        assert names(response) == ["Carlos Ruiz", "Álvaro Núñez", "Beatriz Sol"]

    def test_descending_name_fallback(self, authenticated_client, people):
        """Test ordering users by name descending."""
        response = authenticated_client.get("/api/usuarios/filtrar?ordenar=nombre_desc")

        assert names(response) == ["Carlos Ruiz", "Beatriz Sol", "Álvaro Núñez"]

    def test_name_ignores_accents(self, authenticated_client, people):
        """Test the accent-insensitive name filter."""
        response = authenticated_client.get("/api/usuarios/filtrar?nombre=nunez")

        assert names(response) == ["Álvaro Núñez"]

    def test_category(self, authenticated_client, people):
        """Test filtering by category."""
        response = authenticated_client.get("/api/usuarios/filtrar?categoria=cliente")

        assert response.json()["total"] == 2

    @pytest.mark.parametrize("query", [
        "edad_min=-1",
        "edad_max=-3",
        "edad_min=40&edad_max=20",
        "nombre=%20%20",
    ])
    def test_invalid_filters(self, authenticated_client, people, query):
        """Test rejected filter values."""
        response = authenticated_client.get(f"/api/usuarios/filtrar?{query}")

        assert response.status_code == 400


class TestUserSearchAndStatistics:

    def test_search(self, authenticated_client, people):
        """Test searching users."""
        response = authenticated_client.get("/api/usuarios/buscar?texto=GESTION")

        assert names(response) == ["Beatriz Sol"]

    def test_categories(self, authenticated_client, people):
        """Test distinct user categories."""
        response = authenticated_client.get("/api/usuarios/categorias")

        assert response.json()["categorias"] == ["cliente", "admin"]

    def test_by_category(self, authenticated_client, people):
        """Test listing one user category."""
        response = authenticated_client.get("/api/usuarios/categoria/admin")

        assert names(response) == ["Beatriz Sol"]

    def test_statistics(self, authenticated_client, people):
        """Test user statistics."""
        response = authenticated_client.get("/api/usuarios/estadisticas")

        assert response.json() == {
            "tipo": "usuarios",
            "total": 3,
            "edad_promedio": 35.33,
            "por_categoria": {"cliente": 2, "admin": 1},
        }
