"""HTTP API tests against a temporary JSON database."""

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest


def category_id(client, headers, name):
    categories = client.get("/api/v1/categories", headers=headers).json()
    return next(c["id"] for c in categories if c["name"] == name)


def create_transaction(client, headers, category, type="expense", amount=10.0, **extra):
    body = {"category_id": category, "type": type, "amount": amount, "description": "test", **extra}
    response = client.post("/api/v1/transactions", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_budget(client, headers, category, amount=100.0, month=1, year=2025):
    body = {"category_id": category, "amount": amount, "month": month, "year": year}
    response = client.post("/api/v1/budgets", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "storage": "json", "database": "connected"}


class TestAuth:
    """Tests for registration, login and logout."""

    def test_register_returns_token_and_cookie(self, client):
        response = client.post(
            "/api/v1/auth/register", json={"name": "Jane", "email": "Jane@Example.com", "password": "secret123"}
        )

        assert response.status_code == 201
        assert response.json()["token"]
        assert "auth_token" in response.cookies

    def test_register_duplicate_email(self, client, register_user):
        register_user(email="jane@example.com")

        response = client.post(
            "/api/v1/auth/register", json={"name": "Other", "email": "JANE@example.com", "password": "secret123"}
        )

        assert response.status_code == 400
        assert response.json() == {"message": "User already exists", "type": "validation_error"}

    def test_register_short_password(self, client):
        response = client.post("/api/v1/auth/register", json={"name": "Jane", "email": "j@example.com", "password": "1"})

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_login(self, client, register_user):
        register_user(email="jane@example.com")

        response = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "secret123"})

        assert response.status_code == 200
        assert response.json()["token"]

    def test_login_invalid_credentials(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": "secret123"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid credentials", "type": "authentication_error"}

    def test_logout_invalidates_token(self, client, auth_headers):
        client.cookies.clear()

        assert client.post("/api/v1/auth/logout", headers=auth_headers).status_code == 204
        assert client.get("/api/v1/profile", headers=auth_headers).status_code == 401

    def test_missing_token(self, client):
        client.cookies.clear()

        response = client.get("/api/v1/profile")

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_cookie_auth(self, client, auth_headers):
        """The cookie set at registration authenticates later requests."""
        response = client.get("/api/v1/profile")

        assert response.status_code == 200
        assert response.json()["email"] == "jane@example.com"


class TestProfile:
    """Tests for the current user's profile."""

    def test_get_profile(self, client, auth_headers):
        profile = client.get("/api/v1/profile", headers=auth_headers).json()

        assert profile["name"] == "Jane Doe"
        assert profile["role"] == "user"
        assert "password_hash" not in profile

    def test_update_profile(self, client, auth_headers):
        response = client.patch("/api/v1/profile", json={"name": "Jane Smith"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Jane Smith"
        assert response.json()["email"] == "jane@example.com"

    def test_update_email_taken(self, client, register_user):
        register_user(email="first@example.com")
        headers = register_user(email="second@example.com")

        response = client.patch("/api/v1/profile", json={"email": "first@example.com"}, headers=headers)

        assert response.status_code == 400

    def test_change_password(self, client, auth_headers):
        response = client.post(
            "/api/v1/profile/change-password",
            json={"old_password": "secret123", "new_password": "newsecret"},
            headers=auth_headers,
        )

        assert response.status_code == 204
        login = client.post("/api/v1/auth/login", json={"email": "jane@example.com", "password": "newsecret"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.post(
            "/api/v1/profile/change-password",
            json={"old_password": "wrong-one", "new_password": "newsecret"},
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestCategories:
    """Tests for category management."""

    def test_defaults_created_on_register(self, client, auth_headers):
        categories = client.get("/api/v1/categories", headers=auth_headers).json()
        income = client.get("/api/v1/categories", params={"type": "income"}, headers=auth_headers).json()

        assert len(categories) == 16
        assert len(income) == 5
        assert all(c["is_default"] for c in categories)
        assert categories[0]["type"] == "expense"

    def test_create_update_delete(self, client, auth_headers):
        created = client.post(
            "/api/v1/categories", json={"name": "Pets", "type": "expense", "color": "#123456"}, headers=auth_headers
        )
        assert created.status_code == 201
        category = created.json()
        assert category["icon"] == "category"
        assert category["is_default"] is False

        updated = client.patch(
            f"/api/v1/categories/{category['id']}", json={"name": "Pet care", "icon": "pets"}, headers=auth_headers
        )
        assert updated.json()["name"] == "Pet care"
        assert updated.json()["color"] == "#123456"

        assert client.delete(f"/api/v1/categories/{category['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/v1/categories/{category['id']}", headers=auth_headers).status_code == 404

    def test_duplicate_name_per_type(self, client, auth_headers):
        response = client.post("/api/v1/categories", json={"name": "Salary", "type": "income"}, headers=auth_headers)

        assert response.status_code == 400

    def test_invalid_color(self, client, auth_headers):
        response = client.post(
            "/api/v1/categories", json={"name": "Pets", "type": "expense", "color": "blue"}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_category_in_use_cannot_be_deleted(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        create_transaction(client, auth_headers, food)

        response = client.delete(f"/api/v1/categories/{food}", headers=auth_headers)

        assert response.status_code == 400
        assert "used in transactions" in response.json()["message"]

    def test_other_users_category_forbidden(self, client, register_user):
        owner = register_user(email="owner@example.com")
        other = register_user(email="other@example.com")
        food = category_id(client, owner, "Food")

        assert client.get(f"/api/v1/categories/{food}", headers=other).status_code == 403
        assert client.delete(f"/api/v1/categories/{food}", headers=other).status_code == 403


class TestTransactions:
    """Tests for transaction CRUD."""

    def test_create_signs_amount(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        salary = category_id(client, auth_headers, "Salary")

        expense = create_transaction(client, auth_headers, food, amount=25.5, tags=[" lunch ", ""])
        income = create_transaction(client, auth_headers, salary, type="income", amount=-3000)

        assert expense["amount"] == -25.5
        assert expense["tags"] == ["lunch"]
        assert expense["payment_method"] == "cash"
        assert income["amount"] == 3000

    def test_category_type_mismatch(self, client, auth_headers):
        salary = category_id(client, auth_headers, "Salary")
        body = {"category_id": salary, "type": "expense", "amount": 10, "description": "x"}

        response = client.post("/api/v1/transactions", json=body, headers=auth_headers)

        assert response.status_code == 400

    def test_zero_amount(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        body = {"category_id": food, "type": "expense", "amount": 0, "description": "x"}

        assert client.post("/api/v1/transactions", json=body, headers=auth_headers).status_code == 400

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity", "1e400"])
    def test_non_finite_amount_rejected(self, client, auth_headers, amount):
        food = category_id(client, auth_headers, "Food")
        content = f'{{"category_id": "{food}", "type": "expense", "amount": {amount}, "description": "x"}}'
        headers = {**auth_headers, "Content-Type": "application/json"}

        response = client.post("/api/v1/transactions", content=content, headers=headers)

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"
        # Nothing was stored, reports keep working
        assert client.get("/api/v1/transactions", headers=auth_headers).json() == []
        assert client.get("/api/v1/reports/summary", headers=auth_headers).status_code == 200

    def test_non_finite_amount_rejected_on_update(self, client, auth_headers):
        transaction = create_transaction(client, auth_headers, category_id(client, auth_headers, "Food"), amount=40)
        headers = {**auth_headers, "Content-Type": "application/json"}

        response = client.patch(
            f"/api/v1/transactions/{transaction['id']}", content='{"amount": NaN}', headers=headers
        )

        assert response.status_code == 422
        assert client.get("/api/v1/reports/summary", headers=auth_headers).json()["expense"] == 40

    def test_list_filters(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        salary = category_id(client, auth_headers, "Salary")
        create_transaction(client, auth_headers, food, date="2025-01-10T12:00:00Z")
        create_transaction(client, auth_headers, food, date="2025-02-10T12:00:00Z")
        create_transaction(client, auth_headers, salary, type="income", amount=100, date="2025-02-01T00:00:00Z")

        def dates(**params):
            items = client.get("/api/v1/transactions", params=params, headers=auth_headers).json()
            return [t["date"][:10] for t in items]

        assert dates() == ["2025-02-10", "2025-02-01", "2025-01-10"]
        assert dates(type="expense") == ["2025-02-10", "2025-01-10"]
        assert dates(category_id=salary) == ["2025-02-01"]
        assert dates(start_date="2025-02-01T00:00:00Z", end_date="2025-02-05T00:00:00Z") == ["2025-02-01"]

    def test_amount_range_filter(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        salary = category_id(client, auth_headers, "Salary")
        create_transaction(client, auth_headers, food, amount=10)
        create_transaction(client, auth_headers, food, amount=25)
        create_transaction(client, auth_headers, salary, type="income", amount=100)

        def amounts(**params):
            items = client.get("/api/v1/transactions", params=params, headers=auth_headers).json()
            return sorted(t["amount"] for t in items)

        assert amounts(min_amount=20) == [-25, 100]
        assert amounts(max_amount=25) == [-25, -10]
        assert amounts(min_amount=10, max_amount=10) == [-10]
        assert amounts(type="expense", min_amount=20, max_amount=50) == [-25]

    def test_amount_range_reversed(self, client, auth_headers):
        params = {"min_amount": 50, "max_amount": 10}
        response = client.get("/api/v1/transactions", params=params, headers=auth_headers)

        assert response.status_code == 400
        assert client.get("/api/v1/transactions", params={"min_amount": -1}, headers=auth_headers).status_code == 422

    def test_update(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        salary = category_id(client, auth_headers, "Salary")
        transaction = create_transaction(client, auth_headers, food, amount=40)
        url = f"/api/v1/transactions/{transaction['id']}"

        response = client.patch(url, json={"amount": 55, "notes": "split bill"}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["amount"] == -55
        assert response.json()["notes"] == "split bill"

        # Changing type needs a matching category
        assert client.patch(url, json={"type": "income"}, headers=auth_headers).status_code == 400
        switched = client.patch(url, json={"type": "income", "category_id": salary}, headers=auth_headers)
        assert switched.json()["amount"] == 55
        assert switched.json()["category_id"] == salary

    def test_delete(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        transaction = create_transaction(client, auth_headers, food)
        url = f"/api/v1/transactions/{transaction['id']}"

        assert client.delete(url, headers=auth_headers).status_code == 204
        response = client.get(url, headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_other_users_transaction_forbidden(self, client, register_user):
        owner = register_user(email="owner@example.com")
        other = register_user(email="other@example.com")
        transaction = create_transaction(client, owner, category_id(client, owner, "Food"))

        response = client.get(f"/api/v1/transactions/{transaction['id']}", headers=other)

        assert response.status_code == 403
        assert response.json()["type"] == "access_denied"

    def test_invalid_id(self, client, auth_headers):
        response = client.get("/api/v1/transactions/not-a-uuid", headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"


class TestBudgets:
    """Tests for budget CRUD."""

    def test_create_update_delete(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        budget = create_budget(client, auth_headers, food, amount=300, month=3, year=2025)
        url = f"/api/v1/budgets/{budget['id']}"

        assert (budget["category_id"], budget["amount"], budget["month"], budget["year"]) == (food, 300, 3, 2025)

        response = client.patch(url, json={"amount": 350}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["amount"] == 350

        assert client.delete(url, headers=auth_headers).status_code == 204
        assert client.delete(url, headers=auth_headers).status_code == 404

    def test_list_by_period(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        housing = category_id(client, auth_headers, "Housing")
        create_budget(client, auth_headers, food, month=2, year=2025)
        create_budget(client, auth_headers, food, month=1, year=2025)
        create_budget(client, auth_headers, housing, month=1, year=2025)

        def periods(**params):
            items = client.get("/api/v1/budgets", params=params, headers=auth_headers).json()
            return [(b["year"], b["month"]) for b in items]

        assert periods() == [(2025, 1), (2025, 1), (2025, 2)]
        assert periods(month=2) == [(2025, 2)]
        assert periods(month=1, year=2025) == [(2025, 1), (2025, 1)]
        assert periods(year=2026) == []

    def test_duplicate_period(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        create_budget(client, auth_headers, food, month=5)
        body = {"category_id": food, "amount": 50, "month": 5, "year": 2025}

        response = client.post("/api/v1/budgets", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert "already exists" in response.json()["message"]

    def test_income_category_rejected(self, client, auth_headers):
        body = {"category_id": category_id(client, auth_headers, "Salary"), "amount": 50, "month": 1, "year": 2025}

        assert client.post("/api/v1/budgets", json=body, headers=auth_headers).status_code == 400

    @pytest.mark.parametrize(
        "overrides",
        [{"amount": 0}, {"amount": -10}, {"month": 13}, {"month": 0}, {"year": 1999}],
    )
    def test_invalid_values(self, client, auth_headers, overrides):
        body = {"category_id": category_id(client, auth_headers, "Food"), "amount": 50, "month": 1, "year": 2025}

        response = client.post("/api/v1/budgets", json={**body, **overrides}, headers=auth_headers)

        assert response.status_code == 422

    def test_non_finite_amount_rejected(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        content = f'{{"category_id": "{food}", "amount": Infinity, "month": 1, "year": 2025}}'
        headers = {**auth_headers, "Content-Type": "application/json"}

        assert client.post("/api/v1/budgets", content=content, headers=headers).status_code == 422

    def test_other_users_budget_forbidden(self, client, register_user):
        owner = register_user(email="owner@example.com")
        other = register_user(email="other@example.com")
        budget = create_budget(client, owner, category_id(client, owner, "Food"))
        url = f"/api/v1/budgets/{budget['id']}"

        assert client.patch(url, json={"amount": 1}, headers=other).status_code == 403
        assert client.delete(url, headers=other).status_code == 403
        body = {"category_id": budget["category_id"], "amount": 50, "month": 2, "year": 2025}
        assert client.post("/api/v1/budgets", json=body, headers=other).status_code == 403
        assert client.get("/api/v1/budgets", headers=other).json() == []

    def test_deleting_category_removes_budgets(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        create_budget(client, auth_headers, food)

        assert client.delete(f"/api/v1/categories/{food}", headers=auth_headers).status_code == 204
        assert client.get("/api/v1/budgets", headers=auth_headers).json() == []


class TestReports:
    """Tests for report endpoints."""

    @pytest.fixture
    def seeded(self, client, auth_headers):
        food = category_id(client, auth_headers, "Food")
        rent = category_id(client, auth_headers, "Housing")
        salary = category_id(client, auth_headers, "Salary")
        create_transaction(client, auth_headers, salary, type="income", amount=2000, date="2025-01-01T09:00:00Z")
        create_transaction(client, auth_headers, rent, amount=800, date="2025-01-02T09:00:00Z")
        create_transaction(client, auth_headers, food, amount=50, date="2025-01-20T09:00:00Z")
        create_transaction(client, auth_headers, food, amount=70, date="2025-02-05T09:00:00Z")
        return auth_headers

    def test_summary(self, client, seeded):
        summary = client.get("/api/v1/reports/summary", headers=seeded).json()

        assert summary["income"] == 2000
        assert summary["expense"] == 920
        assert summary["balance"] == 1080
        assert summary["count"] == 4

    def test_summary_date_range(self, client, seeded):
        params = {"start_date": "2025-02-01T00:00:00Z"}
        summary = client.get("/api/v1/reports/summary", params=params, headers=seeded).json()

        assert (summary["income"], summary["expense"], summary["count"]) == (0, 70, 1)

    def test_by_category(self, client, seeded):
        totals = client.get("/api/v1/reports/by-category", headers=seeded).json()

        assert [(t["name"], t["total"], t["count"]) for t in totals] == [
            ("Salary", 2000, 1),
            ("Housing", 800, 1),
            ("Food", 120, 2),
        ]

    def test_by_period(self, client, seeded):
        params = {"start_date": "2025-01-01T00:00:00Z", "end_date": "2025-12-31T00:00:00Z", "grouping": "month"}
        periods = client.get("/api/v1/reports/by-period", params=params, headers=seeded).json()

        assert [(p["period"], p["balance"]) for p in periods] == [("2025-01", 1150), ("2025-02", -70)]

    def test_by_period_reversed_range(self, client, seeded):
        params = {"start_date": "2025-12-31T00:00:00Z", "end_date": "2025-01-01T00:00:00Z"}

        assert client.get("/api/v1/reports/by-period", params=params, headers=seeded).status_code == 400

    def test_budget_report(self, client, seeded):
        create_budget(client, seeded, category_id(client, seeded, "Food"), amount=100, month=1, year=2025)
        create_budget(client, seeded, category_id(client, seeded, "Housing"), amount=1000, month=1, year=2025)
        create_budget(client, seeded, category_id(client, seeded, "Groceries"), amount=40, month=1, year=2025)

        report = client.get("/api/v1/reports/budget", params={"month": 1, "year": 2025}, headers=seeded).json()

        lines = {line["name"]: line for line in report["details"]}
        food = lines["Food"]
        assert (food["actual"], food["percentage_used"], food["status"]) == (50, 50, "on_track")
        assert (lines["Housing"]["actual"], lines["Housing"]["status"]) == (800, "warning")
        assert (lines["Groceries"]["actual"], lines["Groceries"]["remaining"]) == (0, 40)
        assert (report["total_budget"], report["total_actual"], report["total_remaining"]) == (1140, 850, 290)
        assert report["status"] == "on_track"
        assert report["start_date"].startswith("2025-01-01T00:00:00")
        assert report["end_date"].startswith("2025-01-31T23:59:59.999999")

    def test_budget_report_overspent(self, client, seeded):
        create_budget(client, seeded, category_id(client, seeded, "Food"), amount=60, month=2, year=2025)

        report = client.get("/api/v1/reports/budget", params={"month": 2, "year": 2025}, headers=seeded).json()

        assert report["details"][0]["percentage_used"] == 100
        assert report["details"][0]["remaining"] == -10
        assert report["status"] == "critical"

    def test_budget_report_defaults_to_current_month(self, client, auth_headers):
        today = datetime.now(UTC)

        report = client.get("/api/v1/reports/budget", headers=auth_headers).json()

        assert (report["month"], report["year"]) == (today.month, today.year)
        assert (report["total_budget"], report["total_percentage_used"], report["details"]) == (0, 0, [])

    def test_budget_report_invalid_month(self, client, auth_headers):
        assert client.get("/api/v1/reports/budget", params={"month": 13}, headers=auth_headers).status_code == 422


class TestUsersAdmin:
    """Tests for admin user management."""

    def test_list_users_requires_admin(self, client, auth_headers, admin_headers):
        assert client.get("/api/v1/users", headers=auth_headers).status_code == 403

        users = client.get("/api/v1/users", headers=admin_headers).json()
        assert {u["email"] for u in users} == {"admin@example.com", "jane@example.com"}

    def test_delete_user_cascades(self, client, config, auth_headers, admin_headers):
        food = category_id(client, auth_headers, "Food")
        create_transaction(client, auth_headers, food)
        create_budget(client, auth_headers, food)
        user_id = client.get("/api/v1/profile", headers=auth_headers).json()["id"]

        assert client.delete(f"/api/v1/users/{user_id}", headers=admin_headers).status_code == 204

        client.cookies.clear()
        assert client.get("/api/v1/profile", headers=auth_headers).status_code == 401
        assert len(client.get("/api/v1/users", headers=admin_headers).json()) == 1
        stored = json.loads(Path(config.json_db_path).read_text())
        assert stored["transactions"] == []
        assert stored["budgets"] == []
        assert all(c["user_id"] != user_id for c in stored["categories"])

    def test_admin_cannot_delete_self(self, client, admin_headers):
        admin_id = client.get("/api/v1/profile", headers=admin_headers).json()["id"]

        assert client.delete(f"/api/v1/users/{admin_id}", headers=admin_headers).status_code == 400
