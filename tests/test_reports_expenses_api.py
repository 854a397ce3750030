import pytest

from tests.conftest import auth_headers, login, make_user

REPORTS_URL = "/api/v1/reports"
EXPENSES_URL = "/api/v1/expenses"


@pytest.fixture
def headers(token):
    return auth_headers(token)


@pytest.fixture
def report(client, headers):
    response = client.post(REPORTS_URL, json={"number": "ND-001"}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _expense(report_id, **overrides):
    body = {
        "report_id": report_id,
        "expense_date": "2024-05-10",
        "amount": "45,00",
        "category": "Alimentação",
        "description": "Café da manhã na padaria",
        "image_url": "uploads/abc-recibo.jpg",
        "confidence": 80,
    }
    body.update(overrides)
    return body


def test_reports_require_authentication(client):
    assert client.get(REPORTS_URL).status_code == 401
    assert client.post(REPORTS_URL, json={"number": "ND-001"}).status_code == 401


def test_create_report(client, user, report, headers):
    assert report["status"] == "open"
    assert report["user_id"] == user["id"]
    assert report["description"] == "Nova Nota de Despesa"
    assert report["advance_amount"] == 0.0

    response = client.get(f"{REPORTS_URL}/open", headers=headers)
    assert response.json()["id"] == report["id"]

    response = client.get(REPORTS_URL, headers=headers)
    assert [r["id"] for r in response.json()] == [report["id"]]


def test_report_of_another_user_is_not_found(client, fake_db, report):
    make_user(fake_db, email="bruno@example.com", cpf="52998224725", name="Bruno")
    other_headers = auth_headers(login(client, "bruno@example.com"))

    response = client.get(f"{REPORTS_URL}/{report['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=other_headers)
    assert response.status_code == 404


def test_add_expense_applies_category_cap(client, report, headers):
    response = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers)

    assert response.status_code == 201
    expense = response.json()
    assert expense["amount"] == 30.0
    assert expense["original_amount"] == 45.0
    assert expense["applied_limit"] == "Café da Manhã (R$ 30,00)"
    assert expense["establishment"] == "Não informado"


def test_expense_validation(client, report, headers):
    cases = [
        {"amount": "0"},
        {"amount": "1000000"},
        {"amount": "abc"},
        {"category": "Lazer"},
        {"description": "x" * 101},
        {"confidence": 101},
        {"image_url": ""},
    ]
    for overrides in cases:
        response = client.post(EXPENSES_URL, json=_expense(report["id"], **overrides), headers=headers)
        assert response.status_code == 400, overrides


def test_report_total(client, report, headers):
    client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers)
    client.post(
        EXPENSES_URL,
        json=_expense(report["id"], amount="25.50", category="Deslocamento", description="Uber"),
        headers=headers,
    )
    client.put(f"{REPORTS_URL}/{report['id']}/advance", json={"advance_amount": 50}, headers=headers)

    response = client.get(f"{REPORTS_URL}/{report['id']}/total", headers=headers)
    assert response.status_code == 200
    total = response.json()
    assert total["expense_count"] == 2
    assert total["total"] == 55.5
    assert total["advance_amount"] == 50.0
    assert total["balance"] == 5.5


def test_closed_report_rejects_changes(client, report, headers):
    created = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers).json()

    response = client.post(f"{REPORTS_URL}/{report['id']}/close", json={}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "closed"

    response = client.post(f"{REPORTS_URL}/{report['id']}/close", json={}, headers=headers)
    assert response.status_code == 409

    response = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers)
    assert response.status_code == 409

    response = client.delete(f"{EXPENSES_URL}/{created['id']}", headers=headers)
    assert response.status_code == 409

    response = client.get(f"{REPORTS_URL}/open", headers=headers)
    assert response.json() is None


def test_update_expense_reapplies_cap(client, report, headers):
    created = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers).json()

    # New description is no longer breakfast; lunch cap applies to the original 45,00
    response = client.put(
        f"{EXPENSES_URL}/{created['id']}",
        json={"description": "Almoço executivo"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["amount"] == 45.0
    assert response.json()["applied_limit"] is None

    response = client.put(f"{EXPENSES_URL}/{created['id']}", json={"amount": "72"}, headers=headers)
    assert response.json()["amount"] == 60.0
    assert response.json()["original_amount"] == 72.0
    assert response.json()["applied_limit"] == "Almoço (R$ 60,00)"


def test_list_get_and_delete_expense(client, report, headers):
    created = client.post(EXPENSES_URL, json=_expense(report["id"]), headers=headers).json()

    response = client.get(f"{EXPENSES_URL}/by-report/{report['id']}", headers=headers)
    assert [e["id"] for e in response.json()] == [created["id"]]

    assert client.get(f"{EXPENSES_URL}/{created['id']}", headers=headers).status_code == 200
    assert client.delete(f"{EXPENSES_URL}/{created['id']}", headers=headers).status_code == 204
    assert client.get(f"{EXPENSES_URL}/{created['id']}", headers=headers).status_code == 404


def test_categorize_endpoint(client, headers):
    response = client.post(
        f"{EXPENSES_URL}/categorize",
        json={"description": "Jantar com cliente", "amount": "90,00"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "Alimentação"
    assert body["amount"] == 60.0
    assert body["applied_limit"] == "Jantar (R$ 60,00)"
