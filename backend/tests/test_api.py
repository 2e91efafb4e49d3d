import datetime as dt
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.db.session import get_db
from app.main import create_app
from app.models.case_billing import CaseBilling
from app.models.enums import BillingMethod, PaymentFrequency, PaymentPlanStatus
from app.models.payment_plan import PaymentPlan


@pytest.fixture
def api(db):
    app = create_app()

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    return TestClient(app)


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_case_invoice_roundtrip(api, db, firm, matter):
    db.add(CaseBilling(law_firm_id=firm.id, matter_id=matter.id, billing_method=BillingMethod.FIXED, fixed_fee=Decimal("25000")))
    db.commit()

    r = api.post(f"/firms/{firm.id}/case-invoices/", json={"matter_id": matter.id})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    invoice_id = body["invoice"]["id"]
    assert Decimal(body["invoice"]["total_amount"]) == Decimal("25000")

    r = api.get(f"/firms/{firm.id}/invoices/{invoice_id}")
    assert r.status_code == 200
    assert r.json()["case_details"]["billing_method"] == "fixed"

    r = api.get(f"/firms/{firm.id}/invoices/", params={"invoice_type": "case_billing"})
    assert [i["id"] for i in r.json()] == [invoice_id]

    r = api.post(f"/firms/{firm.id}/invoices/{invoice_id}/send")
    assert r.status_code == 200
    assert r.json()["invoice_status"] == "sent"

    r = api.post(f"/firms/{firm.id}/invoices/{invoice_id}/send")
    assert r.status_code == 409


def test_missing_configuration_maps_to_404(api, firm, matter):
    r = api.post(f"/firms/{firm.id}/case-invoices/", json={"matter_id": matter.id})
    assert r.status_code == 404
    assert r.json()["detail"] == "Configuração de cobrança não encontrada"


def test_unknown_firm(api):
    r = api.post("/firms/999/case-invoices/", json={"matter_id": 1})
    assert r.status_code == 404
    assert r.json()["detail"] == "Escritório não encontrado"


def test_duplicate_installment_maps_to_409(api, db, firm, client):
    plan = PaymentPlan(
        law_firm_id=firm.id,
        client_id=client.id,
        total_amount=Decimal("3000"),
        installments=3,
        installment_amount=Decimal("1000"),
        frequency=PaymentFrequency.MONTHLY,
        start_date=dt.date.today() + dt.timedelta(days=10),
        status=PaymentPlanStatus.ACTIVE,
    )
    db.add(plan)
    db.commit()
    url = f"/firms/{firm.id}/payment-plans/{plan.id}/invoices"

    assert api.post(url, json={"installment_number": 1}).status_code == 201
    r = api.post(url, json={"installment_number": 1})
    assert r.status_code == 409
    assert r.json()["detail"] == "Fatura para esta parcela já existe"

    summary = api.get(f"/firms/{firm.id}/payment-plans/{plan.id}/summary").json()
    assert summary["generated_installments"] == 1
    assert summary["next_installment_number"] == 2


def test_batch_case_rejects_empty_matters_list(api, firm):
    r = api.post(f"/firms/{firm.id}/case-invoices/batch", json={"matter_ids": []})
    assert r.status_code == 422


def test_tasks_require_token(api):
    r = api.post("/tasks/overdue-installments", json={})
    assert r.status_code == 401


def test_tasks_run_for_every_firm(api, firm):
    r = api.post(
        "/tasks/overdue-installments",
        json={},
        headers={"X-Tasks-Token": settings.tasks_daily_secret},
    )
    assert r.status_code == 200
    results = r.json()
    assert len(results) == 1
    assert results[0]["success"] is True
    assert results[0]["total_requested"] == 0


def test_summary_of_unknown_plan_is_404(api, firm):
    r = api.get(f"/firms/{firm.id}/payment-plans/999/summary")
    assert r.status_code == 404
    assert r.json()["detail"] == "Plano de pagamento não encontrado"
