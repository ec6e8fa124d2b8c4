from sqlalchemy import func, select

from backend.app.db.models.models_v1 import RequirementList
from backend.app.db.seed import run_seed
from backend.services.procurement import evaluate, list_view_from_model


def test_seed_list_is_convertible(db_session):
    req_list = run_seed(db_session)

    verdict = evaluate(list_view_from_model(req_list))

    assert req_list.code == "P001-LST-001"
    assert verdict.convertible
    assert verdict.real_cost == 4100
    assert verdict.planned_budget == 4200


def test_seed_is_idempotent(db_session):
    run_seed(db_session)
    run_seed(db_session)

    assert db_session.scalar(select(func.count()).select_from(RequirementList)) == 1
