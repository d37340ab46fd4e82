import pytest
import os

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("BACKFILL_MAX_ROWS", "500")

from app.main import app
from app.schemas.leave import LeavePolicyIn
from fastapi.testclient import TestClient

@pytest.fixture(scope="function")
def client():
    """Get a TestClient; the lifespan runs on enter."""
    with TestClient(app) as c:
        yield c

@pytest.fixture(scope="function")
def policy_payload():
    """Company leave policy as the backend's GET /companies/leave-policy returns it."""
    return {
        "totalAnnual": 24,
        "ratePerMonth": 2,
        "probationRatePerMonth": 1,
        "accrualStrategy": "ACCRUAL",
        "applicableFrom": "2025-04",
        "typeCaps": {"paid": 12, "casual": 6, "sick": 6},
    }

@pytest.fixture(scope="function")
def policy(policy_payload):
    return LeavePolicyIn.model_validate(policy_payload)
