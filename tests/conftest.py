import pytest

from bills_db.config import BillsDBConfig
from bills_db.core import BillsDB
from bills_db.registry import BillRecord


SAMPLE_BILLS = [
    BillRecord(
        id="B1", title="Schools Funding Bill", policy_area="Education",
        current_house="Commons", status="2nd reading", originating_house="Commons",
        introduction_date="2023-01-10", days_to_approval=100, is_act=True,
    ),
    BillRecord(
        id="B2", title="Curriculum Reform Bill", policy_area="Education",
        current_house="Lords", status="Royal Assent", originating_house="Commons",
        introduction_date="2023-02-01", days_to_approval=121, is_act=True,
    ),
    BillRecord(
        id="B3", title="Hospital Parking Bill", policy_area="Health",
        current_house="Commons", status="1st reading", originating_house="Lords",
        introduction_date="2023-03-05", days_to_approval=None, is_act=False,
    ),
    BillRecord(
        id="B4", title="Rail Electrification Bill", policy_area="Transport",
        current_house="Lords", status="Committee stage", originating_house="Lords",
        introduction_date="2023-04-12", days_to_approval=90, is_act=False,
    ),
    BillRecord(
        id="B5", title="NHS Staffing Bill", policy_area="Health",
        current_house="Commons", status="2nd reading", originating_house="Commons",
        introduction_date="2023-05-20", days_to_approval=None, is_act=False,
    ),
]


@pytest.fixture
def empty_db(tmp_path):
    cfg = BillsDBConfig(db_backend="sqlite", db_uri=str(tmp_path / "bills.db"))
    return BillsDB.from_config(cfg)


@pytest.fixture
def bills_db(empty_db):
    empty_db.bill_registry.insert_bills(SAMPLE_BILLS)
    return empty_db
