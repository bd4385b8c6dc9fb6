"""Shared fixtures for calendar tests."""

from datetime import date

import pytest

from jobcal.config import reset_config
from jobcal.models import ApplicationRecord


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def acme_record() -> ApplicationRecord:
    return ApplicationRecord.model_validate(
        {
            "id": "job-1",
            "company": "Acme",
            "position": "Eng",
            "appliedDate": "2024-03-04T09:00",
            "events": [{"title": "Interview", "date": "2024-03-06T14:00"}],
        }
    )


@pytest.fixture
def records(acme_record) -> list[ApplicationRecord]:
    return [
        acme_record,
        ApplicationRecord(
            id="job-2",
            company="Globex",
            position="Data Analyst",
            applied_date="2024-03-05",
            events=[
                {"title": "Phone screen", "date": "2024-03-07T10:00:00"},
                {"title": "Onsite", "date": "2024-03-07T10:00:00", "description": "Bring ID"},
            ],
        ),
    ]


@pytest.fixture
def wednesday() -> date:
    return date(2024, 3, 6)
