import pytest
from pydantic import ValidationError

from examplanner.core.config import Settings


def test_cors_origins_accept_comma_separated_and_json():
    assert Settings(cors_origins="http://a.test, http://b.test").cors_origins == ["http://a.test", "http://b.test"]
    assert Settings(cors_origins='["http://c.test"]').cors_origins == ["http://c.test"]


def test_default_exam_days_are_weekdays():
    assert Settings().default_exam_days == [0, 1, 2, 3, 4]


def test_default_exam_days_reject_out_of_range():
    with pytest.raises(ValidationError):
        Settings(default_exam_days=[0, 7])
