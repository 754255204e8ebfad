"""
Tests for the OPD lab results register column.
"""
from datetime import date, datetime

import pytest

from emr_svc.core.exceptions import BindingError


@pytest.fixture
def lab_results(lab_repo):
    """Encounter 10 has a panel, 11 a single test, 12 falls outside January."""
    lab_repo.add(10, 1, date(2024, 1, 15), "Complete blood count", "13.2", result_test_name="Hemoglobin", is_panel=True)
    lab_repo.add(10, 1, date(2024, 1, 15), "Complete blood count", "250", result_test_name="Platelets", is_panel=True)
    lab_repo.add(11, 2, date(2024, 1, 20), "Malaria", "NEGATIVE")
    lab_repo.add(12, 3, date(2024, 2, 2), "Malaria", "POSITIVE")


def test_results_per_encounter(lab_results_evaluator, lab_results):
    results = lab_results_evaluator.evaluate(date(2024, 1, 1), date(2024, 1, 31))

    assert set(results) == {10, 11}
    assert set(results[10].split(", ")) == {"Hemoglobin|13.2", "Platelets|250"}
    assert results[11] == "NEGATIVE"


def test_range_bounds_are_inclusive(lab_results_evaluator, lab_results):
    results = lab_results_evaluator.evaluate(date(2024, 1, 20), date(2024, 2, 2))

    assert set(results) == {11, 12}


def test_string_and_datetime_bounds(lab_results_evaluator, lab_results):
    results = lab_results_evaluator.evaluate("2024-02-01", datetime(2024, 2, 28, 17, 0))

    assert results == {12: "POSITIVE"}


def test_no_results(lab_results_evaluator, lab_results):
    assert lab_results_evaluator.evaluate(date(2023, 1, 1), date(2023, 12, 31)) == {}


def test_start_after_end_is_rejected(lab_results_evaluator):
    with pytest.raises(BindingError) as exc_info:
        lab_results_evaluator.evaluate(date(2024, 2, 1), date(2024, 1, 1))

    assert exc_info.value.context["parameter"] == "startDate"
