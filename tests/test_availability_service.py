# tests/test_availability_service.py
"""Unit tests for the availability checker."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import date
from carrental.exceptions import InvalidInputError
from carrental.services.availability_service import available_drivers, is_vehicle_available


def make_db(conflict=None):
    db = MagicMock()
    query = MagicMock()
    query.filter.return_value = query
    query.first.return_value = conflict
    db.query.return_value = query
    return db, query


class TestVehicleAvailability:
    def test_available_when_no_overlap(self):
        db, _ = make_db(conflict=None)
        assert is_vehicle_available(db, 1, date(2024, 6, 1), date(2024, 6, 5)) is True

    def test_unavailable_when_overlap(self):
        db, _ = make_db(conflict=MagicMock(id=7))
        assert is_vehicle_available(db, 1, date(2024, 6, 1), date(2024, 6, 5)) is False

    def test_exclude_adds_filter(self):
        db, query = make_db()
        is_vehicle_available(db, 1, date(2024, 6, 1), date(2024, 6, 5))
        calls_without = query.filter.call_count

        db, query = make_db()
        is_vehicle_available(db, 1, date(2024, 6, 1), date(2024, 6, 5), exclude_booking_id=3)
        assert query.filter.call_count == calls_without + 1


class TestAvailableDrivers:
    def test_rejects_inverted_range(self):
        db, _ = make_db()
        with pytest.raises(InvalidInputError):
            available_drivers(db, date(2024, 6, 5), date(2024, 6, 1))
