"""
Test Configuration and Fixtures

This module provides:
- Environment setup (log dir, Kvrocks key prefix) before any app import
- A fixed clock (Asia/Tokyo)
- Record factories for lessons, reservations and roster rows
- ``world``: the whole reservation core wired over in-memory store, cache and lock

Unit tests use the in-memory fakes; nothing here talks to Kvrocks.
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    if worker_id == 'master':
        os.environ['KVROCKS_KEY_PREFIX'] = 'test_'
    else:
        os.environ['KVROCKS_KEY_PREFIX'] = f'test_{worker_id}_'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


_early_setup_test_environment()

from collections.abc import Callable  # noqa: E402
from datetime import date, datetime  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402
from zoneinfo import ZoneInfo  # noqa: E402

import pytest  # noqa: E402

from test.reservation_world import ReservationWorld, build_world  # noqa: E402


TOKYO = ZoneInfo('Asia/Tokyo')
TODAY = date(2025, 10, 1)
LESSON_DATE = '2025-10-15'


# =============================================================================
# Record factories
# =============================================================================


def _lesson_record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'lesson_id': 'lesson-1',
        'date': LESSON_DATE,
        'classroom': 'Ceramics A',
        'venue': 'Tokyo',
        'classroom_type': 'session_based',
        'first_start': '10:00',
        'first_end': '12:00',
        'second_start': '',
        'second_end': '',
        'beginner_start': '',
        'total_capacity': 8,
        'beginner_capacity': 0,
        'status': 'scheduled',
        'notes': '',
    }
    record.update(overrides)
    return record


def _reservation_record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'reservation_id': 'reservation-1',
        'lesson_id': 'lesson-1',
        'student_id': 'student-1',
        'classroom': 'Ceramics A',
        'date': LESSON_DATE,
        'status': 'confirmed',
        'start_time': '10:00',
        'end_time': '12:00',
        'is_beginner': False,
        'notes': '',
        'accounting': '',
        'cancel_message': '',
        'created_at': '2025-09-01T10:00:00+09:00',
        'updated_at': '2025-09-01T10:00:00+09:00',
    }
    record.update(overrides)
    return record


def _student_record(**overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        'student_id': 'student-1',
        'name': 'Test Student',
        'email': '',
        'phone': '',
        'is_admin': False,
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_lesson_record() -> Callable[..., dict[str, Any]]:
    return _lesson_record


@pytest.fixture
def make_reservation_record() -> Callable[..., dict[str, Any]]:
    return _reservation_record


@pytest.fixture
def make_student_record() -> Callable[..., dict[str, Any]]:
    return _student_record


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> MagicMock:
    """Fixed at 2025-10-01 09:00 Asia/Tokyo; tests move it by resetting return values"""
    mock = MagicMock()
    mock.now.return_value = datetime(2025, 10, 1, 9, 0, tzinfo=TOKYO)
    mock.today.return_value = TODAY
    return mock


# =============================================================================
# Whole reservation core over in-memory infrastructure
# =============================================================================


@pytest.fixture
def world(clock: MagicMock) -> ReservationWorld:
    return build_world(clock=clock)
