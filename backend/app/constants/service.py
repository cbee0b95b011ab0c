"""Display tables shared by the task, customer and reporting endpoints.

Internal enum values are stored; display names are what the intake form and
kanban board send and render. Unknown display names fall back to OTHER.
"""
from __future__ import annotations
from typing import Dict

SERVICE_TYPE_DISPLAY: Dict[str, str] = {
    'BASIC_TUNE_UP': 'Basic Tune-Up',
    'FULL_SERVICE': 'Full Service',
    'BRAKE_ADJUSTMENT': 'Brake Adjustment',
    'GEAR_ADJUSTMENT': 'Gear Adjustment',
    'WHEEL_TRUE': 'Wheel True',
    'CHAIN_CASSETTE_REPLACEMENT': 'Chain/Cassette Replacement',
    'FLAT_TIRE_REPAIR': 'Flat Tire Repair',
    'CUSTOM_BUILD': 'Custom Build',
    'DIAGNOSTIC': 'Diagnostic',
    'WARRANTY_WORK': 'Warranty Work',
    'OTHER': 'Other',
}

DISPLAY_TO_SERVICE_TYPE: Dict[str, str] = {v: k for k, v in SERVICE_TYPE_DISPLAY.items()}

STATUS_DISPLAY: Dict[str, Dict[str, str]] = {
    'FUTURE': {'displayName': 'Future', 'color': 'bg-gray-500'},
    'IN_SHOP': {'displayName': 'In Shop', 'color': 'bg-blue-500'},
    'IN_PROGRESS': {'displayName': 'In Progress', 'color': 'bg-yellow-500'},
    'COMPLETED': {'displayName': 'Completed', 'color': 'bg-green-500'},
    'CLOSED': {'displayName': 'Closed', 'color': 'bg-gray-600'},
    'CANCELLED': {'displayName': 'Cancelled', 'color': 'bg-red-500'},
    'ON_HOLD': {'displayName': 'On Hold', 'color': 'bg-orange-500'},
}

# Kanban columns in board order; CANCELLED and ON_HOLD have no drag target
BOARD_COLUMNS = ('FUTURE', 'IN_SHOP', 'IN_PROGRESS', 'COMPLETED', 'CLOSED')

TIME_RANGE_DAYS: Dict[str, int] = {'7d': 7, '30d': 30, '90d': 90, '1y': 365}
DEFAULT_TIME_RANGE = '30d'


def service_type_from_display(display: str) -> str:
    return DISPLAY_TO_SERVICE_TYPE.get(display, 'OTHER')


def service_type_to_display(value: str) -> str:
    return SERVICE_TYPE_DISPLAY.get(value, 'Other')


def status_display_name(value: str) -> str:
    cfg = STATUS_DISPLAY.get(value)
    return cfg['displayName'] if cfg else value
