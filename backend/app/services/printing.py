from __future__ import annotations
"""Label synthesis and the printer seam.

``LabelPrinter`` implementations are looked up from ``app.config['LABEL_PRINTER']``
so tests and deployments can swap the simulated device for a real one.
A failed print is a recorded outcome, never an exception to the caller.
"""
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
from flask import current_app
from app import get_db
from app.models.activity_log import ActivityLog
from app.models.printed_label import PrintedLabel
from app.models.service_task import ServiceTask
from app.models.user import User
from app.services.audit import add_activity
from app.utils.listing import iso


@dataclass
class PrintOutcome:
    success: bool
    error_msg: Optional[str] = None


class LabelPrinter(ABC):
    @abstractmethod
    def submit(self, payload: Dict[str, Any], printer_name: Optional[str]) -> PrintOutcome:
        ...


class SimulatedLabelPrinter(LabelPrinter):
    """Stand-in device: waits ``delay_seconds`` then fails with probability ``failure_rate``."""

    def __init__(self, delay_seconds: float = 1.0, failure_rate: float = 0.05, rng: Optional[random.Random] = None):
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()

    def submit(self, payload, printer_name):
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.rng.random() < self.failure_rate:
            return PrintOutcome(False, f"Printer {printer_name or 'default'} is out of paper")
        return PrintOutcome(True)


def build_label_payload(task: ServiceTask, label_type: str, app_url: str) -> Dict[str, Any]:
    base = {
        'taskId': task.id,
        'customerName': task.customer_name,
        'phone': task.phone,
        'serviceType': task.service_type,
        'itemModel': task.item_model,
        'serialNumber': task.serial_number,
        'createdAt': iso(task.created_at),
    }
    if label_type == PrintedLabel.TYPE_SERVICE_TAG:
        base.update({
            'title': 'Service Tag',
            'qrCode': f'{app_url}/task/{task.id}',
            'instructions': 'Scan QR code to view task details',
        })
    elif label_type == PrintedLabel.TYPE_CUSTOMER_RECEIPT:
        base.update({
            'title': 'Service Receipt',
            'receiptNumber': task.id[-8:].upper(),
            'estimatedCompletion': iso(task.estimated_completion),
        })
    elif label_type == PrintedLabel.TYPE_INTERNAL_TAG:
        base.update({
            'title': 'Internal Tag',
            'priority': task.priority,
            'assignedTo': task.assigned_to.name if task.assigned_to else None,
        })
    return base


def print_label(task: ServiceTask, label_type: str, printer_name: Optional[str], user: User,
                batch: bool = False) -> PrintedLabel:
    """Submit one label and stage its PrintedLabel and LABEL_PRINTED rows.

    The caller commits.
    """
    printer: LabelPrinter = current_app.config['LABEL_PRINTER']
    payload = build_label_payload(task, label_type, current_app.config['APP_URL'])
    outcome = printer.submit(payload, printer_name)
    label = PrintedLabel(
        task_id=task.id,
        label_type=label_type,
        printed_by_id=user.id,
        printer_name=printer_name or None,
        success=outcome.success,
        error_msg=outcome.error_msg,
    )
    get_db().add(label)
    suffix = ' (batch)' if batch else ''
    if outcome.success:
        description = f'{label_type} label printed successfully{suffix}'
        current_app.logger.info('Label %s printed for task %s', label_type, task.id)
    else:
        description = f'{label_type} label printing failed{suffix}: {outcome.error_msg}'
        current_app.logger.warning('Label %s failed for task %s: %s', label_type, task.id, outcome.error_msg)
    meta = {
        'labelType': label_type,
        'printerName': printer_name,
        'success': outcome.success,
        'errorMsg': outcome.error_msg,
    }
    if batch:
        meta['batchOperation'] = True
    add_activity(task.id, ActivityLog.ACTION_LABEL_PRINTED, description, user.id, meta)
    return label


def label_json(label: PrintedLabel, task: Optional[ServiceTask] = None) -> dict:
    printed_by = label.printed_by
    return {
        'id': label.id,
        'taskId': label.task_id,
        'labelType': label.label_type,
        'printerName': label.printer_name,
        'success': label.success,
        'errorMsg': label.error_msg,
        'createdAt': iso(label.created_at),
        'printedBy': {
            'id': printed_by.id,
            'name': printed_by.name or printed_by.email,
            'email': printed_by.email,
        } if printed_by else None,
        'task': {
            'id': task.id,
            'customerName': task.customer_name,
            'serviceType': task.service_type,
            'itemModel': task.item_model,
            'serialNumber': task.serial_number,
        } if task else None,
    }
