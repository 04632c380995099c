"""
Prescription catalog.

Supplies the fixed, read-only list of prescriptions shown on the patient
dashboard. A pharmacy-system integration would replace the built-in
records; callers only see ``list_prescriptions`` and ``get``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from models.prescription import Prescription
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


DEFAULT_PRESCRIPTIONS: List[Dict[str, Any]] = [
    {
        "id": "rx-001",
        "name": "Paracetamol",
        "strength": "500mg",
        "quantity": 20,
        "repeats": 3,
        "prescribed_date": "2024-01-15",
        "expiry_date": "2024-07-15",
        "status": "active",
        "interval": "As needed, up to 4 times daily",
        "price": "12.50",
    },
    {
        "id": "rx-002",
        "name": "Ibuprofen",
        "strength": "200mg",
        "quantity": 30,
        "repeats": 2,
        "prescribed_date": "2024-02-01",
        "expiry_date": "2024-08-01",
        "status": "active",
        "interval": "Twice daily with food",
        "price": "15.80",
    },
    {
        "id": "rx-003",
        "name": "Vitamin D",
        "strength": "1000IU",
        "quantity": 60,
        "repeats": 0,
        "prescribed_date": "2023-12-01",
        "expiry_date": "2024-06-01",
        "status": "used",
        "interval": "Once daily",
        "price": "8.90",
    },
]


class CatalogService:
    """Read-only prescription lookup."""

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        source = DEFAULT_PRESCRIPTIONS if records is None else records
        self._prescriptions = [Prescription.from_dict(r) for r in source]
        logger.info(f"Catalog loaded with {len(self._prescriptions)} prescriptions")

    def list_prescriptions(self) -> List[Prescription]:
        return list(self._prescriptions)

    def get(self, prescription_id: str) -> Optional[Prescription]:
        for prescription in self._prescriptions:
            if prescription.id == prescription_id:
                return prescription
        return None
