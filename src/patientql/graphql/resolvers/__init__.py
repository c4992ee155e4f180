"""
GraphQL resolvers
"""

from .patient import (
    create_patient,
    delete_patient,
    resolve_patient_by_id,
    resolve_patients,
    update_patient,
)

__all__ = [
    "create_patient",
    "delete_patient",
    "resolve_patient_by_id",
    "resolve_patients",
    "update_patient",
]
