"""ORM models package export."""

from petshop.models.account import Account
from petshop.models.appointment import (
    TERMINAL_STATUSES,
    Appointment,
    AppointmentStatus,
    PaymentMethod,
    PaymentStatus,
)
from petshop.models.audit_event import AuditEvent
from petshop.models.package import PackageCredit, PackageItem, ServicePackage
from petshop.models.pet import Pet, PetSize, PetSpecies
from petshop.models.schedule_block import ScheduleBlock
from petshop.models.service import (
    PricingRule,
    Service,
    ServiceCategory,
    TargetSpecies,
)

__all__ = [
    "Account",
    "Appointment",
    "AppointmentStatus",
    "AuditEvent",
    "PackageCredit",
    "PackageItem",
    "PaymentMethod",
    "PaymentStatus",
    "Pet",
    "PetSize",
    "PetSpecies",
    "PricingRule",
    "ScheduleBlock",
    "Service",
    "ServiceCategory",
    "ServicePackage",
    "TargetSpecies",
    "TERMINAL_STATUSES",
]
