from .client import Client, ClientTag, ClientTagAssignment
from .device import Device, DeviceAssignment, DeviceStatus
from .invoice import ClientInvoice, SubscriptionPlan, InvoiceStatus, REVENUE_STATUSES
from .provider import Provider, ProviderPayment
from .profile import Profile, InviteRequest, UserRole, INVITABLE_ROLES
from .audit import AuditLog
from .mail import MailTemplate

__all__ = [
    "Client",
    "ClientTag",
    "ClientTagAssignment",
    "Device",
    "DeviceAssignment",
    "DeviceStatus",
    "ClientInvoice",
    "SubscriptionPlan",
    "InvoiceStatus",
    "REVENUE_STATUSES",
    "Provider",
    "ProviderPayment",
    "Profile",
    "InviteRequest",
    "UserRole",
    "INVITABLE_ROLES",
    "AuditLog",
    "MailTemplate"
]
