from .notifications import create_notification, notify_admins, notification_recipient
from . import accounts, approvals, cart, catalog, notifications, orders, reports, sms

from wazza.utils.logging import get_logger

log = get_logger(__name__)
