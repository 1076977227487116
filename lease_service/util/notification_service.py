import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from html import escape
from typing import Callable, Optional

from shared.core.config import settings
from shared.helpers.email_helper import EmailHelper

logger = logging.getLogger(__name__)


NEW_LEASE_TEMPLATE = """
<html>
  <body>
    <p>Dear {tenant_name},</p>
    <p>a new lease has been registered for the property at <b>{property_address}</b>.</p>
    <p>The installment schedule is available in your tenant area.</p>
  </body>
</html>
"""

PAYMENT_CONFIRMED_TEMPLATE = """
<html>
  <body>
    <p>Dear {tenant_name},</p>
    <p>we confirm the payment of installment <b>#{installment_number}</b>
    of <b>{amount}</b> for the property at <b>{property_address}</b>.</p>
  </body>
</html>
"""


class LeaseNotifier:
    """
    Fire-and-forget tenant emails.

    ``submit`` receives ``(fn, *args)`` and runs it later; the router passes
    ``BackgroundTasks.add_task``. Without one, sends go to a small thread
    pool owned by the notifier. Nothing raised while rendering, submitting
    or sending ever reaches the caller.
    """

    def __init__(self, submit: Optional[Callable] = None, email_helper: Optional[EmailHelper] = None):
        self._submit = submit
        self._email_helper = email_helper
        self._executor = None

    def notify_new_lease(self, tenant_email: str, tenant_name: str, property_address: str):
        self._dispatch(
            NEW_LEASE_TEMPLATE,
            tenant_email,
            subject="New lease registered",
            context={
                "tenant_name": tenant_name,
                "property_address": property_address,
            },
        )

    def notify_payment_confirmed(self, tenant_email: str, tenant_name: str,
                                 installment_number: int, amount: Decimal,
                                 property_address: str):
        self._dispatch(
            PAYMENT_CONFIRMED_TEMPLATE,
            tenant_email,
            subject=f"Payment confirmed - installment #{installment_number}",
            context={
                "tenant_name": tenant_name,
                "installment_number": installment_number,
                "amount": f"{Decimal(amount):.2f}",
                "property_address": property_address,
            },
        )

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ----------------------------------------------------
    # internals
    # ----------------------------------------------------
    def _helper(self) -> Optional[EmailHelper]:
        if self._email_helper is None:
            self._email_helper = EmailHelper.from_settings()
        return self._email_helper

    def _dispatch(self, template: str, recipient: str, subject: str, context: dict):
        try:
            if not settings.NOTIFICATIONS_ENABLED:
                logger.info("Notifications disabled, skipping '%s'", subject)
                return
            if not recipient:
                logger.warning("No recipient for '%s', skipping", subject)
                return
            helper = self._helper()
            if helper is None:
                logger.info("SMTP not configured, skipping '%s' to %s",
                            subject, recipient)
                return

            safe_context = {k: escape(str(v)) for k, v in context.items()}
            submit = self._submit or self._pool().submit
            submit(self._deliver, helper, template, recipient, subject, safe_context)
        except Exception:
            logger.exception("Could not submit notification '%s' to %s",
                             subject, recipient)

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="lease-notify")
        return self._executor

    @staticmethod
    def _deliver(helper: EmailHelper, template: str, recipient: str, subject: str, context: dict):
        try:
            if not helper.send_email(template, [recipient], subject, context):
                logger.error("Notification '%s' to %s was not delivered",
                             subject, recipient)
        except Exception:
            logger.exception("Notification '%s' to %s failed", subject, recipient)
