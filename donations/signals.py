import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

# Sent once the verification has committed.
# kwargs: donation, action ('APPROVE' | 'REJECT'), actor, details, ip_address
donation_processed = Signal()


def announce_processed(donation, action, actor, details, ip_address=None):
    responses = donation_processed.send_robust(
        sender=donation.__class__,
        donation=donation,
        action=action,
        actor=actor,
        details=details,
        ip_address=ip_address,
    )
    for receiver, result in responses:
        if isinstance(result, Exception):
            logger.error(
                "donation_processed receiver %r failed: %s", receiver, result,
                exc_info=(type(result), result, result.__traceback__),
            )
