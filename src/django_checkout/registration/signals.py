"""Custom signals for the registration app.

Signals:
    checkout_status_changed: Sent after a checkout moves to a new status and
        its registrations have been updated.
        Sender: The ``Checkout`` class.
        Kwargs:
            checkout: The ``Checkout`` instance after the change.
            previous_status: The status it held before the change.
            actor: The user who made the change.
    registration_created: Sent after a registration is stored.
        Sender: The ``Registration`` class.
        Kwargs:
            registration: The new ``Registration`` instance.
            voucher: The redeemed ``Voucher`` or ``None``.
"""

from django.dispatch import Signal

checkout_status_changed = Signal()
registration_created = Signal()
