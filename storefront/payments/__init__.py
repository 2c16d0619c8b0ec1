"""
Payments — thin typed wrappers over the payment endpoints.

    payments = PaymentsApi(api)

    match await payments.generate_yape_qr(order_id):
        case Ok(qr):
            print(qr.payment_code, qr.amount)
        case Error(e):
            ...
"""

from storefront.payments._api import PaymentsApi

__all__ = ("PaymentsApi",)
