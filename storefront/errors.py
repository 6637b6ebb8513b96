# storefront/errors.py
from flask import jsonify

from .utils.api import api_error


class StorefrontError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message=None, status_code=None, data=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.data = data


class ValidationError(StorefrontError):
    status_code = 400
    message = "Invalid request"


class EmptyCart(ValidationError):
    message = "No items in cart"


class InvalidSignature(StorefrontError):
    status_code = 400
    message = "Invalid signature"


class NotFound(StorefrontError):
    status_code = 404
    message = "Not found"


class PaymentProcessorError(StorefrontError):
    status_code = 500
    message = "Payment processor request failed"


def register_error_handlers(app):
    @app.errorhandler(StorefrontError)
    def handle_storefront_error(e):
        r = jsonify(api_error(e.message, e.data))
        r.status_code = e.status_code
        return r
