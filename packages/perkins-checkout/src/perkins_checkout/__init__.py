"""
Perkins Checkout - cart, pricing and order submission pipeline.

Walks a cart through shipping configuration and payment selection,
prices it in local currency with region and date dependent shipping,
and submits the order through one of two settlement paths:
- mercadopago: hosted payment preference, failures abort the attempt
- cash: best-effort delivery scheduling, failures are tolerated
"""

from perkins_checkout.cart import CartStore
from perkins_checkout.currency import (
    DolarApiRateProvider,
    ExchangeRateProvider,
    ExchangeRateService,
    StaticExchangeRateProvider,
)
from perkins_checkout.errors import (
    CartError,
    CheckoutError,
    ConfigurationError,
    FieldError,
    InsufficientStock,
    InvalidRateError,
    InvalidTransition,
    NetworkError,
    OutOfStock,
    PaymentPreferenceError,
    QuantityLimitExceeded,
    SchedulingError,
    SubmissionInProgress,
    ValidationError,
)
from perkins_checkout.models import (
    CartLine,
    ConfirmationStatus,
    ExchangeRate,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    PricingMode,
    Product,
    Region,
    ShippingConfig,
    ShippingFee,
)
from perkins_checkout.orchestrator import (
    OrderIdGenerator,
    OrderSubmissionCoordinator,
    SubmissionOutcome,
    SubmissionResult,
)
from perkins_checkout.policy import FAILURE_POLICY, FailurePolicy, SubmissionStep
from perkins_checkout.pricing import PricingEngine, format_price, to_local
from perkins_checkout.session import CheckoutSession, OrderHistory, OrderRecord
from perkins_checkout.state_machine import (
    CheckoutStateMachine,
    CheckoutStep,
    TransitionResult,
)

__all__ = [
    "CartError",
    "CartLine",
    "CartStore",
    "CheckoutError",
    "CheckoutSession",
    "CheckoutStateMachine",
    "CheckoutStep",
    "ConfigurationError",
    "ConfirmationStatus",
    "DolarApiRateProvider",
    "ExchangeRate",
    "ExchangeRateProvider",
    "ExchangeRateService",
    "FAILURE_POLICY",
    "FailurePolicy",
    "FieldError",
    "InsufficientStock",
    "InvalidRateError",
    "InvalidTransition",
    "NetworkError",
    "Order",
    "OrderHistory",
    "OrderIdGenerator",
    "OrderLine",
    "OrderRecord",
    "OrderStatus",
    "OrderSubmissionCoordinator",
    "OutOfStock",
    "PaymentMethod",
    "PaymentPreferenceError",
    "PricingEngine",
    "PricingMode",
    "Product",
    "QuantityLimitExceeded",
    "Region",
    "SchedulingError",
    "ShippingConfig",
    "ShippingFee",
    "StaticExchangeRateProvider",
    "SubmissionInProgress",
    "SubmissionOutcome",
    "SubmissionResult",
    "SubmissionStep",
    "TransitionResult",
    "ValidationError",
    "format_price",
    "to_local",
]

__version__ = "0.1.0"
