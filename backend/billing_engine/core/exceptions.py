"""Errors raised by the billing engine.

All of them subclass ``ValueError`` so callers that only know about the
service convention (``except ValueError``) keep working.
"""


class BillingError(ValueError):
    """Base class for billing engine failures."""


class NotFoundError(BillingError):
    """A company, invoice or other required record does not exist."""


class NoApplicablePlanError(BillingError):
    """The company has no active billing plan overlapping the period."""


class PeriodSpansCycleChangeError(BillingError):
    """The requested period crosses a billing cycle change."""


class TaxServiceError(BillingError):
    """The external tax rate service could not be reached or answered badly."""
