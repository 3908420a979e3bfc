"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RateUnavailableError(DomainException):
    """A required currency has no resolvable exchange rate"""

    def __init__(self, currency: str):
        super().__init__(f"No exchange rate available for {currency.upper()}")
        self.currency = currency.lower()


class NonAmortizingDebtError(DomainException):
    """Monthly payment does not cover first-period interest, the debt never pays off"""

    def __init__(self, monthly_payment, first_interest):
        super().__init__(
            f"Payment {monthly_payment} does not exceed first-period interest {first_interest}"
        )
        self.monthly_payment = monthly_payment
        self.first_interest = first_interest


class UpstreamFetchError(DomainException):
    """Exchange-rate or market-data source is unreachable or returned bad data"""

    pass


class DebtNotFoundError(DomainException):
    """Debt does not exist within the requested ownership scope"""

    pass


class PayoffBeyondHorizonError(NonAmortizingDebtError):
    """Payment covers interest but the balance outlives the schedule horizon"""

    def __init__(self, max_months: int):
        DomainException.__init__(self, f"Debt is not paid off within {max_months} months")
        self.monthly_payment = None
        self.first_interest = None
        self.max_months = max_months
