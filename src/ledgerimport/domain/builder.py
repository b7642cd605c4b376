"""Construction of balanced ledger entries."""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ledgerimport.domain.entities import (
    LedgerEntry,
    PostedEntry,
    RawEntry,
    ResolvedAccount,
    Unresolved,
)
from ledgerimport.domain.errors import account_missing, account_not_found

CENT = Decimal("0.01")


def balanced_amount(primary: Decimal, secondary: Optional[Decimal] = None) -> Decimal:
    """Return the amount used on both sides of an entry.

    The larger magnitude of the two source-side amounts wins; a single amount
    is used as is.
    """
    amounts = [abs(primary)]
    if secondary is not None:
        amounts.append(abs(secondary))
    return max(amounts).quantize(CENT, rounding=ROUND_HALF_UP)


def describe_errors(debit: ResolvedAccount, credit: ResolvedAccount) -> Optional[str]:
    """Return the error reason for unresolved sides, or None if both resolved."""
    reasons = []
    for side, account in (("debit", debit), ("credit", credit)):
        if isinstance(account, Unresolved):
            reasons.append(account_not_found(account.token) if account.token else account_missing(side))
    return "; ".join(reasons) or None


class TransactionBuilder:
    """Turns raw entries and their resolved accounts into ledger entries.

    Every entry produced here has equal debit and credit amounts.
    """

    def __init__(
        self,
        currency: str = "PLN",
        exchange_rate: Decimal = Decimal("1"),
        default_date: Optional[date] = None,
    ):
        """Initialize the builder.

        Args:
            currency: Local currency used when the source names none
            exchange_rate: Rate applied to entries in a foreign currency
            default_date: Date for entries whose source carries none
        """
        self.currency = currency
        self.exchange_rate = exchange_rate
        self.default_date = default_date or date.today()

    def _rate_for(self, currency: str) -> Decimal:
        return Decimal("1") if currency == self.currency else self.exchange_rate

    def build(
        self,
        raw: RawEntry,
        debit_account: ResolvedAccount,
        credit_account: ResolvedAccount,
        display_order: Optional[int] = None,
    ) -> LedgerEntry:
        """Build a balanced ledger entry from a raw entry.

        Args:
            raw: Parsed source entry
            debit_account: Resolution of the primary (debit) token
            credit_account: Resolution of the secondary (credit) token
            display_order: Position in the batch; defaults to the source row index

        Returns:
            LedgerEntry with ``has_error`` set when either side is unresolved
        """
        amount = balanced_amount(raw.primary_amount, raw.secondary_amount)
        currency = raw.currency or self.currency
        error_reason = describe_errors(debit_account, credit_account)

        return LedgerEntry(
            description=raw.description,
            date=raw.date or self.default_date,
            currency=currency,
            exchange_rate=self._rate_for(currency),
            debit_amount=amount,
            credit_amount=amount,
            debit_account=debit_account,
            credit_account=credit_account,
            display_order=raw.source_row_index if display_order is None else display_order,
            has_error=error_reason is not None,
            error_reason=error_reason,
            reference=raw.reference,
        )

    def rederive(
        self,
        posted: PostedEntry,
        debit_account: ResolvedAccount,
        credit_account: ResolvedAccount,
        display_order: int,
    ) -> LedgerEntry:
        """Rebuild a balanced entry from an already-posted one.

        Split postings with different debit and credit amounts collapse to a
        single pair carrying the larger amount on both sides.
        """
        amount = balanced_amount(posted.debit_amount, posted.credit_amount)
        error_reason = describe_errors(debit_account, credit_account)
        return LedgerEntry(
            description=posted.description,
            date=posted.date,
            currency=posted.currency,
            exchange_rate=posted.exchange_rate,
            debit_amount=amount,
            credit_amount=amount,
            debit_account=debit_account,
            credit_account=credit_account,
            display_order=display_order,
            has_error=error_reason is not None,
            error_reason=error_reason,
        )
