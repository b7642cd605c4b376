"""Bank statement (MT940) parser.

Statements are line oriented. Each line starts with a colon-delimited tag
(``:61:``, ``:86:``, ``:28C:`` ...) or continues the details field opened by
the last ``:86:`` line. The parser is an explicit state machine; ``feed``
is its single transition function and can be driven line by line.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ledgerimport.domain.entities import ImportFormat, RawEntry, StatementHeader
from ledgerimport.domain.parsing import SourceParser
from ledgerimport.utils.amount_parser import parse_amount_or_zero
from ledgerimport.utils.date_parser import parse_statement_date
from ledgerimport.utils.encoding import decode

logger = logging.getLogger(__name__)

PLACEHOLDER_DESCRIPTION = "Bank operation"

TAG_LINE = re.compile(r"^:(?P<tag>\d{2}[A-Z]?):(?P<body>.*)$")
TRANSACTION_BODY = re.compile(
    r"^(?P<date>\d{6})(?P<entry_date>\d{4})?(?P<mark>R?[CD])(?P<funds>[A-Z])?"
    r"(?P<amount>\d[\d,]*)(?P<rest>.*)$"
)
BALANCE_BODY = re.compile(
    r"^(?P<mark>[CD])(?P<date>\d{6})(?P<currency>[A-Z]{3})(?P<amount>\d[\d,]*)"
)
TRANSACTION_TYPE = re.compile(r"^[NSF][A-Z0-9]{3}")
SUBFIELD = re.compile(r"[~^<](\d{2})")

PURPOSE_SUBFIELDS = range(20, 26)
OPERATION_SUBFIELD = 0
NAME_SUBFIELDS = (32, 33)
ACCOUNT_SUBFIELD = 38

MESSAGE_TRAILERS = ("-", "-}")


class ParserState(Enum):
    IDLE = "idle"
    IN_TRANSACTION_HEADER = "in_transaction_header"
    IN_DETAIL_FIELD = "in_detail_field"


@dataclass(frozen=True)
class DetailFields:
    """Values extracted from a closed details buffer."""

    description: str = ""
    counterparty: str = ""
    account_number: str = ""


@dataclass
class PendingTransaction:
    """Transaction line waiting for its details."""

    line_number: int
    date: Optional[date]
    mark: str
    amount: Decimal
    reference: str
    details: Optional[DetailFields] = None
    supplementary: list[str] = field(default_factory=list)

    @property
    def is_credit(self) -> bool:
        # A reversed debit moves money in, a reversed credit moves it out
        return self.mark in ("C", "RD")


def parse_details(buffer: str) -> DetailFields:
    """Split a details buffer into description, counterparty and account.

    The buffer is sub-tagged by a separator (``^``, ``~`` or ``<``) followed by
    a two-digit code. Purpose sub-fields 20-25 form the description, with
    sub-field 00 as fallback. A body without sub-fields is used verbatim.
    """
    parts = SUBFIELD.split(buffer)
    if len(parts) == 1:
        return DetailFields(description=" ".join(buffer.split()))

    purpose = []
    operation = ""
    names = []
    account_number = ""
    for code, text in zip(parts[1::2], parts[2::2]):
        number = int(code)
        text = text.strip()
        if not text:
            continue
        if number in PURPOSE_SUBFIELDS:
            purpose.append(text)
        elif number == OPERATION_SUBFIELD:
            operation = text
        elif number in NAME_SUBFIELDS:
            names.append(text)
        elif number == ACCOUNT_SUBFIELD:
            account_number = text

    return DetailFields(
        description=" ".join(purpose) or operation,
        counterparty=" ".join(names),
        account_number=account_number,
    )


def _parse_reference(rest: str) -> str:
    if "//" in rest:
        return rest.split("//", 1)[1].strip()
    return TRANSACTION_TYPE.sub("", rest.strip(), count=1).strip()


def _signed_balance(body: str) -> tuple[Optional[Decimal], Optional[str]]:
    match = BALANCE_BODY.match(body.strip())
    if match is None:
        return None, None
    amount = parse_amount_or_zero(match.group("amount"))
    if match.group("mark") == "D":
        amount = -amount
    return amount, match.group("currency")


class StatementParser(SourceParser):
    """State machine parser for MT940 bank statements.

    For money coming in (credit lines) the local bank account is the debit
    side and the counter account the credit side; debit lines are reversed.
    """

    format = ImportFormat.STATEMENT

    def __init__(
        self,
        local_account: Optional[str] = None,
        counter_account: Optional[str] = None,
        default_date: Optional[date] = None,
    ):
        """Initialize the parser.

        Args:
            local_account: Chart token of the bank account; defaults to the
                statement's own account reference
            counter_account: Chart token for the other side; defaults to the
                counterparty account found in the details
            default_date: Date for transaction lines with a malformed date
        """
        super().__init__()
        self.local_account = local_account
        self.counter_account = counter_account
        self.default_date = default_date or date.today()
        self.reset()

    def reset(self) -> None:
        """Return to the initial state, dropping everything parsed so far."""
        self._reset_diagnostics()
        self.state = ParserState.IDLE
        self.entries: list[RawEntry] = []
        self._line_number = 0
        self._pending: Optional[PendingTransaction] = None
        self._details: Optional[list[str]] = None
        self._account_reference = ""
        self._statement_number = ""
        self._currency: Optional[str] = None
        self._opening_balance: Optional[Decimal] = None
        self._closing_balance: Optional[Decimal] = None
        self._movement = Decimal("0")

    @property
    def header(self) -> StatementHeader:
        return StatementHeader(
            account_reference=self._account_reference,
            statement_number=self._statement_number,
            currency=self._currency,
            opening_balance=self._opening_balance,
            closing_balance=self._closing_balance,
        )

    def read(self, data: bytes) -> str:
        return decode(data)

    def parse(self, source: str) -> list[RawEntry]:
        """Parse a whole statement.

        Line-level malformation never raises; malformed dates and amounts
        degrade to the default date and a zero amount.
        """
        self.reset()
        for line in source.splitlines():
            self.feed(line)
        return self.finish()

    def feed(self, line: str) -> None:
        """Process one line of input."""
        self._line_number += 1
        line = line.rstrip("\r\n")
        match = TAG_LINE.match(line.strip())
        is_trailer = line.strip() in MESSAGE_TRAILERS

        if self.state is ParserState.IN_DETAIL_FIELD:
            if match is None and not is_trailer:
                self._details.append(line)
                return
            self._close_details()

        if is_trailer:
            self._flush()
            return

        if match is None:
            if self.state is ParserState.IN_TRANSACTION_HEADER and line.strip():
                self._pending.supplementary.append(line.strip())
            return

        self._handle_tag(match.group("tag"), match.group("body"))

    def finish(self) -> list[RawEntry]:
        """Close any open details buffer and pending entry, then return all entries."""
        if self.state is ParserState.IN_DETAIL_FIELD:
            self._close_details()
        self._flush()
        self._check_balances()
        return list(self.entries)

    def _handle_tag(self, tag: str, body: str) -> None:
        if tag == "20":
            # A new message may carry a different account and currency
            self._flush()
        elif tag == "25":
            self._account_reference = body.strip().replace("/", "", 1)
        elif tag.startswith("28"):
            self._statement_number = body.strip()
        elif tag in ("60F", "60M"):
            balance, currency = _signed_balance(body)
            if self._opening_balance is None:
                self._opening_balance = balance
            self._currency = currency or self._currency
        elif tag in ("62F", "62M"):
            balance, currency = _signed_balance(body)
            self._closing_balance = balance
            self._currency = self._currency or currency
        elif tag == "61":
            self._flush()
            self._pending = self._start_transaction(body)
            self.state = ParserState.IN_TRANSACTION_HEADER
        elif tag == "86":
            self._details = [body]
            self.state = ParserState.IN_DETAIL_FIELD

    def _start_transaction(self, body: str) -> PendingTransaction:
        match = TRANSACTION_BODY.match(body.strip())
        if match is None:
            self._note(f"Line {self._line_number}: malformed transaction line '{body.strip()}'")
            return PendingTransaction(
                line_number=self._line_number,
                date=parse_statement_date(body.strip()[:6]) or self.default_date,
                mark="D",
                amount=Decimal("0"),
                reference="",
            )

        txn_date = parse_statement_date(match.group("date"))
        if txn_date is None:
            self._note(f"Line {self._line_number}: invalid date '{match.group('date')}'")
            txn_date = self.default_date

        return PendingTransaction(
            line_number=self._line_number,
            date=txn_date,
            mark=match.group("mark"),
            amount=parse_amount_or_zero(match.group("amount")),
            reference=_parse_reference(match.group("rest")),
        )

    def _close_details(self) -> None:
        fields = parse_details("".join(self._details or []))
        self._details = None
        if self._pending is None:
            logger.debug("Line %d: details without a transaction ignored", self._line_number)
            self.state = ParserState.IDLE
            return
        self._pending.details = fields
        self.state = ParserState.IN_TRANSACTION_HEADER

    def _flush(self) -> None:
        pending = self._pending
        self._pending = None
        self.state = ParserState.IDLE
        if pending is None:
            return

        details = pending.details or DetailFields()
        local = self.local_account or self._account_reference or None
        counter = self.counter_account or details.account_number or None
        if pending.is_credit:
            debit_token, credit_token = local, counter
            self._movement += pending.amount
        else:
            debit_token, credit_token = counter, local
            self._movement -= pending.amount

        self.entries.append(
            RawEntry(
                description=details.description or PLACEHOLDER_DESCRIPTION,
                primary_amount=pending.amount,
                secondary_amount=pending.amount,
                date=pending.date,
                source_row_index=pending.line_number,
                primary_account_token=debit_token,
                secondary_account_token=credit_token,
                reference=pending.reference or None,
                counterparty=details.counterparty or None,
                currency=self._currency,
            )
        )

    def _check_balances(self) -> None:
        if self._opening_balance is None or self._closing_balance is None:
            return
        expected = self._opening_balance + self._movement
        if expected != self._closing_balance:
            self._note(
                f"Closing balance {self._closing_balance} does not match opening balance "
                f"{self._opening_balance} plus turnover ({expected})"
            )
