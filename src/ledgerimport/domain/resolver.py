"""Resolution of free-form account tokens against the chart of accounts.

Account numbers are hyphen-segmented (``420-1-1-1``) and the hierarchy is
expressed only through prefixes: ``420-1`` is an ancestor of ``420-1-1``.
"""

import logging
from typing import Iterable, Optional

from ledgerimport.domain.entities import ChartAccount, ResolvedAccount, Unresolved

logger = logging.getLogger(__name__)


def extend_code(code: str, suffix: Optional[str]) -> str:
    """Extend a generic ledger code with a location suffix.

    ``extend_code("401", "2-17")`` gives ``"401-2-17"``; an empty suffix
    leaves the code unchanged.
    """
    code = code.strip()
    suffix = (suffix or "").strip().strip("-")
    if not suffix:
        return code
    return f"{code}-{suffix}"


class AccountResolver:
    """Resolves account tokens against a chart-of-accounts snapshot.

    The snapshot is copied on construction so a chart updated by someone else
    mid-import cannot change the outcome of a running import.
    """

    def __init__(self, chart: Iterable[ChartAccount]):
        self.chart: tuple[ChartAccount, ...] = tuple(chart)
        self._by_number = {}
        for account in self.chart:
            self._by_number.setdefault(account.number, account)

    def resolve(self, token: Optional[str]) -> ResolvedAccount:
        """Resolve an account token.

        Matching order, first match wins:
        1. exact account number
        2. hierarchy match in either direction: a chart account below the token
           (``420`` selects ``420-1-1``) or above it (``420-1-1`` selects ``420``)
        3. ``Unresolved(token)``

        Args:
            token: Raw account identifier from a source file

        Returns:
            The matching ChartAccount or an Unresolved sentinel
        """
        token = (token or "").strip()
        if not token:
            return Unresolved("")

        exact = self._by_number.get(token)
        if exact is not None:
            return exact

        for account in self.chart:
            if account.number.startswith(token + "-") or account.is_ancestor_of(token):
                logger.debug("Resolved '%s' to '%s' by hierarchy", token, account.number)
                return account

        return Unresolved(token)


def resolve(token: Optional[str], chart: Iterable[ChartAccount]) -> ResolvedAccount:
    """Resolve a single token against a chart."""
    return AccountResolver(chart).resolve(token)
