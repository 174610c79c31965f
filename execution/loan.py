"""
execution/loan.py - Flash loan source.

LOAN BRACKET CONTRACT:
======================
  borrow(pool, asset, amount, borrower, on_funds) -> on_funds(loan)

1. Open ledger.atomic()
2. Deliver `amount` of `asset` from the pool to the borrower
3. fee = ceil(amount * pool.fee / 1_000_000)
4. Run on_funds(loan): the rest of the trade
5. Require pool balance >= balance_before + fee, else LoanNotRepaid

Any exception in steps 2-5 restores the ledger to its state before
step 1. Observed state afterwards is either "loan repaid, surplus kept
by the borrower" or "identical to before the borrow".
======================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, TypeVar

from chains.ledger import Ledger
from core.constants import ErrorCode
from core.exceptions import InsufficientLiquidity, InvalidParameters, LoanNotRepaid
from core.logging import get_logger
from core.math import checked_add, compute_loan_fee
from core.models import PoolHandle, normalize_address

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Loan:
    """Funds delivered inside one loan bracket."""
    pool: PoolHandle
    asset: str
    amount: int
    fee: int
    borrower: str
    repaid: int = 0

    @property
    def amount_owed(self) -> int:
        return checked_add(self.amount, self.fee)

    @property
    def is_repaid(self) -> bool:
        return self.repaid >= self.amount_owed


class LoanSource(ABC):
    """Borrow now, repay with fee before the bracket closes."""

    @abstractmethod
    def borrow(
        self,
        pool: PoolHandle,
        asset: str,
        amount: int,
        borrower: str,
        on_funds: Callable[[Loan], T],
    ) -> T:
        ...

    @abstractmethod
    def repay(self, loan: Loan, amount: int) -> None:
        ...


class FlashLoanPool(LoanSource):
    """Flash loans from V3-style pools whose balances live on the ledger."""

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def quote_fee(self, pool: PoolHandle, amount: int) -> int:
        return compute_loan_fee(amount, pool.identity.fee)

    def borrow(
        self,
        pool: PoolHandle,
        asset: str,
        amount: int,
        borrower: str,
        on_funds: Callable[[Loan], T],
    ) -> T:
        asset = normalize_address(asset)
        if not pool.identity.contains(asset):
            raise InvalidParameters(
                ErrorCode.LOAN_ASSET_NOT_IN_POOL,
                f"{asset} is not traded by pool {pool.address}",
                pool.to_dict(),
            )

        with self.ledger.atomic():
            balance_before = self.ledger.balance_of(pool.address, asset)
            if balance_before < amount:
                raise InsufficientLiquidity(
                    f"Pool {pool.address} holds {balance_before}, cannot lend {amount}",
                    {"pool": pool.address, "asset": asset, "available": balance_before, "requested": amount},
                )

            fee = self.quote_fee(pool, amount)
            self.ledger.transfer(pool.address, borrower, asset, amount)
            loan = Loan(pool=pool, asset=asset, amount=amount, fee=fee, borrower=borrower)

            logger.debug(
                "Loan delivered",
                extra={"context": {"pool": pool.address, "amount": amount, "fee": fee}},
            )

            result = on_funds(loan)

            required = checked_add(balance_before, fee)
            balance_after = self.ledger.balance_of(pool.address, asset)
            if balance_after < required:
                raise LoanNotRepaid(
                    f"Pool {pool.address} balance {balance_after} < required {required}",
                    {"pool": pool.address, "balance_after": balance_after, "required": required},
                )
            return result

    def repay(self, loan: Loan, amount: int) -> None:
        self.ledger.transfer(loan.borrower, loan.pool.address, loan.asset, amount)
        loan.repaid = checked_add(loan.repaid, amount)
