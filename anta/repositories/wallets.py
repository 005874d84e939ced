import logging
from typing import Optional

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError

from ..models import Wallet
from .base import CrudRepository

logger = logging.getLogger(__name__)


class WalletRepository(CrudRepository[Wallet]):
    model = Wallet
    resource = "Wallet"

    def get_by_owner(self, owner_type: str, owner_id: int) -> Optional[Wallet]:
        return self.find_one({"owner_type": owner_type, "owner_id": owner_id})

    def get_or_create(self, owner_type: str, owner_id: int, currency: str = "GNF") -> Wallet:
        wallet = self.get_by_owner(owner_type, owner_id)
        if wallet is None:
            wallet = self.create({
                "owner_type": owner_type,
                "owner_id": owner_id,
                "balance_cents": 0,
                "currency": currency,
            })
        return wallet

    def get_balance(self, owner_type: str, owner_id: int) -> int:
        wallet = self.get_by_owner(owner_type, owner_id)
        return wallet.balance_cents if wallet else 0

    def _credit_stmt(self, owner_type: str, owner_id: int, amount_cents: int):
        return (
            sa_update(Wallet)
            .where(Wallet.owner_type == owner_type, Wallet.owner_id == owner_id)
            .values(balance_cents=Wallet.balance_cents + amount_cents)
            .execution_options(synchronize_session=False)
        )

    def _debit_stmt(self, owner_type: str, owner_id: int, amount_cents: int):
        # conditional on the balance, so a wallet never goes negative
        return (
            sa_update(Wallet)
            .where(
                Wallet.owner_type == owner_type,
                Wallet.owner_id == owner_id,
                Wallet.balance_cents >= amount_cents,
            )
            .values(balance_cents=Wallet.balance_cents - amount_cents)
            .execution_options(synchronize_session=False)
        )

    def add_funds(self, owner_type: str, owner_id: int, amount_cents: int) -> int:
        result = self.session.exec(self._credit_stmt(owner_type, owner_id, amount_cents))
        self.commit()
        return result.rowcount

    def deduct_funds(self, owner_type: str, owner_id: int, amount_cents: int) -> bool:
        result = self.session.exec(self._debit_stmt(owner_type, owner_id, amount_cents))
        self.commit()
        return result.rowcount > 0

    def transfer(
        self,
        from_type: str,
        from_id: int,
        to_type: str,
        to_id: int,
        amount_cents: int,
        *,
        retry: bool = True,
    ) -> bool:
        """Move ``amount_cents`` in one transaction; False (nothing changed) on insufficient funds.

        A missing destination wallet is created in the same transaction, only
        once the debit went through.
        """
        try:
            debited = self.session.exec(self._debit_stmt(from_type, from_id, amount_cents))
            if debited.rowcount == 0:
                self.session.rollback()
                logger.info(
                    "Transfer of %d from %s:%s refused: insufficient balance",
                    amount_cents, from_type, from_id,
                )
                return False
            credited = self.session.exec(self._credit_stmt(to_type, to_id, amount_cents))
            if credited.rowcount == 0:
                self.session.add(Wallet(owner_type=to_type, owner_id=to_id, balance_cents=amount_cents))
            self.session.commit()
            return True
        except IntegrityError:
            # destination wallet created by a concurrent request; it exists now
            self.session.rollback()
            if not retry:
                raise
            return self.transfer(from_type, from_id, to_type, to_id, amount_cents, retry=False)
        except Exception:
            self.session.rollback()
            raise
