"""
테스트 데이터 생성기

소유자, 거래, 잔고 테스트 데이터를 만든다.
seed를 고정한 random.Random을 써서 실행마다 같은 데이터가 나온다.
"""

import random
from decimal import Decimal

from core.ledger.context import LedgerContext
from core.ledger.models import NewTransaction, Transaction
from core.types import TransactionKind, TransactionStatus, quantize_amount

NETWORKS = {
    "BTC": "Bitcoin",
    "ETH": "Ethereum",
    "USDT": "Ethereum",
    "USDC": "Ethereum",
    "SOL": "Solana",
}

_HEX = "0123456789abcdef"
_BECH32 = "023456789acdefghjklmnpqrstuvwxyz"


class LedgerFactory:
    """테스트 데이터 생성기

    Args:
        seed: 난수 seed
    """

    def __init__(self, seed: int = 42):
        self.rng = random.Random(seed)
        self._owner_seq = 0

    def address(self, currency: str) -> str:
        """통화에 맞는 형태의 임의 주소"""
        if currency == "BTC":
            return "bc1q" + "".join(self.rng.choice(_BECH32) for _ in range(38))
        return "0x" + "".join(self.rng.choice(_HEX) for _ in range(40))

    def tx_hash(self) -> str:
        return "0x" + "".join(self.rng.choice(_HEX) for _ in range(64))

    def amount(self, currency: str, low: str = "0.01", high: str = "10") -> Decimal:
        """통화 정밀도로 절삭된 임의 금액"""
        value = Decimal(str(self.rng.uniform(float(low), float(high))))
        return quantize_amount(value, currency)

    def new_transaction(
        self,
        owner_id: str,
        kind: TransactionKind = TransactionKind.DEPOSIT,
        currency: str = "BTC",
        amount: Decimal | None = None,
        status: TransactionStatus = TransactionStatus.PENDING,
    ) -> NewTransaction:
        """NewTransaction 생성 (kind에 맞는 counterparty 포함)"""
        counterparty = None if kind == TransactionKind.EXCHANGE else self.address(currency)
        return NewTransaction(
            owner_id=owner_id,
            kind=kind,
            currency=currency,
            amount=amount if amount is not None else self.amount(currency),
            status=status,
            network=NETWORKS.get(currency),
            counterparty=counterparty,
        )

    async def owner(self, ledger: LedgerContext, owner_id: str | None = None) -> str:
        """소유자 등록 후 ID 반환"""
        if owner_id is None:
            self._owner_seq += 1
            owner_id = f"user-{self._owner_seq}"
        await ledger.owners.create(
            owner_id,
            email=f"{owner_id}@example.com",
            display_name=owner_id.title(),
        )
        return owner_id

    async def pending_deposit(
        self,
        ledger: LedgerContext,
        owner_id: str,
        currency: str = "BTC",
        amount: Decimal | str | None = None,
    ) -> Transaction:
        """pending 입금 거래 생성"""
        return await ledger.transactions.create(
            self.new_transaction(
                owner_id,
                TransactionKind.DEPOSIT,
                currency,
                amount=Decimal(amount) if amount is not None else None,
            )
        )

    async def funded_owner(
        self,
        ledger: LedgerContext,
        currency: str,
        amount: Decimal | str,
        owner_id: str | None = None,
    ) -> str:
        """승인된 입금으로 잔고를 가진 소유자 생성"""
        owner_id = await self.owner(ledger, owner_id)
        deposit = await self.pending_deposit(ledger, owner_id, currency, amount)
        await ledger.engine.approve(deposit.id)
        return owner_id
