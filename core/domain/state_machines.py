"""
State Machines

거래(Transaction) 상태 전이 관리.

전이 규칙:
- pending → completed: 관리자 승인
- pending → failed: 관리자 거부
- completed, failed: 종료 상태 (이후 전이 없음)
"""

import logging
from enum import Enum

from core.types import TransactionStatus

logger = logging.getLogger(__name__)


class StateMachineError(Exception):
    """상태 전이 오류"""
    pass


class StateMachine:
    """상태 머신 기본 클래스

    Args:
        initial_state: 초기 상태
        transitions: 허용된 전이 정의 {from_state: [to_states]}
        name: 머신 이름 (로깅용)
    """

    def __init__(
        self,
        initial_state: str | Enum,
        transitions: dict[str, list[str]],
        name: str = "StateMachine",
    ):
        self._state = initial_state.value if isinstance(initial_state, Enum) else initial_state
        self._transitions = transitions
        self._name = name
        self._history: list[tuple[str, str]] = []

    @property
    def state(self) -> str:
        """현재 상태"""
        return self._state

    def allowed_targets(self) -> list[str]:
        """현재 상태에서 전이 가능한 상태 목록"""
        return list(self._transitions.get(self._state, []))

    def can_transition(self, to_state: str | Enum) -> bool:
        """전이 가능 여부 확인

        Args:
            to_state: 목표 상태

        Returns:
            전이 가능 여부
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state
        return target in self._transitions.get(self._state, [])

    def transition(self, to_state: str | Enum) -> str:
        """상태 전이

        Args:
            to_state: 목표 상태

        Returns:
            새 상태

        Raises:
            StateMachineError: 허용되지 않은 전이
        """
        target = to_state.value if isinstance(to_state, Enum) else to_state

        if not self.can_transition(target):
            raise StateMachineError(
                f"{self._name}: Cannot transition from {self._state} to {target}. "
                f"Allowed: {self.allowed_targets()}"
            )

        old_state = self._state
        self._state = target
        self._history.append((old_state, target))

        logger.debug(f"{self._name}: {old_state} → {target}")

        return target

    @property
    def history(self) -> list[tuple[str, str]]:
        """상태 전이 이력"""
        return self._history.copy()


class TransactionStateMachine(StateMachine):
    """거래 상태 머신"""

    TRANSITIONS: dict[str, list[str]] = {
        TransactionStatus.PENDING.value: [
            TransactionStatus.COMPLETED.value,
            TransactionStatus.FAILED.value,
        ],
    }

    def __init__(self, initial_state: str | TransactionStatus = TransactionStatus.PENDING):
        super().__init__(
            initial_state=initial_state,
            transitions=self.TRANSITIONS,
            name="TransactionStateMachine",
        )

    @property
    def is_terminal(self) -> bool:
        """종료 상태 여부"""
        return TransactionStatus(self._state).is_terminal
