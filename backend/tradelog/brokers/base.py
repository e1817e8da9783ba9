from abc import ABC, abstractmethod
from typing import Any, Dict, List

from tradelog.schemas.broker import BrokerSession, Fill


class BaseBroker(ABC):
    """
    Abstract Base Class for broker collaborators used by the sync run.
    Session state is explicit: every call after authenticate takes the
    BrokerSession it returned.
    """

    @abstractmethod
    async def authenticate(self, username: str, password: str) -> BrokerSession:
        """Exchange credentials for a session. Raises AuthenticationError."""
        pass

    @abstractmethod
    async def list_accounts(self, session: BrokerSession) -> List[Dict[str, Any]]:
        """List trading accounts visible to the session."""
        pass

    @abstractmethod
    async def list_fills(self, account_id: Any, session: BrokerSession) -> List[Fill]:
        """List executions for an account (the broker may limit this to today)."""
        pass

    @abstractmethod
    async def contract_lookup(self, contract_id: str, session: BrokerSession) -> str:
        """Resolve a contract id to its symbol. Raises ContractLookupError."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass

    async def __aenter__(self) -> "BaseBroker":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
