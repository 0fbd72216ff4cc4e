from abc import ABC, abstractmethod

from apps.rates.domain.models import FetchedSnapshot


class BaseRatesFetcher(ABC):
    @abstractmethod
    def fetch_latest(self, base_currency: str) -> FetchedSnapshot | None:
        pass

    def close(self) -> None:
        pass
