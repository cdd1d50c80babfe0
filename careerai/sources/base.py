from abc import ABC, abstractmethod

from careerai.models import Job


class JobSearchBase(ABC):
    @abstractmethod
    def search(self, skills: list[str], location: str, limit: int = 20) -> list[Job]:
        pass
