"""Abstract base class and result types for link classifiers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..storage.models import LinkRecord, Para

FALLBACK_GROUP_NAME = "Grouped Items"


class ClassifierNotConfigured(RuntimeError):
    """No model id or credentials are available for the classifier."""


@dataclass
class Classified:
    """Successful classification of a link."""

    summary: str
    para: Para
    tags: list[str] = field(default_factory=list)
    subcategory: str | None = None


@dataclass
class ClassificationFailed:
    """Classification did not produce a usable result."""

    reason: str
    unconfigured: bool = False


ClassificationResult = Classified | ClassificationFailed


class BaseClassifier(ABC):
    """Abstract base class for link classifiers."""

    @abstractmethod
    async def classify(
        self,
        url: str,
        title: str | None,
        description: str | None,
        note: str | None = None,
    ) -> ClassificationResult:
        """Assign bucket, tags and subcategory. Never raises."""
        pass

    @abstractmethod
    async def name_group(self, link_a: LinkRecord, link_b: LinkRecord) -> str:
        """Produce a short label for what two links share. Never raises."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier."""
        pass
