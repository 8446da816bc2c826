"""Media catalog port: abstract lookup of stage attachments."""

from abc import ABC, abstractmethod

from requisitions.order.lifecycle import MediaStage


class MediaCatalog(ABC):
    """Answers whether proof media exists for an order's stage."""

    @abstractmethod
    def has_attachments_for_stage(self, order_id: str, stage: MediaStage) -> bool: ...
