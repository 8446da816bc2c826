"""Media catalog backed by the StageMedia entities stored on each order."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from requisitions.media.catalog import MediaCatalog
from requisitions.order.lifecycle import MediaStage
from requisitions.order.order import Order


class RecordedMediaCatalog(MediaCatalog):
    def has_attachments_for_stage(self, order_id: str, stage: MediaStage) -> bool:
        try:
            order = current_domain.repository_for(Order).get(order_id)
        except ObjectNotFoundError:
            return False
        return order.has_media_for(stage)
