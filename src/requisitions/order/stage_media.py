"""Attaching proof-of-stage media ahead of a transition.

Only an actor who may initiate one of the edges gated on a stage can attach
that stage's media.
"""

from protean import handle
from protean.fields import Identifier, Integer, List, String
from protean.utils.globals import current_domain

from requisitions.domain import requisitions
from requisitions.order.helpers import load_order
from requisitions.order.lifecycle import MediaStage
from requisitions.order.order import Order


@requisitions.command(part_of="Order")
class AttachStageMedia:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=50)
    stage = String(required=True, max_length=20)
    references = List(content_type=String, required=True)
    expected_version = Integer()


@requisitions.command_handler(part_of=Order)
class AttachStageMediaHandler:
    @handle(AttachStageMedia)
    def attach_stage_media(self, command):
        order = load_order(command.order_id, command.expected_version)
        order.assert_may_attach_media(command.actor_id, command.actor_role, command.stage)
        order.attach_media(command.stage, command.references, command.actor_id)
        current_domain.repository_for(Order).add(order)
        return order.media_for(MediaStage(command.stage))
