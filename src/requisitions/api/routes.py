"""FastAPI routes for the Requisitions domain: orders, threads, inbox, directory.

Each transition endpoint builds one command, processes it synchronously and
answers with the order's new position and version. The acting user comes
from the ``X-Actor-Id`` / ``X-Actor-Role`` headers.
"""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from requisitions.api.deps import Actor, current_actor
from requisitions.api.schemas import (
    AnswerItemIssueRequest,
    ApproveOrderRequest,
    ArrangingRemarksRequest,
    ArrangingStageRequest,
    AttachMediaRequest,
    ConfirmReceiptRequest,
    IdResponse,
    NotificationResponse,
    OrderIdResponse,
    OrderItemResponse,
    OrderResponse,
    PlaceOrderRequest,
    PostMessageRequest,
    RaiseIssueRequest,
    RegisterContactRequest,
    ReplyToIssueRequest,
    ReportReceivedIssuesRequest,
    StatusResponse,
    TransitionResponse,
    UpdateContactChannelsRequest,
    UpdateStatusRequest,
    VersionedRequest,
)
from requisitions.contact.management import (
    DeactivateStaffContact,
    RegisterStaffContact,
    UpdateContactChannels,
)
from requisitions.issue.posting import PostIssueMessage
from requisitions.issue.thread import list_thread
from requisitions.notification.inbox import MarkNotificationRead, list_notifications
from requisitions.order.approval import ApproveOrder, ConfirmOrder
from requisitions.order.arranging import UpdateArrangingRemarks, UpdateArrangingStage
from requisitions.order.auto_close import close_due_orders as run_auto_close
from requisitions.order.delivery_issues import AnswerItemIssue, ReportReceivedIssues, ResolveItemIssue
from requisitions.order.errors import ForbiddenTransitionError
from requisitions.order.issues import RaiseIssue, ReplyToIssue
from requisitions.order.lifecycle import MediaStage, Role
from requisitions.order.order import Order
from requisitions.order.placement import PlaceOrder
from requisitions.order.progress import CloseOrder, ConfirmReceipt, UpdateOrderStatus
from requisitions.order.stage_media import AttachStageMedia

_TIMESTAMP_FIELDS = (
    "requested_at",
    "approved_at",
    "confirmed_at",
    "arranging_started_at",
    "arranging_completed_at",
    "sent_for_packaging_at",
    "packaging_started_at",
    "packaging_completed_at",
    "dispatched_at",
    "received_at",
    "closed_at",
)


def _transition_response(order_id: str) -> TransitionResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return TransitionResponse(
        order_id=str(order.id),
        status=order.status,
        substage=order.substage,
        version=order._version,
    )


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        substage=order.substage,
        version=order._version,
        requester_id=str(order.requester_id),
        branch_id=str(order.branch_id),
        manager_id=str(order.manager_id) if order.manager_id else None,
        total_items=order.total_items,
        total_value=order.total_value,
        remarks=order.remarks,
        manager_reply=order.manager_reply,
        arranging_remarks=order.arranging_remarks,
        negotiation_state=order.negotiation.state if order.negotiation else None,
        tracking_id=order.tracking.tracking_id if order.tracking else None,
        tracking_link=order.tracking.tracking_link if order.tracking else None,
        expected_delivery_at=order.expected_delivery_at,
        auto_close_at=order.auto_close_at,
        items=[
            OrderItemResponse(
                id=str(item.id),
                sku=item.sku,
                name=item.name,
                qty_requested=item.qty_requested,
                qty_approved=item.qty_approved,
                unit_price=item.unit_price,
                total_price=item.total_price,
                negotiation_state=item.negotiation.state if item.negotiation else None,
            )
            for item in order.items
        ],
        media={stage.value: order.media_for(stage) for stage in MediaStage},
        timestamps={name: getattr(order, name) for name in _TIMESTAMP_FIELDS},
    )


def _require_management(actor: Actor) -> None:
    if actor.role not in (Role.MANAGER, Role.ADMIN):
        raise ForbiddenTransitionError(f"Role {actor.role.value} may not manage the staff directory")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> OrderIdResponse:
    command = PlaceOrder(
        requester_id=actor.id,
        branch_id=body.branch_id,
        actor_role=actor.role.value,
        items=json.dumps([item.model_dump() for item in body.items]),
        remarks=body.remarks,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get(order_id))


@order_router.put("/{order_id}/approve", response_model=TransitionResponse)
async def approve_order(
    order_id: str, body: ApproveOrderRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ApproveOrder(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        approvals=json.dumps([a.model_dump() for a in body.approvals]),
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/confirm", response_model=TransitionResponse)
async def confirm_order(
    order_id: str, body: VersionedRequest | None = None, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ConfirmOrder(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        expected_version=body.expected_version if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/issue", response_model=TransitionResponse)
async def raise_issue(
    order_id: str, body: RaiseIssueRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = RaiseIssue(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        reason=body.reason,
        issues=json.dumps([i.model_dump() for i in body.issues]) if body.issues is not None else None,
        media=body.media,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/reply", response_model=TransitionResponse)
async def reply_to_issue(
    order_id: str, body: ReplyToIssueRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ReplyToIssue(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        replies=json.dumps([r.model_dump() for r in body.replies]),
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/arranging-stage", response_model=TransitionResponse)
async def update_arranging_stage(
    order_id: str, body: ArrangingStageRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = UpdateArrangingStage(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        arranging_stage=body.arranging_stage,
        media=body.media,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/arranging-remarks", response_model=TransitionResponse)
async def update_arranging_remarks(
    order_id: str, body: ArrangingRemarksRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = UpdateArrangingRemarks(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        remarks=body.remarks,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/status", response_model=TransitionResponse)
async def update_status(
    order_id: str, body: UpdateStatusRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        status=body.status,
        tracking_id=body.tracking_id,
        tracking_link=body.tracking_link,
        expected_delivery_at=body.expected_delivery_at,
        media=body.media,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/confirm-received", response_model=TransitionResponse)
async def confirm_received(
    order_id: str, body: ConfirmReceiptRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ConfirmReceipt(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        media=body.media,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/close", response_model=TransitionResponse)
async def close_order(
    order_id: str, body: VersionedRequest | None = None, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = CloseOrder(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        expected_version=body.expected_version if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.post("/{order_id}/media", response_model=TransitionResponse)
async def attach_media(
    order_id: str, body: AttachMediaRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = AttachStageMedia(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        stage=body.stage,
        references=body.references,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


# ---------------------------------------------------------------------------
# Issue thread
# ---------------------------------------------------------------------------
@order_router.post("/{order_id}/messages", status_code=201, response_model=IdResponse)
async def post_message(order_id: str, body: PostMessageRequest, actor: Actor = Depends(current_actor)) -> IdResponse:
    command = PostIssueMessage(
        order_id=order_id,
        item_id=body.item_id,
        sender_id=actor.id,
        sender_role=actor.role.value,
        message=body.message,
        proposed_qty=body.proposed_qty,
        media=body.media,
    )
    result = current_domain.process(command, asynchronous=False)
    return IdResponse(id=result)


@order_router.get("/{order_id}/messages")
async def get_thread(order_id: str, actor: Actor = Depends(current_actor)) -> dict:
    current_domain.repository_for(Order).get(order_id)
    return list_thread(order_id)


@order_router.post("/{order_id}/received-issues", response_model=TransitionResponse)
async def report_received_issues(
    order_id: str, body: ReportReceivedIssuesRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ReportReceivedIssues(
        order_id=order_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        issues=json.dumps([i.model_dump() for i in body.issues]),
        media=body.media,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/items/{item_id}/issue/answer", response_model=TransitionResponse)
async def answer_item_issue(
    order_id: str, item_id: str, body: AnswerItemIssueRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = AnswerItemIssue(
        order_id=order_id,
        item_id=item_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        message=body.message,
        proposed_qty=body.proposed_qty,
        expected_version=body.expected_version,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


@order_router.put("/{order_id}/items/{item_id}/issue/resolve", response_model=TransitionResponse)
async def resolve_item_issue(
    order_id: str, item_id: str, body: VersionedRequest | None = None, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    command = ResolveItemIssue(
        order_id=order_id,
        item_id=item_id,
        actor_id=actor.id,
        actor_role=actor.role.value,
        expected_version=body.expected_version if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return _transition_response(order_id)


# ---------------------------------------------------------------------------
# Notification Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


@notification_router.get("", response_model=list[NotificationResponse])
async def get_notifications(unread: bool = False, actor: Actor = Depends(current_actor)) -> list[NotificationResponse]:
    return [
        NotificationResponse(
            id=str(n.id),
            notification_type=n.notification_type,
            title=n.title,
            message=n.message,
            order_id=str(n.order_id) if n.order_id else None,
            is_read=n.is_read,
            is_email=n.is_email,
            is_messaging=n.is_messaging,
            created_at=n.created_at,
        )
        for n in list_notifications(actor.id, unread_only=unread)
    ]


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(notification_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(
        MarkNotificationRead(notification_id=notification_id, user_id=actor.id),
        asynchronous=False,
    )
    return StatusResponse()


# ---------------------------------------------------------------------------
# Staff directory Router
# ---------------------------------------------------------------------------
contact_router = APIRouter(prefix="/contacts", tags=["contacts"])


@contact_router.post("", status_code=201, response_model=IdResponse)
async def register_contact(body: RegisterContactRequest, actor: Actor = Depends(current_actor)) -> IdResponse:
    _require_management(actor)
    result = current_domain.process(RegisterStaffContact(**body.model_dump()), asynchronous=False)
    return IdResponse(id=result)


@contact_router.put("/{user_id}/channels", response_model=StatusResponse)
async def update_contact_channels(
    user_id: str, body: UpdateContactChannelsRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    if actor.id != user_id:
        _require_management(actor)
    current_domain.process(UpdateContactChannels(user_id=user_id, **body.model_dump()), asynchronous=False)
    return StatusResponse()


@contact_router.put("/{user_id}/deactivate", response_model=StatusResponse)
async def deactivate_contact(user_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    _require_management(actor)
    current_domain.process(DeactivateStaffContact(user_id=user_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/close-due-orders")
async def close_due_orders(actor: Actor = Depends(current_actor)) -> dict:
    if actor.role not in (Role.SYSTEM, Role.ADMIN):
        raise ForbiddenTransitionError(f"Role {actor.role.value} may not run maintenance jobs")
    closed = run_auto_close()
    return {"closed": closed}
