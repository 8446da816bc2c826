"""Pydantic request/response schemas for the Requisitions API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Business constraints such as quantity ranges are
left to the domain so that every rule reports through the same error codes.
"""

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class RequestedItemSchema(BaseModel):
    sku: str
    name: str | None = None
    quantity: int
    unit_price: float = 0.0


class ApprovalSchema(BaseModel):
    item_id: str | None = None
    sku: str | None = None
    qty_approved: int


class ItemIssueSchema(BaseModel):
    item_id: str | None = None
    reason: str


class ReplySchema(BaseModel):
    item_id: str | None = None
    message: str
    qty_approved: int | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    branch_id: str
    items: list[RequestedItemSchema]
    remarks: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "branch_id": "branch-001",
                    "items": [
                        {"sku": "SKU-001", "name": "Printer paper", "quantity": 5, "unit_price": 4.5},
                    ],
                    "remarks": "Needed before month end",
                }
            ]
        }
    }


class VersionedRequest(BaseModel):
    expected_version: int | None = None


class ApproveOrderRequest(VersionedRequest):
    approvals: list[ApprovalSchema] = []


class RaiseIssueRequest(VersionedRequest):
    reason: str | None = None
    issues: list[ItemIssueSchema] | None = None
    media: list[str] = []


class ReplyToIssueRequest(VersionedRequest):
    replies: list[ReplySchema]


class ArrangingStageRequest(VersionedRequest):
    arranging_stage: str
    media: list[str] = []


class ArrangingRemarksRequest(VersionedRequest):
    remarks: str


class UpdateStatusRequest(VersionedRequest):
    status: str
    tracking_id: str | None = None
    tracking_link: str | None = None
    expected_delivery_at: datetime | None = None
    media: list[str] = []


class ConfirmReceiptRequest(VersionedRequest):
    media: list[str] = []


class AttachMediaRequest(VersionedRequest):
    stage: str
    references: list[str]


class ReportReceivedIssuesRequest(VersionedRequest):
    issues: list[ItemIssueSchema]
    media: list[str] = []


class AnswerItemIssueRequest(VersionedRequest):
    message: str
    proposed_qty: int | None = None


class PostMessageRequest(BaseModel):
    item_id: str | None = None
    message: str
    proposed_qty: int | None = None
    media: list[str] = []


# ---------------------------------------------------------------------------
# Staff directory
# ---------------------------------------------------------------------------
class RegisterContactRequest(BaseModel):
    user_id: str
    name: str | None = None
    role: str
    branch_id: str | None = None
    email: str | None = None
    phone: str | None = None
    email_enabled: bool = True
    messaging_enabled: bool = False


class UpdateContactChannelsRequest(BaseModel):
    email: str | None = None
    phone: str | None = None
    email_enabled: bool | None = None
    messaging_enabled: bool | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class TransitionResponse(BaseModel):
    order_id: str
    status: str
    substage: str | None = None
    version: int


class StatusResponse(BaseModel):
    status: str = "ok"


class IdResponse(BaseModel):
    id: str


class OrderItemResponse(BaseModel):
    id: str
    sku: str
    name: str | None = None
    qty_requested: int
    qty_approved: int | None = None
    unit_price: float
    total_price: float
    negotiation_state: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    status: str
    substage: str | None = None
    version: int
    requester_id: str
    branch_id: str
    manager_id: str | None = None
    total_items: int
    total_value: float
    remarks: str | None = None
    manager_reply: str | None = None
    arranging_remarks: str | None = None
    negotiation_state: str | None = None
    tracking_id: str | None = None
    tracking_link: str | None = None
    expected_delivery_at: datetime | None = None
    auto_close_at: datetime | None = None
    items: list[OrderItemResponse]
    media: dict[str, list[str]]
    timestamps: dict[str, datetime | None]


class NotificationResponse(BaseModel):
    id: str
    notification_type: str
    title: str
    message: str
    order_id: str | None = None
    is_read: bool
    is_email: bool
    is_messaging: bool
    created_at: datetime | None = None
