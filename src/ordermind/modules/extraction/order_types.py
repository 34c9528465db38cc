from __future__ import annotations

from ordermind.modules.extraction.schemas import FieldDef, OrderTypeConfig

ORDER_TYPE_CONFIGS: tuple[OrderTypeConfig, ...] = (
    OrderTypeConfig(
        order_type="sales_order",
        label="Sales Order",
        description="A customer order for products/services with quantities and prices",
        fields=(
            FieldDef(
                key="customerName",
                label="Customer Name",
                type="string",
                description="Full name or company name of the customer placing the order",
            ),
            FieldDef(
                key="orderDate",
                label="Order Date",
                type="date",
                description="Date the order was placed (ISO 8601 format)",
            ),
            FieldDef(
                key="deliveryDate",
                label="Requested Delivery Date",
                type="date",
                required=False,
                description="When the customer wants delivery (ISO 8601 format)",
            ),
            FieldDef(
                key="lineItems",
                label="Line Items",
                type="array",
                description="Array of objects with: sku, description, quantity, unitPrice",
            ),
            FieldDef(
                key="totalAmount",
                label="Total Amount",
                type="number",
                required=False,
                description="Total order value as a number",
            ),
            FieldDef(
                key="shippingAddress",
                label="Shipping Address",
                type="address",
                required=False,
                description=(
                    "Delivery address with street, city, state/province, postal code, country"
                ),
            ),
            FieldDef(
                key="poNumber",
                label="PO Number",
                type="string",
                required=False,
                description="Customer purchase order reference number",
            ),
        ),
    ),
    OrderTypeConfig(
        order_type="incoming_shipment",
        label="Incoming Shipment",
        description="A notification about goods being shipped to us (ASN, tracking, etc.)",
        fields=(
            FieldDef(
                key="supplierName",
                label="Supplier Name",
                type="string",
                description="Name of the supplier or vendor shipping goods",
            ),
            FieldDef(
                key="trackingNumber",
                label="Tracking Number",
                type="string",
                required=False,
                description="Shipment tracking or AWB number",
            ),
            FieldDef(
                key="expectedArrival",
                label="Expected Arrival",
                type="date",
                required=False,
                description="Expected delivery date (ISO 8601 format)",
            ),
            FieldDef(
                key="lineItems",
                label="Line Items",
                type="array",
                description="Array of objects with: sku, description, quantity",
            ),
            FieldDef(
                key="referenceNumber",
                label="Reference Number",
                type="string",
                required=False,
                description="Our PO number or supplier reference",
            ),
        ),
    ),
    OrderTypeConfig(
        order_type="service_case",
        label="Service Case",
        description="A customer complaint, return request, or support inquiry",
        fields=(
            FieldDef(
                key="customerName",
                label="Customer Name",
                type="string",
                description="Customer or company raising the issue",
            ),
            FieldDef(
                key="issueDescription",
                label="Issue Description",
                type="string",
                description="Summary of the problem or request",
            ),
            FieldDef(
                key="originalOrderRef",
                label="Original Order Reference",
                type="string",
                required=False,
                description="Reference to the original order (PO, order number)",
            ),
            FieldDef(
                key="priority",
                label="Priority",
                type="string",
                required=False,
                description="Urgency level",
                examples=["low", "medium", "high", "critical"],
            ),
            FieldDef(
                key="requestedAction",
                label="Requested Action",
                type="string",
                required=False,
                description="What the customer wants (replacement, refund, repair, etc.)",
            ),
        ),
    ),
    OrderTypeConfig(
        order_type="no_action",
        label="No Action Required",
        description="Newsletter, auto-reply, spam, or out-of-scope email",
        fields=(
            FieldDef(
                key="reason",
                label="Reason",
                type="string",
                description=(
                    "Why this email requires no action (spam, auto-reply, newsletter, etc.)"
                ),
            ),
        ),
    ),
)

_BY_TYPE = {c.order_type: c for c in ORDER_TYPE_CONFIGS}


def get_order_type_config(order_type: str) -> OrderTypeConfig | None:
    return _BY_TYPE.get(order_type)


def available_order_types() -> list[str]:
    return list(_BY_TYPE)
