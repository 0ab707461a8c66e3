from datetime import timezone

from marshmallow import Schema, fields, validate, post_load, validates_schema, ValidationError

from inventory_fulfillment.models import MovementType, SalesOrderStatus


def _naive_utc(value):
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class IdempotentRequestSchema(Schema):
    """Base for operation requests that accept a client retry key"""
    idempotency_key = fields.Str(validate=validate.Length(min=1, max=128), allow_none=True)


class SalesOrderLineRequestSchema(Schema):
    """Schema for one line of a new sales order"""
    item_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    unit_price = fields.Decimal(validate=validate.Range(min=0), load_default=0)


class SalesOrderCreateRequestSchema(Schema):
    """Schema for creating draft sales orders"""
    customer_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    order_number = fields.Str(validate=validate.Length(min=1, max=32), allow_none=True)
    lines = fields.List(
        fields.Nested(SalesOrderLineRequestSchema),
        required=True,
        validate=validate.Length(min=1, max=200)
    )

    @validates_schema
    def validate_unique_items(self, data, **kwargs):
        item_ids = [line['item_id'] for line in data.get('lines', [])]
        duplicates = sorted({item_id for item_id in item_ids if item_ids.count(item_id) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate lines for items: {', '.join(duplicates)}", 'lines')


class ConfirmRequestSchema(IdempotentRequestSchema):
    """Schema for confirming a sales order"""
    warehouse_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))


class ShipItemRequestSchema(Schema):
    item_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))


class ShipRequestSchema(IdempotentRequestSchema):
    """Schema for shipping a sales order; no items means everything remaining"""
    items = fields.List(fields.Nested(ShipItemRequestSchema), allow_none=True)


class CancelRequestSchema(IdempotentRequestSchema):
    """Schema for cancelling a sales order"""


class SalesOrderSearchSchema(Schema):
    """Schema for sales order list parameters"""
    status = fields.Str(validate=validate.OneOf([s.value for s in SalesOrderStatus]))
    customer_id = fields.Str(validate=validate.Length(min=1))
    page = fields.Int(validate=validate.Range(min=1), load_default=1)
    per_page = fields.Int(validate=validate.Range(min=1))


class StockReceiptRequestSchema(Schema):
    """Schema for booking inbound stock"""
    item_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    warehouse_id = fields.Str(required=True, validate=validate.Length(min=1, max=64))
    quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    unit_cost = fields.Decimal(validate=validate.Range(min=0), load_default=0)
    reference_id = fields.Str(validate=validate.Length(min=1, max=64), allow_none=True)
    reason = fields.Str(validate=validate.Length(max=500), allow_none=True)


class StockSearchSchema(Schema):
    item_id = fields.Str(validate=validate.Length(min=1))
    warehouse_id = fields.Str(validate=validate.Length(min=1))


class ReservationSearchSchema(Schema):
    order_id = fields.Str(required=True, validate=validate.Length(min=1))
    state = fields.Str(validate=validate.OneOf(['active', 'consumed', 'released']))


class MovementSearchSchema(Schema):
    """Schema for movement log queries"""
    item_id = fields.Str(validate=validate.Length(min=1))
    warehouse_id = fields.Str(validate=validate.Length(min=1))
    movement_type = fields.Str(validate=validate.OneOf([mt.value for mt in MovementType]))
    reference_id = fields.Str(validate=validate.Length(min=1))
    date_from = fields.DateTime()
    date_to = fields.DateTime()
    page = fields.Int(validate=validate.Range(min=1), load_default=1)
    per_page = fields.Int(validate=validate.Range(min=1))

    @post_load
    def normalize_dates(self, data, **kwargs):
        for key in ('date_from', 'date_to'):
            if key in data:
                data[key] = _naive_utc(data[key])
        if data.get('movement_type'):
            data['movement_type'] = MovementType(data['movement_type'])
        return data


class ThresholdRequestSchema(Schema):
    """Schema for configuring an item's minimum stock"""
    minimum_quantity = fields.Int(required=True, strict=True, validate=validate.Range(min=0))
