"""
Sales Orders Controller - order intake and the confirm/ship/cancel lifecycle
"""

from flask import request
from flask_restx import Namespace, Resource, fields
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError
from inventory_fulfillment.services import OrderFulfillmentService
from inventory_fulfillment.utils.error_handlers import error_response
from inventory_fulfillment.utils.schemas import (
    SalesOrderCreateRequestSchema, SalesOrderSearchSchema,
    ConfirmRequestSchema, ShipRequestSchema, CancelRequestSchema
)
from .common import json_body, idempotency_key_from, clamp_per_page, pagination

logger = logging.getLogger(__name__)

sales_orders_ns = Namespace('sales-orders', description='Sales order lifecycle operations')

# Initialize schemas
create_schema = SalesOrderCreateRequestSchema()
search_schema = SalesOrderSearchSchema()
confirm_schema = ConfirmRequestSchema()
ship_schema = ShipRequestSchema()
cancel_schema = CancelRequestSchema()

line_model = sales_orders_ns.model('SalesOrderLine', {
    'item_id': fields.String(required=True, description='Item identifier'),
    'quantity': fields.Integer(required=True, description='Ordered quantity'),
    'unit_price': fields.String(description='Unit price (informational)')
})

create_model = sales_orders_ns.model('SalesOrderCreate', {
    'customer_id': fields.String(required=True, description='Customer identifier'),
    'order_number': fields.String(description='Order number; generated when omitted'),
    'lines': fields.List(fields.Nested(line_model), required=True)
})

confirm_model = sales_orders_ns.model('ConfirmRequest', {
    'warehouse_id': fields.String(required=True, description='Warehouse to reserve from'),
    'idempotency_key': fields.String(description='Client retry key (or Idempotency-Key header)')
})

ship_item_model = sales_orders_ns.model('ShipItem', {
    'item_id': fields.String(required=True),
    'quantity': fields.Integer(required=True)
})

ship_model = sales_orders_ns.model('ShipRequest', {
    'items': fields.List(fields.Nested(ship_item_model), description='Omit to ship everything remaining'),
    'idempotency_key': fields.String(description='Client retry key (or Idempotency-Key header)')
})

cancel_model = sales_orders_ns.model('CancelRequest', {
    'idempotency_key': fields.String(description='Client retry key (or Idempotency-Key header)')
})


@sales_orders_ns.route('/')
class SalesOrderList(Resource):
    @sales_orders_ns.doc('list_sales_orders', params={'status': 'Filter by status', 'customer_id': 'Filter by customer'})
    def get(self):
        """List sales orders, oldest first"""
        try:
            params = search_schema.load(request.args.to_dict())
            page = params['page']
            per_page = clamp_per_page(params.get('per_page'))

            orders, total = OrderFulfillmentService().list_orders(
                status=params.get('status'),
                customer_id=params.get('customer_id'),
                page=page,
                per_page=per_page
            )
            return {
                'items': [order.to_dict() for order in orders],
                'pagination': pagination(page, per_page, total)
            }, 200

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error listing sales orders")
            return {'error': 'Internal server error'}, 500

    @sales_orders_ns.doc('create_sales_order')
    @sales_orders_ns.expect(create_model)
    def post(self):
        """Create a draft sales order"""
        try:
            data = create_schema.load(json_body())
            order = OrderFulfillmentService().create_order(
                customer_id=data['customer_id'],
                lines=data['lines'],
                order_number=data.get('order_number')
            )
            return order.to_dict(), 201

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error creating sales order")
            return {'error': 'Internal server error'}, 500


@sales_orders_ns.route('/<string:order_id>')
class SalesOrderDetail(Resource):
    @sales_orders_ns.doc('get_sales_order')
    def get(self, order_id):
        """Get sales order by ID"""
        try:
            order = OrderFulfillmentService().get_order(order_id)
            return order.to_dict(), 200

        except FulfillmentError as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error getting sales order {order_id}")
            return {'error': 'Internal server error'}, 500


@sales_orders_ns.route('/<string:order_id>/confirm')
class SalesOrderConfirm(Resource):
    @sales_orders_ns.doc('confirm_sales_order')
    @sales_orders_ns.expect(confirm_model)
    def post(self, order_id):
        """Reserve stock for every line and confirm the order"""
        try:
            data = confirm_schema.load(json_body())
            result = OrderFulfillmentService().confirm(
                order_id,
                data['warehouse_id'],
                idempotency_key=idempotency_key_from(data)
            )
            return result, 200

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error confirming sales order {order_id}")
            return {'error': 'Internal server error'}, 500


@sales_orders_ns.route('/<string:order_id>/ship')
class SalesOrderShip(Resource):
    @sales_orders_ns.doc('ship_sales_order')
    @sales_orders_ns.expect(ship_model)
    def post(self, order_id):
        """Ship all remaining quantities, or only the listed items"""
        try:
            data = ship_schema.load(json_body())
            result = OrderFulfillmentService().ship(
                order_id,
                idempotency_key=idempotency_key_from(data),
                items=data.get('items')
            )
            return result, 200

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error shipping sales order {order_id}")
            return {'error': 'Internal server error'}, 500


@sales_orders_ns.route('/<string:order_id>/cancel')
class SalesOrderCancel(Resource):
    @sales_orders_ns.doc('cancel_sales_order')
    @sales_orders_ns.expect(cancel_model)
    def post(self, order_id):
        """Cancel the order and release its active reservations"""
        try:
            data = cancel_schema.load(json_body())
            result = OrderFulfillmentService().cancel(
                order_id,
                idempotency_key=idempotency_key_from(data)
            )
            return result, 200

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error cancelling sales order {order_id}")
            return {'error': 'Internal server error'}, 500
