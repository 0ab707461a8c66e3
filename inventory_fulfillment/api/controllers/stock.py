"""
Stock Controller - stock records, availability and inbound receipts
"""

from flask import request
from flask_restx import Namespace, Resource, fields
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError
from inventory_fulfillment.services import StockLedger
from inventory_fulfillment.utils.error_handlers import error_response
from inventory_fulfillment.utils.schemas import StockReceiptRequestSchema, StockSearchSchema
from .common import json_body

logger = logging.getLogger(__name__)

stock_ns = Namespace('stock', description='Stock ledger operations')

receipt_schema = StockReceiptRequestSchema()
stock_search_schema = StockSearchSchema()

receipt_model = stock_ns.model('StockReceipt', {
    'item_id': fields.String(required=True, description='Item identifier'),
    'warehouse_id': fields.String(required=True, description='Warehouse identifier'),
    'quantity': fields.Integer(required=True, description='Received quantity'),
    'unit_cost': fields.String(description='Unit cost of the received goods'),
    'reference_id': fields.String(description='Purchase order or other external reference'),
    'reason': fields.String(description='Free-text note')
})


@stock_ns.route('/')
class StockRecordList(Resource):
    @stock_ns.doc('list_stock_records', params={'item_id': 'Filter by item', 'warehouse_id': 'Filter by warehouse'})
    def get(self):
        """List stock records"""
        try:
            params = stock_search_schema.load(request.args.to_dict())
            records = StockLedger().list_records(
                item_id=params.get('item_id'),
                warehouse_id=params.get('warehouse_id')
            )
            return {'items': [record.to_dict() for record in records], 'total': len(records)}, 200

        except (ValidationError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error listing stock records")
            return {'error': 'Internal server error'}, 500


@stock_ns.route('/<string:item_id>/<string:warehouse_id>')
class StockRecordDetail(Resource):
    @stock_ns.doc('get_stock_record')
    def get(self, item_id, warehouse_id):
        """Get one stock record with its available quantity"""
        try:
            record = StockLedger().get_record(item_id, warehouse_id)
            return record.to_dict(), 200

        except FulfillmentError as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error getting stock for {item_id}@{warehouse_id}")
            return {'error': 'Internal server error'}, 500


@stock_ns.route('/receipts')
class StockReceipt(Resource):
    @stock_ns.doc('receive_stock')
    @stock_ns.expect(receipt_model)
    def post(self):
        """Book inbound stock"""
        try:
            data = receipt_schema.load(json_body())
            record, movement = StockLedger().receive(
                data['item_id'],
                data['warehouse_id'],
                data['quantity'],
                unit_cost=data.get('unit_cost', 0),
                reference_id=data.get('reference_id'),
                reason=data.get('reason')
            )
            return {'stock': record.to_dict(), 'movement': movement.to_dict()}, 201

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error receiving stock")
            return {'error': 'Internal server error'}, 500
