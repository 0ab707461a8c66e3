"""
Alerts Controller - minimum stock alerts and purchase suggestions
"""

from flask import request
from flask_restx import Namespace, Resource, fields
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError
from inventory_fulfillment.services import StockAlertEvaluator
from inventory_fulfillment.utils.error_handlers import error_response
from inventory_fulfillment.utils.schemas import ThresholdRequestSchema
from .common import json_body

logger = logging.getLogger(__name__)

alerts_ns = Namespace('alerts', description='Minimum stock alerts')

threshold_schema = ThresholdRequestSchema()

threshold_model = alerts_ns.model('Threshold', {
    'minimum_quantity': fields.Integer(required=True, description='Minimum stock; 0 disables alerts')
})

warehouse_param = {'warehouse_id': 'Restrict to warehouse (repeatable)'}


def _warehouse_filter():
    return request.args.getlist('warehouse_id') or None


@alerts_ns.route('/')
class AlertList(Resource):
    @alerts_ns.doc('items_below_minimum', params=warehouse_param)
    def get(self):
        """Items below their minimum, most critical first"""
        try:
            items = StockAlertEvaluator().items_below_minimum(_warehouse_filter())
            return {'items': items, 'total': len(items)}, 200
        except Exception:
            logger.exception("Error evaluating stock alerts")
            return {'error': 'Internal server error'}, 500


@alerts_ns.route('/report')
class AlertReport(Resource):
    @alerts_ns.doc('alert_report', params=warehouse_param)
    def get(self):
        """Alert counts and items per level"""
        try:
            return StockAlertEvaluator().report(_warehouse_filter()), 200
        except Exception:
            logger.exception("Error building alert report")
            return {'error': 'Internal server error'}, 500


@alerts_ns.route('/suggestions')
class PurchaseSuggestions(Resource):
    @alerts_ns.doc('purchase_suggestions', params=warehouse_param)
    def get(self):
        """Suggested reorder quantities for items below minimum"""
        try:
            suggestions = StockAlertEvaluator().purchase_suggestions(_warehouse_filter())
            return {'items': suggestions, 'total': len(suggestions)}, 200
        except Exception:
            logger.exception("Error building purchase suggestions")
            return {'error': 'Internal server error'}, 500


@alerts_ns.route('/thresholds/<string:item_id>')
class ItemThresholdResource(Resource):
    @alerts_ns.doc('set_threshold')
    @alerts_ns.expect(threshold_model)
    def put(self, item_id):
        """Configure an item's minimum stock"""
        try:
            data = threshold_schema.load(json_body())
            threshold = StockAlertEvaluator().set_threshold(item_id, data['minimum_quantity'])
            return threshold.to_dict(), 200

        except (ValidationError, FulfillmentError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error setting threshold for {item_id}")
            return {'error': 'Internal server error'}, 500


@alerts_ns.route('/<string:item_id>')
class ItemAlert(Resource):
    @alerts_ns.doc('evaluate_item', params=warehouse_param)
    def get(self, item_id):
        """Alert level of one item"""
        try:
            return StockAlertEvaluator().evaluate_item(item_id, _warehouse_filter()), 200

        except FulfillmentError as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error evaluating item {item_id}")
            return {'error': 'Internal server error'}, 500
