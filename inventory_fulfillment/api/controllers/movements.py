"""
Movements Controller - movement log queries and reconciliation
"""

from flask import request
from flask_restx import Namespace, Resource
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError
from inventory_fulfillment.services import MovementLog
from inventory_fulfillment.utils.error_handlers import error_response
from inventory_fulfillment.utils.schemas import MovementSearchSchema
from .common import clamp_per_page, pagination

logger = logging.getLogger(__name__)

movements_ns = Namespace('movements', description='Movement log audit trail')

movement_search_schema = MovementSearchSchema()


@movements_ns.route('/')
class MovementList(Resource):
    @movements_ns.doc('query_movements', params={
        'item_id': 'Filter by item',
        'warehouse_id': 'Filter by warehouse',
        'movement_type': 'receipt, consumption, adjustment or release-noop',
        'reference_id': 'Order or external reference',
        'date_from': 'ISO timestamp, inclusive',
        'date_to': 'ISO timestamp, inclusive'
    })
    def get(self):
        """Query the movement log, newest first"""
        try:
            params = movement_search_schema.load(request.args.to_dict())
            page = params.pop('page')
            per_page = clamp_per_page(params.pop('per_page', None))

            movements, total = MovementLog().query(page=page, per_page=per_page, **params)
            return {
                'items': [movement.to_dict() for movement in movements],
                'pagination': pagination(page, per_page, total)
            }, 200

        except (ValidationError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error querying movements")
            return {'error': 'Internal server error'}, 500


@movements_ns.route('/reconcile/<string:item_id>/<string:warehouse_id>')
class MovementReconcile(Resource):
    @movements_ns.doc('reconcile_movements')
    def get(self, item_id, warehouse_id):
        """Compare the movement log with the recorded on-hand quantity"""
        try:
            return MovementLog().reconcile(item_id, warehouse_id), 200

        except FulfillmentError as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error reconciling {item_id}@{warehouse_id}")
            return {'error': 'Internal server error'}, 500
