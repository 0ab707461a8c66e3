"""
Reservations Controller - read access to reservations
"""

from flask import request
from flask_restx import Namespace, Resource
from marshmallow import ValidationError
import logging

from inventory_fulfillment.errors import FulfillmentError
from inventory_fulfillment.models import ReservationState
from inventory_fulfillment.services import ReservationManager
from inventory_fulfillment.utils.error_handlers import error_response
from inventory_fulfillment.utils.schemas import ReservationSearchSchema

logger = logging.getLogger(__name__)

reservations_ns = Namespace('reservations', description='Reservation queries')

reservation_search_schema = ReservationSearchSchema()


@reservations_ns.route('/')
class ReservationList(Resource):
    @reservations_ns.doc('list_reservations', params={'order_id': 'Owning sales order', 'state': 'Filter by state'})
    def get(self):
        """List reservations of a sales order"""
        try:
            params = reservation_search_schema.load(request.args.to_dict())
            state = ReservationState(params['state']) if params.get('state') else None
            reservations = ReservationManager().list_for_order(params['order_id'], state=state)
            return {'items': [r.to_dict() for r in reservations], 'total': len(reservations)}, 200

        except (ValidationError, ValueError) as e:
            return error_response(e)
        except Exception:
            logger.exception("Error listing reservations")
            return {'error': 'Internal server error'}, 500


@reservations_ns.route('/<string:reservation_id>')
class ReservationDetail(Resource):
    @reservations_ns.doc('get_reservation')
    def get(self, reservation_id):
        """Get reservation by ID"""
        try:
            reservation = ReservationManager().get_reservation(reservation_id)
            return reservation.to_dict(), 200

        except FulfillmentError as e:
            return error_response(e)
        except Exception:
            logger.exception(f"Error getting reservation {reservation_id}")
            return {'error': 'Internal server error'}, 500
