"""
HTTP API - flask-restx blueprint mounted at /api/v1
"""

from flask import Blueprint
from flask_restx import Api

from inventory_fulfillment.api.controllers.sales_orders import sales_orders_ns
from inventory_fulfillment.api.controllers.stock import stock_ns
from inventory_fulfillment.api.controllers.reservations import reservations_ns
from inventory_fulfillment.api.controllers.movements import movements_ns
from inventory_fulfillment.api.controllers.alerts import alerts_ns
from inventory_fulfillment.api.controllers.health import health_bp

api_bp = Blueprint('api', __name__)
api = Api(api_bp, version='1.0', title='Inventory Fulfillment API',
          description='Stock reservation and sales order fulfillment endpoints', doc='/docs/')

api.add_namespace(sales_orders_ns, path='/sales-orders')
api.add_namespace(stock_ns, path='/stock')
api.add_namespace(reservations_ns, path='/reservations')
api.add_namespace(movements_ns, path='/movements')
api.add_namespace(alerts_ns, path='/alerts')

__all__ = ['api_bp', 'api', 'health_bp']
