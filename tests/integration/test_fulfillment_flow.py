"""
End-to-end order fulfillment over the HTTP API
"""

import json

from tests.conftest import assert_reservation_invariant

WAREHOUSE = 'WH-EAST'


def post(client, url, data=None, **kwargs):
    return client.post(url, data=json.dumps(data or {}), content_type='application/json', **kwargs)


def receive(client, item_id, quantity, unit_cost='1.00'):
    response = post(client, '/api/v1/stock/receipts', {
        'item_id': item_id, 'warehouse_id': WAREHOUSE, 'quantity': quantity,
        'unit_cost': unit_cost, 'reference_id': 'PO-INT'
    })
    assert response.status_code == 201
    return response.get_json()


def stock(client, item_id):
    return client.get(f'/api/v1/stock/{item_id}/{WAREHOUSE}').get_json()


class TestFulfillmentFlow:
    """Drive a multi-line order through its whole lifecycle."""

    def test_order_lifecycle(self, client, db_session):
        receive(client, 'WIDGET', 30, '2.00')
        receive(client, 'WIDGET', 10, '6.00')
        receive(client, 'GADGET', 5)
        assert stock(client, 'WIDGET')['average_cost'] == '3.0000'

        created = post(client, '/api/v1/sales-orders/', {
            'customer_id': 'CUST-INT',
            'lines': [
                {'item_id': 'WIDGET', 'quantity': 12, 'unit_price': '9.90'},
                {'item_id': 'GADGET', 'quantity': 5, 'unit_price': '30'}
            ]
        })
        assert created.status_code == 201
        order_id = created.get_json()['id']

        confirmed = post(client, f'/api/v1/sales-orders/{order_id}/confirm',
                         {'warehouse_id': WAREHOUSE}, headers={'Idempotency-Key': 'c-1'})
        assert confirmed.status_code == 200
        assert len(confirmed.get_json()['reservation_ids']) == 2
        assert stock(client, 'GADGET')['quantity_available'] == 0

        # A second order for the exhausted item cannot be confirmed.
        competing = post(client, '/api/v1/sales-orders/', {
            'customer_id': 'CUST-OTHER',
            'lines': [{'item_id': 'GADGET', 'quantity': 1}]
        }).get_json()
        rejected = post(client, f"/api/v1/sales-orders/{competing['id']}/confirm", {'warehouse_id': WAREHOUSE})
        assert rejected.status_code == 409
        assert rejected.get_json()['error'] == 'INSUFFICIENT_STOCK'

        partial = post(client, f'/api/v1/sales-orders/{order_id}/ship',
                       {'items': [{'item_id': 'WIDGET', 'quantity': 5}], 'idempotency_key': 's-1'})
        retried = post(client, f'/api/v1/sales-orders/{order_id}/ship',
                       {'items': [{'item_id': 'WIDGET', 'quantity': 5}], 'idempotency_key': 's-1'})
        assert partial.get_json()['sales_order']['status'] == 'partially_shipped'
        assert retried.get_json()['replayed'] is True
        assert retried.get_json()['movement_ids'] == partial.get_json()['movement_ids']
        assert stock(client, 'WIDGET')['quantity_on_hand'] == 35

        cancelled = post(client, f'/api/v1/sales-orders/{order_id}/cancel')
        assert cancelled.get_json()['sales_order']['status'] == 'cancelled'

        widget = stock(client, 'WIDGET')
        gadget = stock(client, 'GADGET')
        assert (widget['quantity_on_hand'], widget['quantity_reserved']) == (35, 0)
        assert (gadget['quantity_on_hand'], gadget['quantity_reserved']) == (5, 0)
        assert_reservation_invariant('WIDGET', WAREHOUSE)
        assert_reservation_invariant('GADGET', WAREHOUSE)

        reservations = client.get(f'/api/v1/reservations/?order_id={order_id}&state=released').get_json()
        assert reservations['total'] == 2

        movements = client.get(f'/api/v1/movements/?reference_id={order_id}').get_json()
        types = sorted(m['movement_type'] for m in movements['items'])
        assert types == ['consumption', 'release-noop', 'release-noop']

        for item_id in ('WIDGET', 'GADGET'):
            reconciliation = client.get(f'/api/v1/movements/reconcile/{item_id}/{WAREHOUSE}').get_json()
            assert reconciliation['balanced'] is True

        # The competing order can now be confirmed with the released stock.
        retry = post(client, f"/api/v1/sales-orders/{competing['id']}/confirm", {'warehouse_id': WAREHOUSE})
        assert retry.status_code == 200

    def test_alerts_follow_reservations(self, client, db_session):
        receive(client, 'BOLT', 20)
        client.put('/api/v1/alerts/thresholds/BOLT', data=json.dumps({'minimum_quantity': 10}),
                   content_type='application/json')
        assert client.get('/api/v1/alerts/BOLT').get_json()['level'] == 'ok'

        order = post(client, '/api/v1/sales-orders/', {
            'customer_id': 'CUST-INT',
            'lines': [{'item_id': 'BOLT', 'quantity': 15}]
        }).get_json()
        post(client, f"/api/v1/sales-orders/{order['id']}/confirm", {'warehouse_id': WAREHOUSE})

        alert = client.get('/api/v1/alerts/BOLT').get_json()
        assert alert['quantity_available'] == 5
        assert alert['level'] == 'advertencia'

        suggestions = client.get(f'/api/v1/alerts/suggestions?warehouse_id={WAREHOUSE}').get_json()
        assert suggestions['items'][0]['suggested_quantity'] == 7
