"""HTTP surface: response envelope, error mapping and the main workflows."""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from bakeryops.utils.timezone_utils import TimezoneUtils


def _json(response):
    return response.get_json()


class TestUtilityEndpoints:

    def test_health_check(self, client):
        response = client.get('/api/')
        assert response.status_code == 200
        assert _json(response)['status'] == 'ok'

    def test_server_time_uses_bakery_timezone(self, client):
        data = _json(client.get('/api/server-time'))
        assert data['timezone'] == 'America/Mexico_City'
        assert 'bakery_date' in data

    def test_units_catalog(self, client):
        data = _json(client.get('/api/units'))['data']
        assert {'value': 'kg', 'label': 'Kilogramos (kg)', 'group': 'weight'} in data

    def test_convert(self, client):
        data = _json(client.get('/api/convert?quantity=250&from=g&to=kg'))['data']
        assert data['result'] == pytest.approx(0.25)
        assert data['formatted'] == '0.25 kg'

    def test_incompatible_conversion_is_422(self, client):
        response = client.get('/api/convert?quantity=1&from=kg&to=L')
        body = _json(response)
        assert response.status_code == 422
        assert body['success'] is False
        assert body['code'] == 'INCOMPATIBLE_UNITS'
        assert body['errors'] == {'from_unit': 'kg', 'to_unit': 'L'}

    def test_unknown_route_is_json_404(self, client):
        response = client.get('/nowhere')
        assert response.status_code == 404
        assert _json(response)['success'] is False


class TestInventoryApi:

    def _create_item(self, client, name='Harina', **extra):
        payload = {'name': name, 'unit_purchase': 'kg', 'unit_usage': 'g', 'cost_per_purchase_unit': 20}
        payload.update(extra)
        response = client.post('/inventory/items', json=payload)
        assert response.status_code == 201, response.get_json()
        return _json(response)['data']

    def test_movement_flow_and_ledger_check(self, client):
        item = self._create_item(client, min_stock_threshold=1000)
        assert item['current_stock'] == 0
        assert item['stock_status'] == 'out'

        response = client.post(f"/inventory/items/{item['id']}/movements",
                               json={'qty_change': 5000, 'move_type': 'purchase'})
        assert response.status_code == 201
        assert _json(response)['data']['stock_after'] == pytest.approx(5000)

        response = client.post(f"/inventory/items/{item['id']}/movements",
                               json={'qty_change': -6000, 'move_type': 'production_usage'})
        assert response.status_code == 409
        assert _json(response)['code'] == 'NEGATIVE_STOCK'

        movements = _json(client.get(f"/inventory/items/{item['id']}/movements"))['data']
        assert [m['qty_change'] for m in movements] == [5000]

        check = _json(client.get(f"/inventory/items/{item['id']}/ledger-check"))['data']
        assert check['is_valid'] is True
        assert check['ledger_stock'] == pytest.approx(5000)

    def test_movement_requires_quantity(self, client):
        item = self._create_item(client)
        response = client.post(f"/inventory/items/{item['id']}/movements", json={'move_type': 'purchase'})
        assert response.status_code == 422
        assert _json(response)['errors'] == {'field': 'qty_change'}

    def test_composition_and_compound_production(self, client):
        dough = self._create_item(client, name='Masa')
        flour = self._create_item(client, name='Harina')
        client.post(f"/inventory/items/{flour['id']}/movements", json={'qty_change': 1000, 'move_type': 'purchase'})

        response = client.put(f"/inventory/items/{dough['id']}/compositions",
                              json={'lines': [{'ingredient_item_id': flour['id'], 'quantity_needed': 0.7}]})
        assert response.status_code == 200

        response = client.post(f"/inventory/items/{dough['id']}/produce", json={'quantity': 1000})
        assert response.status_code == 201
        assert len(_json(response)['data']) == 2

        assert _json(client.get(f"/inventory/items/{flour['id']}"))['data']['current_stock'] == pytest.approx(300)

    def test_composition_cycle_is_409(self, client):
        dough = self._create_item(client, name='Masa')
        response = client.put(f"/inventory/items/{dough['id']}/compositions",
                              json={'lines': [{'ingredient_item_id': dough['id'], 'quantity_needed': 1}]})
        assert response.status_code == 409
        assert _json(response)['code'] == 'COMPOSITION_CYCLE'

    def test_missing_item_is_404(self, client):
        response = client.get('/inventory/items/999')
        assert response.status_code == 404
        assert _json(response)['code'] == 'NOT_FOUND'

    def test_low_stock_and_categories(self, client):
        category = _json(client.post('/inventory/categories', json={'name': 'Harinas'}))['data']
        self._create_item(client, category_id=category['id'], min_stock_threshold=10)

        low = _json(client.get('/inventory/low-stock'))['data']
        assert [item['category_name'] for item in low] == ['Harinas']
        assert [c['name'] for c in _json(client.get('/inventory/categories'))['data']] == ['Harinas']


def _setup_catalog(client):
    flour = _json(client.post('/inventory/items', json={
        'name': 'Harina', 'unit_purchase': 'kg', 'unit_usage': 'g', 'cost_per_purchase_unit': 20,
    }))['data']
    client.post(f"/inventory/items/{flour['id']}/movements", json={'qty_change': 2000, 'move_type': 'purchase'})
    product = _json(client.post('/products', json={
        'name': 'Concha',
        'batch_size_units': 20,
        'recipes': [{'inventory_item_id': flour['id'], 'quantity': 50, 'unit': 'g'}],
        'phases': [{'name': 'Horneado', 'triggers': [
            {'trigger_time_seconds': 60, 'trigger_type': 'blocking', 'instruction_text': 'Sacar del horno'},
        ]}],
    }))['data']
    price_list = _json(client.post('/commercial/price-lists', json={
        'name': 'Mayoreo', 'items': [{'product_id': product['id'], 'price': 9.5}],
    }))['data']
    customer = _json(client.post('/commercial/clients', json={
        'name': 'Café Norte', 'price_list_id': price_list['id'],
    }))['data']
    return flour, product, customer


class TestPlanningAndKioskFlow:

    def test_order_to_kiosk(self, client):
        flour, product, customer = _setup_catalog(client)
        with client.application.app_context():
            today = TimezoneUtils.bakery_today()
        delivery = today + timedelta(days=1)

        order = _json(client.post('/commercial/orders', json={
            'client_id': customer['id'],
            'delivery_date': delivery.isoformat(),
            'items': [{'product_id': product['id'], 'quantity': 45}],
        }))['data']
        assert order['total_amount'] == pytest.approx(45 * 9.5)
        assert order['items'][0]['unit_price_snapshot'] == pytest.approx(9.5)

        day = _json(client.post('/planning/days', json={
            'production_date': today.isoformat(), 'delivery_date': delivery.isoformat(),
        }))['data']
        response = client.post(f"/planning/days/{day['id']}/orders", json={'order_ids': [order['id']]})
        assert _json(response)['data'][0]['status'] == 'planned'

        preview = _json(client.get(f"/planning/days/{day['id']}/batches/preview"))['data']
        assert preview[0]['batches'] == [20, 20, 5]

        batches = _json(client.post(f"/planning/days/{day['id']}/batches"))['data']
        assert len(batches) == 3

        ingredients = _json(client.get(f"/planning/days/{day['id']}/ingredients"))['data']
        assert ingredients['ingredients'][0]['total_needed'] == pytest.approx(2250)
        assert ingredients['ingredients'][0]['missing'] == pytest.approx(250)
        assert ingredients['shortage_count'] == 1

        assert _json(client.post(f"/planning/days/{day['id']}/publish"))['data']['status'] == 'published'

        kiosk = _json(client.get('/kiosk/today'))['data']
        assert kiosk['production_day_id'] == day['id']
        batch = kiosk['batches'][0]
        phase = batch['phases'][0]
        trigger_id = phase['triggers'][0]['id']

        assert client.post(f"/kiosk/batches/{batch['id']}/start").status_code == 200
        execution = _json(client.post(f"/kiosk/batches/{batch['id']}/phases/{phase['id']}/start"))['data']

        early = _json(client.get(f"/kiosk/executions/{execution['id']}/triggers?elapsed=30"))['data']
        assert early == {'triggers': [], 'pending_blocking_ids': []}
        late = _json(client.get(f"/kiosk/executions/{execution['id']}/triggers?elapsed=90"))['data']
        assert late['pending_blocking_ids'] == [trigger_id]

        response = client.post(f"/kiosk/executions/{execution['id']}/triggers/{trigger_id}/acknowledge",
                               json={'acknowledged_by': 'Rosa'})
        assert _json(response)['data']['acknowledged_by'] == 'Rosa'
        assert client.post(f"/kiosk/executions/{execution['id']}/complete").status_code == 200
        assert _json(client.post(f"/kiosk/batches/{batch['id']}/complete"))['data']['status'] == 'completed'

    def test_invalid_order_status_is_409(self, client):
        _, product, customer = _setup_catalog(client)
        order = _json(client.post('/commercial/orders', json={
            'client_id': customer['id'], 'delivery_date': '2026-03-14',
            'items': [{'product_id': product['id'], 'quantity': 1}],
        }))['data']

        response = client.post(f"/commercial/orders/{order['id']}/status", json={'status': 'delivered'})

        assert response.status_code == 409
        assert _json(response)['errors'] == {'entity': 'Order', 'from': 'pending', 'to': 'delivered'}

        client.post(f"/commercial/orders/{order['id']}/status", json={'status': 'planned'})
        detail = _json(client.get(f"/commercial/orders/{order['id']}"))['data']
        assert detail['can_cancel'] is True
        assert detail['can_delete'] is False

    def test_assigning_with_an_unknown_order_assigns_nothing(self, client):
        _, product, customer = _setup_catalog(client)
        order = _json(client.post('/commercial/orders', json={
            'client_id': customer['id'], 'delivery_date': '2026-03-14',
            'items': [{'product_id': product['id'], 'quantity': 3}],
        }))['data']
        day = _json(client.post('/planning/days', json={'production_date': '2026-03-13'}))['data']

        response = client.post(f"/planning/days/{day['id']}/orders", json={'order_ids': [order['id'], 9999]})

        assert response.status_code == 404
        detail = _json(client.get(f"/commercial/orders/{order['id']}"))['data']
        assert detail['status'] == 'pending'
        assert detail['production_day_id'] is None

    def test_bad_date_is_422(self, client):
        response = client.post('/planning/days', json={'production_date': '14/03/2026'})
        assert response.status_code == 422
        assert _json(response)['errors']['field'] == 'production_date'

    def test_malformed_phase_duration_is_422(self, client):
        response = client.post('/products', json={
            'name': 'Bolillo', 'batch_size_units': 40,
            'phases': [{'name': 'Amasado', 'estimated_duration_minutes': 'abc'}],
        })

        assert response.status_code == 422
        assert _json(response)['errors'] == {'field': 'estimated_duration_minutes'}

    def test_product_costing_endpoint(self, client):
        _, product, _ = _setup_catalog(client)
        data = _json(client.get(f"/products/{product['id']}/costing"))['data']
        assert data['cost_per_unit'] == pytest.approx(1.0)
        assert data['batch_total_cost'] == pytest.approx(20.0)

    def test_price_list_detail_reports_margins(self, client):
        _, product, customer = _setup_catalog(client)
        data = _json(client.get(f"/commercial/price-lists/{customer['price_list_id']}"))['data']
        assert data['margins'][0]['margin_percent'] == pytest.approx(850.0)


def test_storage_failure_is_503(app, client, monkeypatch):
    from bakeryops.services import inventory_service

    def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(inventory_service, 'list_inventory_items', _boom)

    response = client.get('/inventory/items')

    assert response.status_code == 503
    assert _json(response)['code'] == 'STORAGE_UNAVAILABLE'
