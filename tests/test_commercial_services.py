import pytest

from bakeryops.services import client_service, price_list_service
from bakeryops.services.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.mark.usefixtures("app_context")
class TestClients:

    def test_create_client_without_invoice_drops_fiscal_data(self):
        client = client_service.create_client({
            'name': 'Café La Esquina',
            'email': 'compras@esquina.mx',
            'requires_invoice': False,
            'tax_id': 'CLE010101AB1',
        })

        assert client.is_active
        assert client.tax_id is None

    def test_invoice_clients_need_tax_id(self):
        with pytest.raises(ValidationError) as excinfo:
            client_service.create_client({'name': 'Hotel Centro', 'requires_invoice': True})

        assert excinfo.value.field == 'tax_id'

    def test_tax_id_is_normalized(self):
        client = client_service.create_client({
            'name': 'Hotel Centro',
            'requires_invoice': True,
            'tax_id': ' hce990101xy2 ',
            'legal_name': 'Hotel Centro SA de CV',
        })

        assert client.tax_id == 'HCE990101XY2'
        assert client.legal_name == 'Hotel Centro SA de CV'

    def test_turning_invoicing_off_clears_fiscal_fields(self):
        client = client_service.create_client({'name': 'Hotel Centro', 'requires_invoice': True,
                                               'tax_id': 'HCE990101XY2', 'invoice_use': 'G01'})

        client_service.update_client(client.id, {'requires_invoice': False})

        client = client_service.get_client(client.id)
        assert client.tax_id is None
        assert client.invoice_use is None

    def test_name_is_required(self):
        with pytest.raises(ValidationError):
            client_service.create_client({'name': '   '})

    def test_unknown_price_list_is_rejected(self):
        with pytest.raises(NotFoundError):
            client_service.create_client({'name': 'Cafetería', 'price_list_id': 31})

    def test_deactivated_clients_are_hidden(self, make_client):
        active = make_client(name='Abarrotes Lupita')
        retired = make_client(name='Abarrotes Toño')

        client_service.set_client_active(retired.id, False)

        assert [c.id for c in client_service.list_clients(search='abarrotes')] == [active.id]
        assert len(client_service.list_clients(include_inactive=True)) == 2


@pytest.mark.usefixtures("app_context")
class TestPriceLists:

    def test_create_and_resolve_client_price(self, make_product, make_client):
        concha = make_product(name='Concha')
        price_list = price_list_service.create_price_list('Mayoreo', items=[
            {'product_id': concha.id, 'price': 9.5},
        ])
        client = client_service.create_client({'name': 'Café Norte', 'price_list_id': price_list.id})

        assert price_list_service.resolve_client_price(client, concha.id) == pytest.approx(9.5)
        assert price_list_service.get_product_price_in_list(price_list.id, 999) is None

    def test_inactive_list_resolves_no_price(self, make_product, make_client):
        concha = make_product()
        client = make_client(prices={concha: 10.0})

        price_list_service.toggle_price_list(client.price_list_id)

        assert price_list_service.resolve_client_price(client, concha.id) is None

    def test_client_without_list_resolves_no_price(self, make_product, make_client):
        concha = make_product()
        client = make_client()

        assert price_list_service.resolve_client_price(client, concha.id) is None

    def test_duplicate_product_in_list_is_rejected(self, make_product):
        concha = make_product()

        with pytest.raises(ValidationError):
            price_list_service.create_price_list('Menudeo', items=[
                {'product_id': concha.id, 'price': 12},
                {'product_id': concha.id, 'price': 11},
            ])

    def test_negative_price_is_rejected(self, make_product):
        concha = make_product()

        with pytest.raises(ValidationError):
            price_list_service.create_price_list('Menudeo', items=[{'product_id': concha.id, 'price': -1}])

    def test_replace_items(self, make_product):
        concha = make_product()
        bolillo = make_product()
        price_list = price_list_service.create_price_list('Menudeo', items=[{'product_id': concha.id, 'price': 12}])

        price_list_service.replace_price_list_items(price_list.id, [{'product_id': bolillo.id, 'price': 3.5}])

        price_list = price_list_service.get_price_list(price_list.id)
        assert [(i.product_id, i.price) for i in price_list.items] == [(bolillo.id, 3.5)]

    def test_assigned_list_cannot_be_deleted(self, make_product, make_client):
        client = make_client(prices={make_product(): 10})

        with pytest.raises(ConflictError):
            price_list_service.delete_price_list(client.price_list_id)

    def test_unassigned_list_is_deleted(self):
        price_list = price_list_service.create_price_list('Temporada')

        price_list_service.delete_price_list(price_list.id)

        with pytest.raises(NotFoundError):
            price_list_service.get_price_list(price_list.id)

    def test_margins_use_cost_per_unit(self, make_item, make_product, make_client):
        flour = make_item(cost=20)
        concha = make_product([(flour, 100, 'g')], batch_size=10)
        client = make_client(prices={concha: 3.0})

        rows = price_list_service.price_list_margins(client.price_list)

        assert rows[0]['cost_per_unit'] == pytest.approx(2.0)
        assert rows[0]['margin_percent'] == pytest.approx(50.0)
