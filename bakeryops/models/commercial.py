from ..extensions import db
from .mixins import SerializerMixin, TimestampMixin

ORDER_STATUSES = ('pending', 'planned', 'in_production', 'completed', 'delivered', 'cancelled')


class PriceList(SerializerMixin, TimestampMixin, db.Model):
    __tablename__ = 'price_list'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    items = db.relationship('PriceListItem', back_populates='price_list', cascade='all, delete-orphan',
                            order_by='PriceListItem.id')
    clients = db.relationship('Client', back_populates='price_list')

    def to_dict(self, include_items=False):
        data = self.column_dict()
        data['item_count'] = len(self.items)
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f'<PriceList {self.name}>'


class PriceListItem(SerializerMixin, db.Model):
    __tablename__ = 'price_list_item'

    id = db.Column(db.Integer, primary_key=True)
    price_list_id = db.Column(db.Integer, db.ForeignKey('price_list.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    price = db.Column(db.Float, nullable=False)

    price_list = db.relationship('PriceList', back_populates='items')
    product = db.relationship('Product')

    __table_args__ = (
        db.UniqueConstraint('price_list_id', 'product_id', name='unique_product_per_price_list'),
    )

    def to_dict(self):
        data = self.column_dict()
        data['product_name'] = self.product.name if self.product else None
        return data


class Client(SerializerMixin, TimestampMixin, db.Model):
    """Wholesale customer (restaurant, café, shop)."""
    __tablename__ = 'client'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    contact_name = db.Column(db.String(128), nullable=True)
    email = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    price_list_id = db.Column(db.Integer, db.ForeignKey('price_list.id'), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Fiscal data, only kept while requires_invoice is set
    requires_invoice = db.Column(db.Boolean, nullable=False, default=False)
    tax_id = db.Column(db.String(32), nullable=True)
    legal_name = db.Column(db.String(256), nullable=True)
    tax_regime = db.Column(db.String(64), nullable=True)
    fiscal_address = db.Column(db.Text, nullable=True)
    invoice_use = db.Column(db.String(64), nullable=True)

    price_list = db.relationship('PriceList', back_populates='clients')
    orders = db.relationship('Order', back_populates='client', lazy='dynamic')

    def to_dict(self):
        data = self.column_dict()
        data['price_list_name'] = self.price_list.name if self.price_list else None
        return data

    def __repr__(self):
        return f'<Client {self.name}>'


class Order(SerializerMixin, TimestampMixin, db.Model):
    __tablename__ = 'order'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.Integer, nullable=False, unique=True)
    client_id = db.Column(db.Integer, db.ForeignKey('client.id'), nullable=False)
    delivery_date = db.Column(db.Date, nullable=False, index=True)
    production_day_id = db.Column(db.Integer, db.ForeignKey('production_day.id'), nullable=True)
    status = db.Column(db.String(32), nullable=False, default='pending', index=True)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    internal_notes = db.Column(db.Text, nullable=True)

    client = db.relationship('Client', back_populates='orders')
    production_day = db.relationship('ProductionDay', back_populates='orders')
    items = db.relationship('OrderItem', back_populates='order', cascade='all, delete-orphan',
                            order_by='OrderItem.id')

    def recalculate_total(self):
        self.total_amount = sum(item.subtotal for item in self.items)
        return self.total_amount

    def to_dict(self, include_items=True):
        data = self.column_dict()
        data['client_name'] = self.client.name if self.client else None
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f'<Order {self.order_number} {self.status}>'


class OrderItem(SerializerMixin, db.Model):
    __tablename__ = 'order_item'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('order.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_snapshot = db.Column(db.Float, nullable=False, default=0.0)

    order = db.relationship('Order', back_populates='items')
    product = db.relationship('Product')

    @property
    def subtotal(self):
        return (self.quantity or 0) * (self.unit_price_snapshot or 0.0)

    def to_dict(self):
        data = self.column_dict()
        data['product_name'] = self.product.name if self.product else None
        data['subtotal'] = self.subtotal
        return data
