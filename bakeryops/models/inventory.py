from datetime import datetime

from ..extensions import db
from .mixins import SerializerMixin, TimestampMixin

MOVE_TYPES = ('purchase', 'adjustment', 'production_usage', 'waste')


class InventoryCategory(SerializerMixin, db.Model):
    __tablename__ = 'inventory_category'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    color = db.Column(db.String(16), nullable=True)
    description = db.Column(db.Text, nullable=True)

    items = db.relationship('InventoryItem', back_populates='category', lazy='dynamic')

    def __repr__(self):
        return f'<InventoryCategory {self.name}>'


class InventoryItem(SerializerMixin, TimestampMixin, db.Model):
    """Raw material or compound mix held in stock."""
    __tablename__ = 'inventory_item'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    category_id = db.Column(db.Integer, db.ForeignKey('inventory_category.id'), nullable=True)

    # Priced per purchase unit; the kitchen measures in usage units
    unit_purchase = db.Column(db.String(32), nullable=False, default='kg')
    unit_usage = db.Column(db.String(32), nullable=False, default='g')
    cost_per_purchase_unit = db.Column(db.Float, nullable=False, default=0.0)
    quantity_per_purchase_unit = db.Column(db.Float, nullable=False, default=1.0)

    # Counted in usage units; cached, the stock_movement table is the ledger
    current_stock = db.Column(db.Float, nullable=False, default=0.0)
    min_stock_threshold = db.Column(db.Float, nullable=False, default=0.0)
    is_compound = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    category = db.relationship('InventoryCategory', back_populates='items')
    compositions = db.relationship(
        'ItemComposition',
        foreign_keys='ItemComposition.parent_item_id',
        back_populates='parent_item',
        order_by='ItemComposition.position',
        cascade='all, delete-orphan',
    )
    movements = db.relationship(
        'StockMovement',
        back_populates='item',
        lazy='dynamic',
        order_by='StockMovement.id',
        cascade='all, delete-orphan',
    )

    @property
    def is_low_stock(self):
        return (self.current_stock or 0.0) < (self.min_stock_threshold or 0.0)

    def to_dict(self):
        data = self.column_dict()
        data['category_name'] = self.category.name if self.category else None
        data['is_low_stock'] = self.is_low_stock
        return data

    def __repr__(self):
        return f'<InventoryItem {self.name}>'


class ItemComposition(SerializerMixin, db.Model):
    """One ingredient line of a compound item, per produced usage unit."""
    __tablename__ = 'item_composition'

    id = db.Column(db.Integer, primary_key=True)
    parent_item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    ingredient_item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    quantity_needed = db.Column(db.Float, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    parent_item = db.relationship('InventoryItem', foreign_keys=[parent_item_id], back_populates='compositions')
    ingredient_item = db.relationship('InventoryItem', foreign_keys=[ingredient_item_id])

    __table_args__ = (
        db.UniqueConstraint('parent_item_id', 'ingredient_item_id', name='unique_composition_line'),
    )

    def to_dict(self):
        data = self.column_dict()
        data['ingredient_name'] = self.ingredient_item.name if self.ingredient_item else None
        return data


class StockMovement(SerializerMixin, db.Model):
    """Append-only stock ledger entry."""
    __tablename__ = 'stock_movement'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False, index=True)
    qty_change = db.Column(db.Float, nullable=False)
    move_type = db.Column(db.String(32), nullable=False)
    stock_after = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    item = db.relationship('InventoryItem', back_populates='movements')

    def to_dict(self):
        return self.column_dict()

    def __repr__(self):
        return f'<StockMovement {self.move_type} {self.qty_change:+g} item={self.item_id}>'
