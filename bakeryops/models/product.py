from ..extensions import db
from .mixins import SerializerMixin, TimestampMixin

TRIGGER_TYPES = ('info', 'action_check', 'blocking')


class Product(SerializerMixin, TimestampMixin, db.Model):
    """Finished good made in batches from a per-unit recipe"""
    __tablename__ = 'product'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    batch_size_units = db.Column(db.Integer, nullable=False, default=1)
    has_variants = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    recipes = db.relationship('ProductRecipe', back_populates='product', cascade='all, delete-orphan',
                              order_by='ProductRecipe.id')
    variants = db.relationship('ProductVariant', back_populates='product', cascade='all, delete-orphan',
                               order_by='ProductVariant.id')
    phases = db.relationship('ProductionPhase', back_populates='product', cascade='all, delete-orphan',
                             order_by='ProductionPhase.sequence_order')

    def to_dict(self, include_children=False):
        data = self.column_dict()
        if include_children:
            data['recipes'] = [line.to_dict() for line in self.recipes]
            data['variants'] = [variant.to_dict() for variant in self.variants]
            data['phases'] = [phase.to_dict() for phase in self.phases]
        return data

    def __repr__(self):
        return f'<Product {self.name}>'


class ProductRecipe(SerializerMixin, db.Model):
    """Quantity of an inventory item per single product unit."""
    __tablename__ = 'product_recipe'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(32), nullable=True)

    product = db.relationship('Product', back_populates='recipes')
    inventory_item = db.relationship('InventoryItem')

    __table_args__ = (
        db.UniqueConstraint('product_id', 'inventory_item_id', name='unique_recipe_line'),
    )

    def to_dict(self):
        data = self.column_dict()
        data['item_name'] = self.inventory_item.name if self.inventory_item else None
        return data


class ProductVariant(SerializerMixin, db.Model):
    __tablename__ = 'product_variant'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    product = db.relationship('Product', back_populates='variants')
    extra_ingredients = db.relationship('VariantIngredient', back_populates='variant',
                                        cascade='all, delete-orphan', order_by='VariantIngredient.id')

    __table_args__ = (
        db.UniqueConstraint('product_id', 'name', name='unique_variant_name_per_product'),
    )

    @property
    def extra_cost(self):
        # Derived from the extra lines; never persisted
        from ..services.costing_engine import recipe_cost, variant_extra_lines
        return recipe_cost(variant_extra_lines(self))

    def to_dict(self):
        data = self.column_dict()
        data['extra_cost'] = self.extra_cost
        data['extra_ingredients'] = [line.to_dict() for line in self.extra_ingredients]
        return data

    def __repr__(self):
        return f'<ProductVariant {self.name}>'


class VariantIngredient(SerializerMixin, db.Model):
    __tablename__ = 'variant_ingredient'

    id = db.Column(db.Integer, primary_key=True)
    variant_id = db.Column(db.Integer, db.ForeignKey('product_variant.id'), nullable=False)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey('inventory_item.id'), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(32), nullable=True)

    variant = db.relationship('ProductVariant', back_populates='extra_ingredients')
    inventory_item = db.relationship('InventoryItem')

    def to_dict(self):
        data = self.column_dict()
        data['item_name'] = self.inventory_item.name if self.inventory_item else None
        return data


class ProductionPhase(SerializerMixin, db.Model):
    __tablename__ = 'production_phase'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    name = db.Column(db.String(128), nullable=False)
    sequence_order = db.Column(db.Integer, nullable=False)
    estimated_duration_minutes = db.Column(db.Integer, nullable=True)

    product = db.relationship('Product', back_populates='phases')
    triggers = db.relationship('PhaseTrigger', back_populates='phase', cascade='all, delete-orphan',
                               order_by='PhaseTrigger.trigger_time_seconds')

    __table_args__ = (
        db.UniqueConstraint('product_id', 'sequence_order', name='unique_phase_order_per_product'),
    )

    def to_dict(self):
        data = self.column_dict()
        data['triggers'] = [trigger.to_dict() for trigger in self.triggers]
        return data

    def __repr__(self):
        return f'<ProductionPhase {self.sequence_order}:{self.name}>'


class PhaseTrigger(SerializerMixin, db.Model):
    """Instruction that fires at an offset into a phase."""
    __tablename__ = 'phase_trigger'

    id = db.Column(db.Integer, primary_key=True)
    phase_id = db.Column(db.Integer, db.ForeignKey('production_phase.id'), nullable=False)
    trigger_time_seconds = db.Column(db.Integer, nullable=False, default=0)
    trigger_type = db.Column(db.String(32), nullable=False, default='info')
    instruction_text = db.Column(db.Text, nullable=False)

    phase = db.relationship('ProductionPhase', back_populates='triggers')

    @property
    def is_blocking(self):
        return self.trigger_type == 'blocking'

    def to_dict(self):
        return self.column_dict()
