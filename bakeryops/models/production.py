from datetime import datetime

from ..extensions import db
from .mixins import SerializerMixin, TimestampMixin


class ProductionDay(SerializerMixin, TimestampMixin, db.Model):
    __tablename__ = 'production_day'

    id = db.Column(db.Integer, primary_key=True)
    production_date = db.Column(db.Date, nullable=False, unique=True)
    delivery_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(32), nullable=False, default='draft', index=True)
    notes = db.Column(db.Text, nullable=True)

    orders = db.relationship('Order', back_populates='production_day')
    batches = db.relationship('ProductionBatch', back_populates='production_day', cascade='all, delete-orphan',
                              order_by='ProductionBatch.id')

    def to_dict(self, include_batches=False):
        data = self.column_dict()
        data['order_count'] = len(self.orders)
        if include_batches:
            data['batches'] = [batch.to_dict() for batch in self.batches]
        return data

    def __repr__(self):
        return f'<ProductionDay {self.production_date} {self.status}>'


class ProductionBatch(SerializerMixin, db.Model):
    __tablename__ = 'production_batch'

    id = db.Column(db.Integer, primary_key=True)
    production_day_id = db.Column(db.Integer, db.ForeignKey('production_day.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    batch_number = db.Column(db.Integer, nullable=False)
    total_units_in_batch = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(32), nullable=False, default='pending')
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    production_day = db.relationship('ProductionDay', back_populates='batches')
    product = db.relationship('Product')
    phase_executions = db.relationship('BatchPhaseExecution', back_populates='batch', cascade='all, delete-orphan',
                                       order_by='BatchPhaseExecution.id')

    __table_args__ = (
        db.UniqueConstraint('production_day_id', 'product_id', 'batch_number', name='unique_batch_number'),
    )

    def to_dict(self):
        data = self.column_dict()
        data['product_name'] = self.product.name if self.product else None
        return data

    def __repr__(self):
        return f'<ProductionBatch {self.product_id}#{self.batch_number} {self.status}>'


class BatchPhaseExecution(SerializerMixin, db.Model):
    __tablename__ = 'batch_phase_execution'

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('production_batch.id'), nullable=False)
    phase_id = db.Column(db.Integer, db.ForeignKey('production_phase.id'), nullable=False)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    batch = db.relationship('ProductionBatch', back_populates='phase_executions')
    phase = db.relationship('ProductionPhase')
    trigger_logs = db.relationship('BatchTriggerLog', back_populates='execution', cascade='all, delete-orphan',
                                   order_by='BatchTriggerLog.id')

    __table_args__ = (
        db.UniqueConstraint('batch_id', 'phase_id', name='unique_phase_execution'),
    )

    @property
    def is_completed(self):
        return self.completed_at is not None

    def to_dict(self):
        data = self.column_dict()
        data['phase_name'] = self.phase.name if self.phase else None
        data['acknowledged_trigger_ids'] = [log.trigger_id for log in self.trigger_logs]
        return data


class BatchTriggerLog(SerializerMixin, db.Model):
    __tablename__ = 'batch_trigger_log'

    id = db.Column(db.Integer, primary_key=True)
    execution_id = db.Column(db.Integer, db.ForeignKey('batch_phase_execution.id'), nullable=False)
    trigger_id = db.Column(db.Integer, db.ForeignKey('phase_trigger.id'), nullable=False)
    acknowledged_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    acknowledged_by = db.Column(db.String(128), nullable=True)

    execution = db.relationship('BatchPhaseExecution', back_populates='trigger_logs')
    trigger = db.relationship('PhaseTrigger')

    def to_dict(self):
        return self.column_dict()
