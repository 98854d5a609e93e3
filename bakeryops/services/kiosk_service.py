"""Baker-facing kiosk actions: today's batches, phase timers and triggers.

Elapsed time for a phase is measured from ``BatchPhaseExecution.started_at``
(naive UTC). Triggers fire once ``trigger_time_seconds`` has elapsed; a
fired ``blocking`` trigger must be acknowledged before the phase can be
completed.
"""

import logging
from typing import List, Optional

from ..extensions import db
from ..models import (
    BatchPhaseExecution,
    BatchTriggerLog,
    PhaseTrigger,
    ProductionBatch,
    ProductionDay,
    ProductionPhase,
)
from ..utils.timezone_utils import TimezoneUtils
from .exceptions import ConflictError, NotFoundError, ValidationError
from .state_machines import transition

logger = logging.getLogger(__name__)


def get_today_production_day() -> Optional[ProductionDay]:
    today = TimezoneUtils.bakery_today()
    return ProductionDay.query.filter_by(production_date=today, status='published').first()


def get_today_batches() -> List[ProductionBatch]:
    """Batches of today's published production day; empty when there is none."""
    day = get_today_production_day()
    if day is None:
        logger.info(f"No published production day for {TimezoneUtils.bakery_today().isoformat()}")
        return []
    return list(day.batches)


def _get_batch(batch_id: int) -> ProductionBatch:
    batch = db.session.get(ProductionBatch, batch_id)
    if not batch:
        raise NotFoundError('ProductionBatch', batch_id)
    return batch


def _get_execution(execution_id: int) -> BatchPhaseExecution:
    execution = db.session.get(BatchPhaseExecution, execution_id)
    if not execution:
        raise NotFoundError('BatchPhaseExecution', execution_id)
    return execution


def start_batch(batch_id: int) -> ProductionBatch:
    batch = _get_batch(batch_id)
    if batch.production_day.status != 'published':
        raise ConflictError("Batches can only start on a published production day",
                            {'batch_id': batch.id, 'day_status': batch.production_day.status})
    transition(batch, 'in_progress')
    batch.started_at = TimezoneUtils.utc_now()
    db.session.commit()
    logger.info(f"Batch {batch.id} started ({batch.product.name} #{batch.batch_number})")
    return batch


def complete_batch(batch_id: int) -> ProductionBatch:
    batch = _get_batch(batch_id)
    transition(batch, 'completed')
    batch.completed_at = TimezoneUtils.utc_now()
    db.session.commit()
    logger.info(f"Batch {batch.id} completed")
    return batch


def mark_batch_qa_failed(batch_id: int, reason: Optional[str] = None) -> ProductionBatch:
    """Explicit quality rejection of a batch in progress; terminal."""
    batch = _get_batch(batch_id)
    transition(batch, 'qa_failed')
    batch.completed_at = TimezoneUtils.utc_now()
    db.session.commit()
    logger.warning(f"Batch {batch.id} marked qa_failed: {reason or 'no reason given'}")
    return batch


def start_batch_phase(batch_id: int, phase_id: int) -> BatchPhaseExecution:
    """Start (or restart) the timer of one phase of a batch."""
    batch = _get_batch(batch_id)
    phase = db.session.get(ProductionPhase, phase_id)
    if not phase:
        raise NotFoundError('ProductionPhase', phase_id)
    if phase.product_id != batch.product_id:
        raise ValidationError("Phase does not belong to the batch's product", field='phase_id',
                              details={'batch_id': batch.id, 'phase_id': phase.id})
    if batch.status != 'in_progress':
        raise ConflictError("Phases can only run while the batch is in progress",
                            {'batch_id': batch.id, 'status': batch.status})

    execution = BatchPhaseExecution.query.filter_by(batch_id=batch.id, phase_id=phase.id).first()
    if execution is None:
        execution = BatchPhaseExecution(batch_id=batch.id, phase_id=phase.id)
        db.session.add(execution)
    else:
        execution.trigger_logs.clear()
    execution.started_at = TimezoneUtils.utc_now()
    execution.completed_at = None
    db.session.commit()
    logger.info(f"Batch {batch.id}: phase {phase.sequence_order} ({phase.name}) started")
    return execution


def elapsed_seconds(execution: BatchPhaseExecution) -> int:
    return TimezoneUtils.seconds_since(execution.started_at)


def active_triggers(execution_id: int, elapsed: Optional[int] = None) -> List[PhaseTrigger]:
    """Triggers whose time has come, in ascending trigger time."""
    execution = _get_execution(execution_id)
    if elapsed is None:
        elapsed = elapsed_seconds(execution)
    return (
        PhaseTrigger.query
        .filter(PhaseTrigger.phase_id == execution.phase_id)
        .filter(PhaseTrigger.trigger_time_seconds <= elapsed)
        .order_by(PhaseTrigger.trigger_time_seconds, PhaseTrigger.id)
        .all()
    )


def pending_blocking_triggers(execution_id: int, elapsed: Optional[int] = None) -> List[PhaseTrigger]:
    execution = _get_execution(execution_id)
    acknowledged = {log.trigger_id for log in execution.trigger_logs}
    return [trigger for trigger in active_triggers(execution_id, elapsed)
            if trigger.is_blocking and trigger.id not in acknowledged]


def acknowledge_trigger(execution_id: int, trigger_id: int,
                        acknowledged_by: Optional[str] = None) -> BatchTriggerLog:
    execution = _get_execution(execution_id)
    trigger = db.session.get(PhaseTrigger, trigger_id)
    if not trigger or trigger.phase_id != execution.phase_id:
        raise NotFoundError('PhaseTrigger', trigger_id)

    existing = next((log for log in execution.trigger_logs if log.trigger_id == trigger.id), None)
    if existing:
        return existing

    log = BatchTriggerLog(trigger_id=trigger.id, acknowledged_by=acknowledged_by,
                          acknowledged_at=TimezoneUtils.utc_now())
    execution.trigger_logs.append(log)
    db.session.commit()
    logger.info(f"Execution {execution.id}: trigger {trigger.id} ({trigger.trigger_type}) acknowledged")
    return log


def complete_batch_phase(execution_id: int, elapsed: Optional[int] = None) -> BatchPhaseExecution:
    execution = _get_execution(execution_id)
    if execution.is_completed:
        raise ConflictError("Phase already completed", {'execution_id': execution.id})

    blocking = pending_blocking_triggers(execution_id, elapsed)
    if blocking:
        raise ConflictError(
            "Blocking instructions must be acknowledged before completing the phase",
            {'execution_id': execution.id, 'trigger_ids': [trigger.id for trigger in blocking]},
        )

    execution.completed_at = TimezoneUtils.utc_now()
    db.session.commit()
    logger.info(f"Execution {execution.id}: phase completed")
    return execution
