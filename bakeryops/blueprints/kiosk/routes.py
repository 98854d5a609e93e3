from flask import request

from ...extensions import limiter
from ...services import kiosk_service
from ...utils.api_responses import APIResponse
from ...utils.request_parsing import parse_int
from ...utils.timezone_utils import TimezoneUtils
from . import kiosk_bp


def _batch_payload(batch):
    data = batch.to_dict()
    data['phases'] = [phase.to_dict() for phase in batch.product.phases]
    data['executions'] = [execution.to_dict() for execution in batch.phase_executions]
    return data


@kiosk_bp.route('/today', methods=['GET'])
def today():
    day = kiosk_service.get_today_production_day()
    batches = kiosk_service.get_today_batches()
    return APIResponse.success({
        'date': TimezoneUtils.bakery_today().isoformat(),
        'production_day_id': day.id if day else None,
        'batches': [_batch_payload(batch) for batch in batches],
    })


@kiosk_bp.route('/batches/<int:batch_id>/start', methods=['POST'])
def start_batch(batch_id):
    return APIResponse.success(kiosk_service.start_batch(batch_id).to_dict(), "Batch started")


@kiosk_bp.route('/batches/<int:batch_id>/complete', methods=['POST'])
def complete_batch(batch_id):
    return APIResponse.success(kiosk_service.complete_batch(batch_id).to_dict(), "Batch completed")


@kiosk_bp.route('/batches/<int:batch_id>/qa-failed', methods=['POST'])
def qa_failed(batch_id):
    data = APIResponse.handle_request_content()
    batch = kiosk_service.mark_batch_qa_failed(batch_id, data.get('reason'))
    return APIResponse.success(batch.to_dict(), "Batch marked as failed quality check")


@kiosk_bp.route('/batches/<int:batch_id>/phases/<int:phase_id>/start', methods=['POST'])
def start_phase(batch_id, phase_id):
    execution = kiosk_service.start_batch_phase(batch_id, phase_id)
    return APIResponse.success(execution.to_dict(), "Phase started")


@kiosk_bp.route('/executions/<int:execution_id>/triggers', methods=['GET'])
@limiter.exempt
def execution_triggers(execution_id):
    """Polled by the kiosk timer; ``elapsed`` overrides the server-side clock."""
    elapsed = parse_int(request.args.get('elapsed'), 'elapsed', required=False)
    triggers = kiosk_service.active_triggers(execution_id, elapsed)
    blocking = kiosk_service.pending_blocking_triggers(execution_id, elapsed)
    return APIResponse.success({
        'triggers': [trigger.to_dict() for trigger in triggers],
        'pending_blocking_ids': [trigger.id for trigger in blocking],
    })


@kiosk_bp.route('/executions/<int:execution_id>/triggers/<int:trigger_id>/acknowledge', methods=['POST'])
def acknowledge(execution_id, trigger_id):
    data = APIResponse.handle_request_content()
    log = kiosk_service.acknowledge_trigger(execution_id, trigger_id, data.get('acknowledged_by'))
    return APIResponse.success(log.to_dict(), "Instruction acknowledged")


@kiosk_bp.route('/executions/<int:execution_id>/complete', methods=['POST'])
def complete_phase(execution_id):
    execution = kiosk_service.complete_batch_phase(execution_id)
    return APIResponse.success(execution.to_dict(), "Phase completed")
