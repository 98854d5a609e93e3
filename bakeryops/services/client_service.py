import logging
from typing import Any, Dict, List, Optional

from ..extensions import db
from ..models import Client, PriceList
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'contact_name', 'email', 'phone', 'address', 'price_list_id')
FISCAL_FIELDS = ('tax_id', 'legal_name', 'tax_regime', 'fiscal_address', 'invoice_use')


def get_client(client_id: int) -> Client:
    client = db.session.get(Client, client_id)
    if not client:
        raise NotFoundError('Client', client_id)
    return client


def _apply_client_data(client: Client, data: Dict[str, Any]) -> None:
    for key in CONTACT_FIELDS:
        if key in data:
            setattr(client, key, data[key])

    client.name = (client.name or '').strip()
    if not client.name:
        raise ValidationError("Client name is required", field='name')
    if client.price_list_id is not None and not db.session.get(PriceList, client.price_list_id):
        raise NotFoundError('PriceList', client.price_list_id)

    if 'requires_invoice' in data:
        client.requires_invoice = bool(data['requires_invoice'])

    if client.requires_invoice:
        for key in FISCAL_FIELDS:
            if key in data:
                setattr(client, key, data[key])
        if not (client.tax_id or '').strip():
            raise ValidationError("Tax ID is required when the client requires invoices", field='tax_id')
        client.tax_id = client.tax_id.strip().upper()
    else:
        for key in FISCAL_FIELDS:
            setattr(client, key, None)


def create_client(data: Dict[str, Any]) -> Client:
    client = Client(is_active=True, requires_invoice=False)
    _apply_client_data(client, data)
    db.session.add(client)
    db.session.commit()
    logger.info(f"Created client {client.id} ({client.name})")
    return client


def update_client(client_id: int, data: Dict[str, Any]) -> Client:
    client = get_client(client_id)
    try:
        _apply_client_data(client, data)
    except (ValidationError, NotFoundError):
        db.session.rollback()
        raise
    db.session.commit()
    logger.info(f"Updated client {client.id}")
    return client


def set_client_active(client_id: int, is_active: bool) -> Client:
    client = get_client(client_id)
    client.is_active = bool(is_active)
    db.session.commit()
    return client


def list_clients(search: Optional[str] = None, include_inactive: bool = False) -> List[Client]:
    query = Client.query
    if not include_inactive:
        query = query.filter_by(is_active=True)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(Client.name.ilike(pattern), Client.contact_name.ilike(pattern)))
    return query.order_by(Client.name).all()
