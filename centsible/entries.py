from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user

from .extensions import services
from .guard import verified_required
from .schemas import (
    BreakdownQuery,
    EntryCreate,
    EntryFilters,
    EntryUpdate,
    MonthlyQuery,
    parse,
)

entries_bp = Blueprint('entries', __name__, url_prefix='/entries')


@entries_bp.route('', methods=['GET'])
@verified_required
def list_entries():
    filters = parse(EntryFilters, request.args.to_dict())
    entries = services().ledger.list(current_user, **filters.model_dump())
    return jsonify({
        'success': True,
        'count': len(entries),
        'entries': [e.to_dict() for e in entries],
    })


@entries_bp.route('', methods=['POST'])
@verified_required
def create_entry():
    data = parse(EntryCreate, request.get_json(silent=True))
    entry = services().ledger.create(current_user, **data.model_dump())
    return jsonify({'success': True, 'entry': entry.to_dict()}), 201


@entries_bp.route('/<int:entry_id>', methods=['GET'])
@verified_required
def get_entry(entry_id):
    entry = services().ledger.get(current_user, entry_id)
    return jsonify({'success': True, 'entry': entry.to_dict()})


@entries_bp.route('/<int:entry_id>', methods=['PUT', 'PATCH'])
@verified_required
def update_entry(entry_id):
    data = parse(EntryUpdate, request.get_json(silent=True))
    entry = services().ledger.update(current_user, entry_id, **data.changes())
    return jsonify({'success': True, 'entry': entry.to_dict()})


@entries_bp.route('/<int:entry_id>', methods=['DELETE'])
@verified_required
def delete_entry(entry_id):
    snapshot = services().ledger.delete(current_user, entry_id)
    return jsonify({'success': True, 'message': 'Transaction deleted', 'entry': snapshot})


# ──────────────── Summaries ────────────────

@entries_bp.route('/summary', methods=['GET'])
@verified_required
def summary():
    totals = services().ledger.summarize(current_user)
    return jsonify({'success': True, 'summary': totals.to_dict()})


@entries_bp.route('/summary/categories', methods=['GET'])
@verified_required
def category_summary():
    query = parse(BreakdownQuery, request.args.to_dict())
    breakdown = services().ledger.category_breakdown(current_user, query.kind)
    return jsonify({'success': True, 'kind': query.kind.value, 'categories': breakdown})


@entries_bp.route('/summary/monthly', methods=['GET'])
@verified_required
def monthly_summary():
    query = parse(MonthlyQuery, request.args.to_dict())
    return jsonify({'success': True, 'months': services().ledger.monthly(current_user, query.months)})
