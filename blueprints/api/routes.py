"""
API routes for JSON endpoints.
Read access to the catalog and the works gallery for the wizard and cart pages.
"""

from flask import request, Blueprint, current_app

from models.catalog import get_all_categories, get_items, get_item_by_key
from models.work import get_all_works, get_work_by_id, serialize_work
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return api_success(data={
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': current_app.config.get('APP_NAME', 'DecorRental'),
    })


@api_bp.route('/categories')
def api_categories():
    """All item categories."""
    return api_success(data={'categories': get_all_categories()})


@api_bp.route('/items')
def api_items():
    """
    Catalog items.

    Query params:
        q: Search in name or key (optional)
        category_id: Filter by category (optional)
    """
    items = get_items(
        keyword=request.args.get('q') or None,
        category_id=request.args.get('category_id', type=int)
    )
    return api_success(data={'items': items})


@api_bp.route('/items/<key>')
def api_item(key):
    item = get_item_by_key(key)
    if not item:
        return api_error(MESSAGES['unknown_item'].format(key=key), status=404, code='unknown_item')
    return api_success(data={'item': item})


@api_bp.route('/works')
def api_works():
    """
    Works gallery.

    Query params:
        category: Category name (optional)
        min_price: Lowest package total (optional)
        max_price: Highest package total (optional)
    """
    works = get_all_works(
        category=request.args.get('category') or None,
        min_price=request.args.get('min_price', type=float),
        max_price=request.args.get('max_price', type=float)
    )
    return api_success(data={'works': [serialize_work(w) for w in works]})


@api_bp.route('/works/<int:work_id>')
def api_work(work_id):
    work = get_work_by_id(work_id)
    if not work:
        return api_error(MESSAGES['work_not_found'], status=404, code='work_not_found')
    return api_success(data={'work': serialize_work(work)})
