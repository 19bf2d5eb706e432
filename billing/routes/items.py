from flask import Blueprint, current_app, request
from billing.version import API_PREFIX
from billing.cache import ITEMS_ACTIVE_KEY, ITEMS_ALL_KEY, get_item_cache, invalidate_items
from billing.schemas.items import ItemRequest
from billing.services import items as item_service
from billing.services.exceptions import ConflictError, NotFound, ValidationError
from billing.utils import auth_required, ok, error, validate_schema, int_arg, bool_arg

items_bp = Blueprint("items", __name__, url_prefix=f"{API_PREFIX}/items")

DEFAULT_ITEM_LIMIT = 100


@items_bp.before_request
@auth_required
def _enforce_admin():
    """Every catalog endpoint requires the admin bearer token."""
    return None


@items_bp.route("", methods=["GET"])
def list_items():
    include_deleted = bool_arg("include_deleted", "includeDeleted")
    limit = int_arg("limit", DEFAULT_ITEM_LIMIT, minimum=1)
    offset = int_arg("offset", 0, minimum=0)

    # Only the default first page is cached.
    cacheable = offset == 0 and limit == DEFAULT_ITEM_LIMIT
    cache_key = ITEMS_ALL_KEY if include_deleted else ITEMS_ACTIVE_KEY
    cache = get_item_cache()
    if cacheable:
        cached = cache.get(cache_key)
        if cached is not None:
            return ok(cached)

    items = [i.to_dict() for i in item_service.list_items(include_deleted, limit, offset)]
    if cacheable:
        cache.set(cache_key, items, current_app.config["ITEM_CACHE_TTL_SEC"])
    return ok(items)


@items_bp.route("/<item_id>", methods=["GET"])
def get_item(item_id):
    try:
        item = item_service.get_item(item_id)
    except NotFound as e:
        return error(e.message, status=404)
    return ok(item.to_dict())


@items_bp.route("", methods=["POST"])
@validate_schema(ItemRequest)
def create_item():
    data = request.validated_data.model_dump()
    try:
        item = item_service.create_item(data)
    except (ValidationError, ConflictError) as e:
        return error(e.message, status=e.status_code)
    invalidate_items()
    return ok(item.to_dict(), message="Item created", status=201)


@items_bp.route("/<item_id>", methods=["PUT"])
@validate_schema(ItemRequest)
def update_item(item_id):
    data = request.validated_data.model_dump()
    try:
        item = item_service.update_item(item_id, data)
    except (ValidationError, NotFound) as e:
        return error(e.message, status=e.status_code)
    invalidate_items()
    return ok(item.to_dict(), message="Item updated")


@items_bp.route("/<item_id>", methods=["DELETE"])
def delete_item(item_id):
    try:
        item_service.soft_delete_item(item_id)
    except NotFound as e:
        return error(e.message, status=404)
    invalidate_items()
    return ok({"item_id": item_id, "status": "deleted"}, message="Item deleted")


@items_bp.route("/<item_id>/restore", methods=["POST"])
def restore_item(item_id):
    try:
        item = item_service.restore_item(item_id)
    except ConflictError as e:
        return error(e.message, status=409)
    invalidate_items()
    return ok(item.to_dict(), message="Item restored")


@items_bp.route("/<item_id>/purge", methods=["DELETE"])
def purge_item(item_id):
    try:
        item_service.purge_item(item_id)
    except NotFound as e:
        return error(e.message, status=404)
    invalidate_items()
    return ok({"item_id": item_id, "status": "purged"}, message="Item permanently deleted")


@items_bp.route("/cleanup", methods=["POST"])
def run_cleanup():
    purged = item_service.purge_expired_items()
    if purged:
        invalidate_items()
    return ok({"purged": purged}, message="Cleanup complete")
