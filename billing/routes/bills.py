from flask import Blueprint, request
from billing.version import API_PREFIX
from billing.schemas.bills import BillRequest
from billing.services import bills as bill_service
from billing.services.exceptions import NotFound, ValidationError
from billing.utils import auth_required, ok, error, validate_schema, int_arg

bills_bp = Blueprint("bills", __name__, url_prefix=f"{API_PREFIX}/bills")

DEFAULT_BILL_LIMIT = 50


@bills_bp.before_request
@auth_required
def _enforce_admin():
    return None


def _lines(data: BillRequest):
    return [line.model_dump() for line in data.items]


@bills_bp.route("", methods=["GET"])
def list_bills():
    limit = int_arg("limit", DEFAULT_BILL_LIMIT, minimum=1)
    offset = int_arg("offset", 0, minimum=0)
    bills = bill_service.list_bills(limit, offset)
    return ok([b.to_dict(include_items=False) for b in bills])


@bills_bp.route("", methods=["POST"])
@validate_schema(BillRequest)
def create_bill():
    data: BillRequest = request.validated_data
    try:
        bill = bill_service.compose_bill(data.customer, _lines(data))
    except (ValidationError, NotFound) as e:
        return error(e.message, status=e.status_code)
    return ok(bill_service.get_bill(bill.id), message="Bill created", status=201)


@bills_bp.route("/<bill_id>", methods=["GET"])
def get_bill(bill_id):
    try:
        bill = bill_service.get_bill(bill_id)
    except NotFound as e:
        return error(e.message, status=404)
    return ok(bill)


@bills_bp.route("/<bill_id>", methods=["PUT"])
@validate_schema(BillRequest)
def update_bill(bill_id):
    data: BillRequest = request.validated_data
    try:
        bill = bill_service.update_bill(bill_id, data.customer, _lines(data))
    except (ValidationError, NotFound) as e:
        return error(e.message, status=e.status_code)
    return ok(bill_service.get_bill(bill.id), message="Bill updated")


@bills_bp.route("/<bill_id>", methods=["DELETE"])
def delete_bill(bill_id):
    try:
        bill_service.delete_bill(bill_id)
    except NotFound as e:
        return error(e.message, status=404)
    return ok({"id": bill_id, "status": "deleted"}, message="Bill deleted")
