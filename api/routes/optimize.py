"""Delivery route optimization endpoint."""

from src.models.route import RouteRequest
from src.services.route_sequencer import optimize_route, validate_addresses
from src.utils.http import JSONHandler


class handler(JSONHandler):
    """POST /api/routes/optimize {addresses[], startAddress?, endAddress?}"""

    async def post(self):
        body = self.json_object()
        validate_addresses(body.get("addresses"))
        request = RouteRequest.model_validate(body)
        plan = await optimize_route(
            request.addresses,
            start_address=request.start_address,
            end_address=request.end_address,
        )
        return plan.to_response()
