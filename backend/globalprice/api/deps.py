from fastapi import Request

from globalprice.core.search import PriceComparisonService


def get_service(request: Request) -> PriceComparisonService:
    # one service per app: it owns the process-wide rate cache
    return request.app.state.service
