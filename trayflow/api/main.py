from fastapi import APIRouter

from trayflow.api.routes import catalog, context, health, orders, serials, stations, trays

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(catalog.router)
api_router.include_router(stations.router)
api_router.include_router(orders.router)
api_router.include_router(context.router)
api_router.include_router(trays.router)
api_router.include_router(serials.router)
