from fastapi import APIRouter, Depends

from ..realtime import RoomRouter, get_room_router

health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
async def health_check(router: RoomRouter = Depends(get_room_router)):
    return {"status": "ok", "liveConnections": router.connection_count}
